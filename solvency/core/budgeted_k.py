"""
Budgeted-K solver: rescale a curve's invariant to fund a fee budget.

Given the market's net base exposure `d`, the solver finds the multiplier
`p` applied to both reserves (and `sqrt_k`) such that the curve's valuation
of closing `d` changes by exactly `cost`, holding the peg fixed:

    (1/(x+d) - p/(x*p+d)) * y * d * Q = C,      C = -cost

    p = d * (y*d*Q - C*(x+d)) / (C*x*(x+d) + y*d*d*Q)

todo: assumes k = x * y. For a curve whose invariant differs from the
product of its reserves, solve instead
``(y*(1-p) + k*p^2/(x*p+d) - k/(x+d)) * Q = C`` for p.

Both sides are computed as exact integer cross products brought to the
common scale ``RESERVE^3 * PEG * QUOTE``; no scale-reducing division
happens before the ratio is formed. The returned pair is gcd-reduced.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from .errors import ArithmeticFault
from .fixed_point import AMM_RESERVE_PRECISION, PEG_PRECISION, QUOTE_PRECISION, mul_div
from .types import Curve


@dataclass(frozen=True)
class KMultiplier:
    numerator: int
    denominator: int

    @property
    def is_identity(self) -> bool:
        return self.numerator == self.denominator

    def apply(self, value: int) -> int:
        return mul_div(value, self.numerator, self.denominator)


IDENTITY = KMultiplier(1, 1)


def calculate_budgeted_k(curve: Curve, net_base_asset_amount: int, cost: int) -> KMultiplier:
    """Multiplier that moves the curve's valuation of `net_base_asset_amount` by `cost`.

    `cost` is QUOTE precision. Zero net exposure leaves the problem
    underdetermined and returns the identity. Pure: the curve is not touched.
    """
    d = net_base_asset_amount
    if d == 0:
        return IDENTITY

    x = curve.base_asset_reserve
    y = curve.quote_asset_reserve
    q = curve.peg_multiplier
    c = -cost

    # Quote-denominated terms are lifted by RESERVE*PEG, reserve-only terms by QUOTE.
    lift_c = AMM_RESERVE_PRECISION * PEG_PRECISION
    lift_y = QUOTE_PRECISION

    numerator = d * (y * d * q * lift_y - c * (x + d) * lift_c)
    denominator = c * x * (x + d) * lift_c + y * d * d * q * lift_y

    if denominator == 0:
        raise ArithmeticFault("budgeted k: zero denominator")
    if denominator < 0:
        numerator, denominator = -numerator, -denominator
    if numerator <= 0:
        raise ArithmeticFault(f"budgeted k: non-positive multiplier {numerator}/{denominator}")

    g = math.gcd(numerator, denominator)
    return KMultiplier(numerator // g, denominator // g)


def apply_k_multiplier(curve: Curve, multiplier: KMultiplier) -> Curve:
    """Scale both reserves and `sqrt_k` by the multiplier (product before division)."""
    if multiplier.is_identity:
        return curve.fork()
    return replace(
        curve,
        base_asset_reserve=multiplier.apply(curve.base_asset_reserve),
        quote_asset_reserve=multiplier.apply(curve.quote_asset_reserve),
        sqrt_k=multiplier.apply(curve.sqrt_k),
    )


def rescale_curve(curve: Curve, net_base_asset_amount: int) -> tuple[Curve, KMultiplier]:
    """Spend the curve's whole fee-minus-distributions budget on a k adjustment.

    The returned curve has its fee counter decremented by exactly the cost.
    """
    cost = curve.total_fee_minus_distributions
    multiplier = calculate_budgeted_k(curve, net_base_asset_amount, cost)
    rescaled = apply_k_multiplier(curve, multiplier)
    rescaled = replace(
        rescaled,
        total_fee_minus_distributions=rescaled.total_fee_minus_distributions - cost,
    )
    return rescaled, multiplier
