"""
Constant-product curve valuation (pure, integer-only).

Every function takes a `Curve` and returns new integers; none of them
mutates the curve it reads. Swaps use ``k = sqrt_k ** 2`` as the invariant:

    new_input_reserve  = input_reserve +/- amount
    new_output_reserve = k / new_input_reserve     (truncated)

Closing a long position is a SHORT-direction trade (base is added back to
the curve); closing a short is a LONG-direction trade (base is removed).
"""

from __future__ import annotations

from typing import Tuple

from .errors import ArithmeticFault
from .fixed_point import (
    AMM_RESERVE_PRECISION,
    AMM_TIMES_PEG_TO_QUOTE_PRECISION_RATIO,
    FUNDING_PAYMENT_PRECISION,
    MARK_PRICE_PRECISION,
    PEG_PRECISION,
    PRICE_TO_QUOTE_PRECISION_RATIO,
    tdiv,
)
from .types import AnyPosition, AssetType, Curve, PositionDirection, SwapDirection


def direction_to_close(base_asset_amount: int) -> PositionDirection:
    """Trade direction that flattens a position of the given signed size."""
    return PositionDirection.SHORT if base_asset_amount > 0 else PositionDirection.LONG


def get_swap_direction(asset: AssetType, direction: PositionDirection) -> SwapDirection:
    if direction == PositionDirection.LONG and asset == "base":
        return SwapDirection.REMOVE
    if direction == PositionDirection.SHORT and asset == "quote":
        return SwapDirection.REMOVE
    return SwapDirection.ADD


def swap_output(
    input_reserve: int,
    amount: int,
    direction: SwapDirection,
    invariant: int,
) -> Tuple[int, int]:
    """Return ``(new_input_reserve, new_output_reserve)``."""
    if direction == SwapDirection.ADD:
        new_input_reserve = input_reserve + amount
    else:
        new_input_reserve = input_reserve - amount
    if new_input_reserve <= 0:
        raise ArithmeticFault(f"swap drains the input reserve: {input_reserve} - {amount}")
    return new_input_reserve, tdiv(invariant, new_input_reserve)


def reserves_after_swap(
    curve: Curve,
    asset: AssetType,
    amount: int,
    direction: SwapDirection,
) -> Tuple[int, int]:
    """Return ``(new_quote_reserve, new_base_reserve)`` after swapping `amount` of `asset`.

    Quote input is given in QUOTE precision and converted to reserve units via
    the peg before it touches the curve.
    """
    if amount < 0:
        raise ValueError(f"swap amount must be non-negative: {amount}")
    k = curve.invariant_k
    if asset == "quote":
        if curve.peg_multiplier == 0:
            raise ArithmeticFault("peg_multiplier is zero")
        amount = tdiv(amount * AMM_TIMES_PEG_TO_QUOTE_PRECISION_RATIO, curve.peg_multiplier)
        new_quote, new_base = swap_output(curve.quote_asset_reserve, amount, direction, k)
    else:
        new_base, new_quote = swap_output(curve.base_asset_reserve, amount, direction, k)
    return new_quote, new_base


def swap_curve(curve: Curve, asset: AssetType, amount: int, direction: SwapDirection) -> Curve:
    """A forked curve carrying the post-swap reserves."""
    new_quote, new_base = reserves_after_swap(curve, asset, amount, direction)
    return curve.with_reserves(new_base, new_quote)


def close_position_curve(curve: Curve, base_asset_amount: int) -> Curve:
    """A forked curve after fully closing a position of the given signed size."""
    swap_dir = get_swap_direction("base", direction_to_close(base_asset_amount))
    return swap_curve(curve, "base", abs(base_asset_amount), swap_dir)


def base_asset_value(curve: Curve, position: AnyPosition) -> int:
    """Quote value (QUOTE precision) of closing `position` against `curve`.

    Covering a short costs one extra quote unit so truncation never
    favours the trader.
    """
    if position.base_asset_amount == 0:
        return 0
    closing = direction_to_close(position.base_asset_amount)
    new_quote, _ = reserves_after_swap(
        curve, "base", abs(position.base_asset_amount), get_swap_direction("base", closing),
    )
    if closing == PositionDirection.SHORT:
        delta = curve.quote_asset_reserve - new_quote
        return tdiv(delta * curve.peg_multiplier, AMM_TIMES_PEG_TO_QUOTE_PRECISION_RATIO)
    delta = new_quote - curve.quote_asset_reserve
    return tdiv(delta * curve.peg_multiplier, AMM_TIMES_PEG_TO_QUOTE_PRECISION_RATIO) + 1


def funding_pnl(curve: Curve, position: AnyPosition) -> int:
    """Funding owed to (positive) or by (negative) the position, QUOTE precision."""
    if position.base_asset_amount == 0:
        return 0
    rate_delta = curve.cumulative_funding_rate - position.last_cumulative_funding_rate
    per_position = -tdiv(
        tdiv(rate_delta * position.base_asset_amount, AMM_RESERVE_PRECISION),
        FUNDING_PAYMENT_PRECISION,
    )
    return tdiv(per_position, PRICE_TO_QUOTE_PRECISION_RATIO)


def position_pnl(curve: Curve, position: AnyPosition, with_funding: bool = False) -> int:
    """Unrealized PnL (QUOTE precision): value acquired minus cost basis."""
    if position.base_asset_amount == 0:
        return 0
    value = base_asset_value(curve, position)
    if position.base_asset_amount > 0:
        pnl = value - position.quote_asset_amount
    else:
        pnl = position.quote_asset_amount - value
    if with_funding:
        pnl += funding_pnl(curve, position)
    return pnl


def price_from_reserves(base_asset_reserve: int, quote_asset_reserve: int, peg_multiplier: int) -> int:
    """``quote * peg / base`` in MARK_PRICE precision."""
    if base_asset_reserve == 0:
        raise ArithmeticFault("base_asset_reserve is zero")
    scaled = tdiv(quote_asset_reserve * MARK_PRICE_PRECISION * peg_multiplier, PEG_PRECISION)
    return tdiv(scaled, base_asset_reserve)


def mark_price(curve: Curve) -> int:
    return price_from_reserves(curve.base_asset_reserve, curve.quote_asset_reserve, curve.peg_multiplier)
