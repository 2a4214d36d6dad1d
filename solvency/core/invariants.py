"""Invariant checkers for a market curve.

Each function returns True when the invariant holds; `check_all()` returns
the list of violated invariant IDs (empty = all pass).

`inv_k_matches_reserves` allows the error that truncating each of `base`,
`quote` and `sqrt_k` by less than one unit can introduce.
"""

from __future__ import annotations

from typing import Callable

from .types import Curve


def inv_reserves_non_negative(c: Curve) -> bool:
    return c.base_asset_reserve >= 0 and c.quote_asset_reserve >= 0


def inv_peg_positive(c: Curve) -> bool:
    return c.peg_multiplier > 0


def inv_sqrt_k_positive(c: Curve) -> bool:
    return c.sqrt_k > 0


def inv_k_matches_reserves(c: Curve) -> bool:
    drift = abs(c.base_asset_reserve * c.quote_asset_reserve - c.invariant_k)
    return drift <= c.base_asset_reserve + c.quote_asset_reserve + 2 * c.sqrt_k + 1


INVARIANT_REGISTRY: dict[str, Callable[[Curve], bool]] = {
    "inv_reserves_non_negative": inv_reserves_non_negative,
    "inv_peg_positive": inv_peg_positive,
    "inv_sqrt_k_positive": inv_sqrt_k_positive,
    "inv_k_matches_reserves": inv_k_matches_reserves,
}


def check_all(curve: Curve) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(curve)
    ]
