"""Property tests for the integer curve math.

Uses Hypothesis to fuzz reserves, positions and fee budgets.
"""

from __future__ import annotations

import importlib.util
import math
from fractions import Fraction

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import assume, given, settings

from solvency.core.amm import base_asset_value
from solvency.core.budgeted_k import apply_k_multiplier, calculate_budgeted_k
from solvency.core.errors import ArithmeticFault
from solvency.core.fixed_point import tdiv
from solvency.core.terminal import sequential_valuation
from solvency.core.types import Curve, SyntheticPosition

BASE = 10**13

ints = st.integers(min_value=-(10**30), max_value=10**30)
reserves = st.integers(min_value=10**3, max_value=10**9).map(lambda n: n * BASE)
sizes = st.integers(min_value=1, max_value=10**3).map(lambda n: n * BASE)


def _curve(reserve: int) -> Curve:
    return Curve(base_asset_reserve=reserve, quote_asset_reserve=reserve, sqrt_k=reserve, peg_multiplier=1_000)


def _synthetic(base: int) -> SyntheticPosition:
    return SyntheticPosition(
        market_index=0, base_asset_amount=base, quote_asset_amount=abs(base) // 10**7,
        last_cumulative_funding_rate=0,
    )


# ---------------------------------------------------------------------------
# tdiv
# ---------------------------------------------------------------------------

@settings(max_examples=300)
@given(ints, ints)
def test_tdiv_matches_exact_truncation(n, d):
    assume(d != 0)
    assert tdiv(n, d) == math.trunc(Fraction(n, d))


# ---------------------------------------------------------------------------
# Valuation
# ---------------------------------------------------------------------------

@settings(max_examples=200, deadline=None)
@given(reserves, sizes)
def test_cover_short_never_cheaper_than_long_close(reserve, size):
    c = _curve(reserve)
    assume(size < reserve)
    assert base_asset_value(c, _synthetic(-size)) > base_asset_value(c, _synthetic(size))


@settings(max_examples=200, deadline=None)
@given(reserves, sizes, sizes)
def test_long_leg_closed_first_never_profits(reserve, long_size, short_size):
    # Longs close first against the untouched unit-price curve, so slippage only hurts them.
    c = _curve(reserve)
    assume(long_size + short_size < reserve)
    result = sequential_valuation(c, _synthetic(long_size), _synthetic(-short_size))
    assert result.long_pnl <= 0


@settings(max_examples=200, deadline=None)
@given(reserves, sizes, st.integers(min_value=-(10**4), max_value=10**4))
def test_budgeted_k_per_reserve_truncation(reserve, size, cost):
    c = _curve(reserve)
    try:
        m = calculate_budgeted_k(c, size, cost)
    except ArithmeticFault:
        return
    scaled = apply_k_multiplier(c, m)
    assert m.numerator > 0 and m.denominator > 0
    assert math.gcd(m.numerator, m.denominator) == 1
    n, d = m.numerator, m.denominator
    for field in ("base_asset_reserve", "quote_asset_reserve", "sqrt_k"):
        before, after = getattr(c, field), getattr(scaled, field)
        assert after * d <= before * n < (after + 1) * d, field

    # Each reserve loses less than one unit to truncation, so k = x * y stays
    # within (x + y) * n * d + d * d of the exact scaled product.
    x, y, s = c.base_asset_reserve, c.quote_asset_reserve, c.sqrt_k
    x2, y2, s2 = scaled.base_asset_reserve, scaled.quote_asset_reserve, scaled.sqrt_k
    product_gap = x * y * n * n - x2 * y2 * d * d
    assert 0 <= product_gap < (x + y) * n * d + d * d
    sqrt_gap = s * s * n * n - s2 * s2 * d * d
    assert 0 <= sqrt_gap < 2 * s * n * d + d * d
