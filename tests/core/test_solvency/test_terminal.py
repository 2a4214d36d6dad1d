"""Tests for solvency/core/terminal.py: direct vs sequential terminal valuation."""

import pytest

from solvency.core.terminal import (
    CloseOrder,
    build_synthetic_positions,
    exit_price,
    sequential_valuation,
    terminal_price,
    value_market,
)
from solvency.core.types import Curve, Market, SyntheticPosition

BASE = 10**13
Q = 10**6


def _curve(reserve_units: int = 10**6) -> Curve:
    r = reserve_units * BASE
    return Curve(base_asset_reserve=r, quote_asset_reserve=r, sqrt_k=r, peg_multiplier=1_000)


def _market(curve: Curve, long_base: int, short_base: int) -> Market:
    return Market(
        index=0,
        symbol="SOL-PERP",
        base_asset_amount=long_base + short_base,
        base_asset_amount_long=long_base,
        base_asset_amount_short=short_base,
        margin_ratio_initial=1_000,
        curve=curve,
    )


def _synthetic(base: int, quote: int) -> SyntheticPosition:
    return SyntheticPosition(
        market_index=0, base_asset_amount=base, quote_asset_amount=quote, last_cumulative_funding_rate=0,
    )


# ---------------------------------------------------------------------------
# Synthetic positions
# ---------------------------------------------------------------------------

class TestSyntheticPositions:
    def test_built_from_market_totals(self):
        c = Curve(
            base_asset_reserve=BASE, quote_asset_reserve=BASE, sqrt_k=BASE,
            peg_multiplier=1_000, cumulative_funding_rate=777,
        )
        p = build_synthetic_positions(_market(c, 10 * BASE, -6 * BASE), 4 * Q, 10 * Q, 6 * Q)
        assert p.net.base_asset_amount == 4 * BASE
        assert p.long.base_asset_amount == 10 * BASE
        assert p.short.base_asset_amount == -6 * BASE
        assert (p.net.quote_asset_amount, p.long.quote_asset_amount, p.short.quote_asset_amount) == (
            4 * Q, 10 * Q, 6 * Q,
        )
        assert p.net.last_cumulative_funding_rate == 777
        assert p.long.open_orders == 0


# ---------------------------------------------------------------------------
# Direct vs sequential
# ---------------------------------------------------------------------------

class TestOrderDependence:
    def test_finite_liquidity_diverges(self):
        c = _curve()
        p = build_synthetic_positions(_market(c, 10 * BASE, -6 * BASE), 4 * Q, 10 * Q, 6 * Q)
        v = value_market(c, p)
        assert v.terminal_pnl_1 == -16
        assert v.terminal_pnl_2 == -17
        assert v.terminal_pnl_1 != v.terminal_pnl_2

    def test_sequential_legs(self):
        c = _curve()
        result = sequential_valuation(c, _synthetic(10 * BASE, 10 * Q), _synthetic(-6 * BASE, 6 * Q))
        assert result.long_pnl == -100
        assert result.short_pnl == 83
        assert result.total_pnl == -17

    @pytest.mark.parametrize("reserve_units", [10**6, 10**8, 10**10])
    def test_deep_liquidity_converges(self, reserve_units):
        c = _curve(reserve_units)
        p = build_synthetic_positions(_market(c, 10 * BASE, -6 * BASE), 4 * Q, 10 * Q, 6 * Q)
        v = value_market(c, p)
        assert abs(v.terminal_pnl_1 - v.terminal_pnl_2) <= 2

    def test_slippage_shrinks_with_depth(self):
        shallow = sequential_valuation(_curve(10**6), _synthetic(10 * BASE, 10 * Q), _synthetic(-6 * BASE, 6 * Q))
        deep = sequential_valuation(_curve(10**9), _synthetic(10 * BASE, 10 * Q), _synthetic(-6 * BASE, 6 * Q))
        assert abs(deep.long_pnl) < abs(shallow.long_pnl)

    def test_shorts_first(self):
        c = _curve()
        long, short = _synthetic(10 * BASE, 10 * Q), _synthetic(-6 * BASE, 6 * Q)
        longs_first = sequential_valuation(c, long, short)
        shorts_first = sequential_valuation(c, long, short, order=CloseOrder.SHORTS_FIRST)
        assert shorts_first.short_pnl == -37  # shorts cover against the untouched curve
        assert shorts_first.long_pnl != longs_first.long_pnl

    def test_sequential_does_not_move_curve(self):
        c = _curve()
        sequential_valuation(c, _synthetic(10 * BASE, 10 * Q), _synthetic(-6 * BASE, 6 * Q))
        assert c == _curve()


# ---------------------------------------------------------------------------
# Prices
# ---------------------------------------------------------------------------

class TestPrices:
    def test_exit_price_none_when_flat(self):
        assert exit_price(123, 0) is None

    def test_exit_price(self):
        # 9.9999 quote acquired for 10 base.
        assert exit_price(9_999_900, 10 * BASE) == 999_990

    def test_exit_price_uses_magnitude(self):
        assert exit_price(9_999_900, -10 * BASE) == 999_990

    def test_terminal_price_after_long_close(self):
        assert terminal_price(_curve(), 10 * BASE) < 10**10

    def test_terminal_price_after_short_cover(self):
        assert terminal_price(_curve(), -10 * BASE) > 10**10

    def test_terminal_price_flat(self):
        assert terminal_price(_curve(), 0) == 10**10
