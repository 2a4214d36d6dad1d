"""
Dual terminal valuation of a market's aggregate exposure.

Two ways of closing every open position at once, both against the
rescaled curve:

1. Direct: the net position is closed in one atomic swap.
2. Sequential: the long aggregate is closed first; the short aggregate is
   then closed against the reserves the long close left behind.

With finite liquidity the two results diverge; the gap is reported, not
smoothed away. Longs-first is the reported order; `CloseOrder.SHORTS_FIRST`
is available as a separate metric.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional

from .amm import (
    base_asset_value,
    close_position_curve,
    direction_to_close,
    get_swap_direction,
    position_pnl,
    price_from_reserves,
    reserves_after_swap,
)
from .fixed_point import AMM_TO_QUOTE_PRECISION_RATIO, QUOTE_PRECISION, tdiv
from .types import Curve, Market, SyntheticPosition


@unique
class CloseOrder(Enum):
    LONGS_FIRST = "longs_first"
    SHORTS_FIRST = "shorts_first"


@dataclass(frozen=True)
class SyntheticPositions:
    """Net, long-only and short-only aggregate positions for one market."""

    net: SyntheticPosition
    long: SyntheticPosition
    short: SyntheticPosition


@dataclass(frozen=True)
class SequentialResult:
    long_pnl: int
    short_pnl: int

    @property
    def total_pnl(self) -> int:
        return self.long_pnl + self.short_pnl


@dataclass(frozen=True)
class TerminalValuation:
    """All integer outputs of the valuation pass (QUOTE / MARK_PRICE precision)."""

    quote_asset_acquired: int
    quote_asset_acquired_long: int
    quote_asset_acquired_short: int
    terminal_pnl_1: int
    terminal_pnl_2: int
    exit_price: Optional[int]
    terminal_price: int


def build_synthetic_positions(
    market: Market,
    net_quote: int,
    long_quote: int,
    short_quote: int,
) -> SyntheticPositions:
    """Construct the three aggregate positions from market totals and cost bases."""
    rate = market.curve.cumulative_funding_rate

    def _make(base: int, quote: int) -> SyntheticPosition:
        return SyntheticPosition(
            market_index=market.index,
            base_asset_amount=base,
            quote_asset_amount=quote,
            last_cumulative_funding_rate=rate,
            open_orders=0,
        )

    return SyntheticPositions(
        net=_make(market.base_asset_amount, net_quote),
        long=_make(market.base_asset_amount_long, long_quote),
        short=_make(market.base_asset_amount_short, short_quote),
    )


def exit_price(quote_asset_acquired: int, net_base_asset_amount: int) -> Optional[int]:
    """Average price (QUOTE precision) of closing the net position; None when flat."""
    if net_base_asset_amount == 0:
        return None
    scaled = quote_asset_acquired * AMM_TO_QUOTE_PRECISION_RATIO * QUOTE_PRECISION
    return tdiv(scaled, abs(net_base_asset_amount))


def terminal_price(curve: Curve, net_base_asset_amount: int) -> int:
    """Mark price (MARK_PRICE precision) once the net position is closed."""
    swap_dir = get_swap_direction("base", direction_to_close(net_base_asset_amount))
    new_quote, new_base = reserves_after_swap(curve, "base", abs(net_base_asset_amount), swap_dir)
    return price_from_reserves(new_base, new_quote, curve.peg_multiplier)


def sequential_valuation(
    curve: Curve,
    long: SyntheticPosition,
    short: SyntheticPosition,
    order: CloseOrder = CloseOrder.LONGS_FIRST,
) -> SequentialResult:
    """Close one side, then the other against the reserves the first close left."""
    first, second = (long, short) if order == CloseOrder.LONGS_FIRST else (short, long)

    first_curve = curve.fork()
    first_pnl = position_pnl(first_curve, first)

    after_first = close_position_curve(first_curve, first.base_asset_amount)
    second_curve = curve.fork().with_reserves(
        after_first.base_asset_reserve, after_first.quote_asset_reserve,
    )
    second_pnl = position_pnl(second_curve, second)

    if order == CloseOrder.LONGS_FIRST:
        return SequentialResult(long_pnl=first_pnl, short_pnl=second_pnl)
    return SequentialResult(long_pnl=second_pnl, short_pnl=first_pnl)


def value_market(curve: Curve, positions: SyntheticPositions) -> TerminalValuation:
    """Direct and sequential valuation of one market against its rescaled curve."""
    net = positions.net
    acquired = base_asset_value(curve, net)
    sequential = sequential_valuation(curve, positions.long, positions.short)
    return TerminalValuation(
        quote_asset_acquired=acquired,
        quote_asset_acquired_long=base_asset_value(curve, positions.long),
        quote_asset_acquired_short=base_asset_value(curve, positions.short),
        terminal_pnl_1=position_pnl(curve, net),
        terminal_pnl_2=sequential.total_pnl,
        exit_price=exit_price(acquired, net.base_asset_amount),
        terminal_price=terminal_price(curve, net.base_asset_amount),
    )
