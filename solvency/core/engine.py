"""Single-snapshot solvency run.

``build_report(markets, accounts, vault_balance, total_settled_collateral)``
is the single entry point. It:

1. Aggregates every account against the snapshot (pre-rescale) curves.
2. For each initialized market, spends the fee budget on a k rescale of a
   copy of the curve and checks the curve invariants on the result.
3. Values the net/long/short aggregates against the rescaled copy.
4. Assembles one row per market followed by the aggregate row.

An `ArithmeticFault` while valuing a market, or any of its positions, yields
a row with `None` valuation fields (and `None` local PnL when a position
failed); snapshot consistency faults propagate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Sequence

from .aggregator import AggregationResult, MarketAccumulator, aggregate_positions, net_quote_asset_amount
from .budgeted_k import rescale_curve
from .errors import ArithmeticFault, CurveInvariantError
from .invariants import check_all
from .report import (
    AggregateReport,
    MarketFigures,
    MarketReport,
    assemble_aggregate_report,
    assemble_market_report,
    decimal_to_quote,
)
from .terminal import build_synthetic_positions, value_market
from .types import AccountSnapshot, Market

logger = logging.getLogger(__name__)

DecimalLike = Decimal | int | str | float


@dataclass(frozen=True)
class SolvencyReport:
    markets: list[MarketReport]
    aggregate: AggregateReport

    def to_records(self) -> list[dict[str, Any]]:
        """Flat ordered list: market rows followed by the aggregate row."""
        return [m.to_record() for m in self.markets] + [self.aggregate.to_record()]


def market_figures(
    market: Market,
    acc: MarketAccumulator,
    *,
    symbol: Optional[str] = None,
    strict_invariants: bool = False,
) -> MarketFigures:
    """Rescale and value one market; failed valuations keep only the local figures that exist."""
    long_quote = abs(acc.long_cost_basis.value)
    short_quote = abs(acc.short_cost_basis.value)
    net_quote = net_quote_asset_amount(market.base_asset_amount, long_quote, short_quote)
    base = MarketFigures(
        symbol=symbol or market.symbol,
        net_base=market.base_asset_amount,
        long_base=market.base_asset_amount_long,
        short_base=market.base_asset_amount_short,
        net_quote=net_quote,
        long_quote=long_quote,
        short_quote=short_quote,
        local_pnl=None if acc.faulted else acc.local_pnl.value,
        peg_multiplier=market.curve.peg_multiplier,
    )
    if acc.faulted:
        logger.warning("market %s: positions could not be valued, valuation skipped", base.symbol)
        return base

    positions = build_synthetic_positions(market, net_quote, long_quote, short_quote)
    try:
        rescaled, multiplier = rescale_curve(market.curve, market.base_asset_amount)
        violations = check_all(rescaled)
        if violations:
            if strict_invariants:
                raise CurveInvariantError(violations)
            logger.warning("market %s: rescaled curve violates %s", base.symbol, ", ".join(violations))
        valuation = value_market(rescaled, positions)
    except ArithmeticFault as exc:
        logger.warning("market %s: valuation skipped (%s)", base.symbol, exc)
        return base

    logger.debug(
        "market %s: k multiplier %d/%d, terminal pnl %d / %d, local pnl %d",
        base.symbol,
        multiplier.numerator,
        multiplier.denominator,
        valuation.terminal_pnl_1,
        valuation.terminal_pnl_2,
        base.local_pnl,
    )
    return replace(
        base,
        peg_multiplier=rescaled.peg_multiplier,
        quote_acq=valuation.quote_asset_acquired,
        quote_acq_long=valuation.quote_asset_acquired_long,
        quote_acq_short=valuation.quote_asset_acquired_short,
        terminal_pnl_1=valuation.terminal_pnl_1,
        terminal_pnl_2=valuation.terminal_pnl_2,
        exit_price=valuation.exit_price,
        terminal_price=valuation.terminal_price,
        total_fee=rescaled.total_fee,
        total_fee_minus_distributions=rescaled.total_fee_minus_distributions,
    )


def build_report(
    markets: Sequence[Market],
    accounts: Iterable[AccountSnapshot],
    vault_balance: DecimalLike,
    total_settled_collateral: DecimalLike,
    *,
    symbols: Optional[Mapping[int, str]] = None,
    strict_invariants: bool = False,
) -> SolvencyReport:
    """Value every initialized market and roll them into a solvency report."""
    by_index: dict[int, Market] = {}
    for market in markets:
        if market.index in by_index:
            raise ValueError(f"duplicate market index {market.index}")
        by_index[market.index] = market

    aggregation: AggregationResult = aggregate_positions(accounts, by_index)

    figures: list[MarketFigures] = []
    for market in sorted(by_index.values(), key=lambda m: m.index):
        if not market.initialized:
            logger.debug("market %d not initialized, skipping", market.index)
            continue
        figures.append(
            market_figures(
                market,
                aggregation.market(market.index),
                symbol=(symbols or {}).get(market.index),
                strict_invariants=strict_invariants,
            )
        )

    market_reports = [assemble_market_report(f) for f in figures]
    aggregate = assemble_aggregate_report(
        market_reports,
        figures,
        aggregation.realised_collateral,
        aggregation.withdrawable_collateral,
        decimal_to_quote(vault_balance),
        decimal_to_quote(total_settled_collateral),
    )
    return SolvencyReport(markets=market_reports, aggregate=aggregate)
