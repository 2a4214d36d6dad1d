"""`solvency.core`: pure valuation and reconciliation engine.

- deterministic, integer-only curve math (fixed-point scales in `fixed_point`),
- immutable inputs (frozen dataclasses); what-if swaps run on forked curves,
- floats appear only in the assembled report records.

Public API:
- `build_report(markets, accounts, vault_balance, total_settled_collateral) -> SolvencyReport`
- `calculate_budgeted_k(curve, net_base, cost) -> KMultiplier`
- `aggregate_positions(accounts, markets) -> AggregationResult`
- `value_market(curve, positions) -> TerminalValuation`
"""

from .aggregator import AggregationResult, aggregate_positions
from .budgeted_k import KMultiplier, calculate_budgeted_k, rescale_curve
from .engine import SolvencyReport, build_report
from .errors import (
    ArithmeticFault,
    CurveInvariantError,
    MissingAccountFault,
    ScaleMismatchError,
    SolvencyError,
    UnknownMarketFault,
)
from .report import AggregateReport, MarketReport, report_to_json
from .terminal import CloseOrder, TerminalValuation, sequential_valuation, value_market
from .types import AccountSnapshot, Curve, Market, RawPosition, SyntheticPosition

__all__ = [
    "build_report",
    "SolvencyReport",
    "aggregate_positions",
    "AggregationResult",
    "calculate_budgeted_k",
    "rescale_curve",
    "KMultiplier",
    "value_market",
    "sequential_valuation",
    "CloseOrder",
    "TerminalValuation",
    "MarketReport",
    "AggregateReport",
    "report_to_json",
    "AccountSnapshot",
    "Curve",
    "Market",
    "RawPosition",
    "SyntheticPosition",
    "SolvencyError",
    "ArithmeticFault",
    "CurveInvariantError",
    "MissingAccountFault",
    "ScaleMismatchError",
    "UnknownMarketFault",
]
