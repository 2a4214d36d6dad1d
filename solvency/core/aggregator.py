"""
Position aggregation: bottom-up PnL, cost bases and collateral totals.

Runs against the snapshot (pre-rescale) curves. Accumulators are explicit
values returned to the caller; nothing is kept in module state.

Per account:
    free_collateral        = max(0, collateral + sum(pnl) - margin_requirement)
    withdrawable_collateral = min(collateral, free_collateral)

Positions with zero base amount are skipped entirely: no cost basis, no
PnL and no margin contribution.

A position that cannot be valued against its curve (`ArithmeticFault`)
marks its market as faulted: the market's local PnL is no longer defined.
The owning account still contributes its collateral to the realised total,
but its PnL, margin and withdrawable figures are undefined (`None`) and it
is left out of the withdrawable total and listed in `faulted_accounts`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .amm import base_asset_value, position_pnl
from .errors import ArithmeticFault, UnknownMarketFault
from .fixed_point import (
    MARGIN,
    QUOTE,
    ScaledAmount,
    max_amount,
    min_amount,
    mul,
)
from .types import AccountSnapshot, Market, RawPosition

logger = logging.getLogger(__name__)


def _quote_zero() -> ScaledAmount:
    return ScaledAmount.zero(QUOTE)


@dataclass
class MarketAccumulator:
    """Running per-market totals (QUOTE precision)."""

    local_pnl: ScaledAmount = field(default_factory=_quote_zero)
    long_cost_basis: ScaledAmount = field(default_factory=_quote_zero)
    short_cost_basis: ScaledAmount = field(default_factory=_quote_zero)
    position_count: int = 0
    faulted: bool = False

    def add_position(self, position: RawPosition, pnl: Optional[ScaledAmount]) -> None:
        """Fold one position in; `pnl=None` marks a position that could not be valued."""
        if pnl is None:
            self.faulted = True
        else:
            self.local_pnl = self.local_pnl + pnl
        cost = ScaledAmount(position.quote_asset_amount, QUOTE)
        if position.base_asset_amount > 0:
            self.long_cost_basis = self.long_cost_basis + cost
        else:
            self.short_cost_basis = self.short_cost_basis + cost
        self.position_count += 1


@dataclass(frozen=True)
class AccountSummary:
    account_id: str
    collateral: ScaledAmount
    total_pnl: Optional[ScaledAmount]
    margin_requirement: Optional[ScaledAmount]
    free_collateral: Optional[ScaledAmount]
    withdrawable_collateral: Optional[ScaledAmount]
    faulted_markets: Tuple[int, ...] = ()


@dataclass
class AggregationResult:
    """Everything the valuation and report passes need from the accounts."""

    markets: Dict[int, MarketAccumulator] = field(default_factory=dict)
    realised_collateral: ScaledAmount = field(default_factory=_quote_zero)
    withdrawable_collateral: ScaledAmount = field(default_factory=_quote_zero)
    accounts: list[AccountSummary] = field(default_factory=list)
    faulted_accounts: list[str] = field(default_factory=list)

    def market(self, index: int) -> MarketAccumulator:
        acc = self.markets.get(index)
        if acc is None:
            acc = MarketAccumulator()
            self.markets[index] = acc
        return acc


def net_quote_asset_amount(net_base: int, long_cost_basis: int, short_cost_basis: int) -> int:
    """Net cost basis for the aggregate position.

    Positive net exposure: long - short. Otherwise (including zero): short - long.
    Both cost bases are taken as magnitudes.
    """
    long_cost = abs(long_cost_basis)
    short_cost = abs(short_cost_basis)
    if net_base > 0:
        return long_cost - short_cost
    return short_cost - long_cost


def margin_requirement(market: Market, position: RawPosition) -> ScaledAmount:
    """Initial margin for one position: ``base_asset_value * margin_ratio_initial``."""
    value = ScaledAmount(base_asset_value(market.curve, position), QUOTE)
    ratio = ScaledAmount(market.margin_ratio_initial, MARGIN)
    return mul(value, ratio, QUOTE)


def summarize_account(
    account: AccountSnapshot,
    markets: Mapping[int, Market],
    result: AggregationResult,
) -> AccountSummary:
    """Fold one account into `result` and return its collateral summary."""
    collateral = ScaledAmount(account.collateral, QUOTE)
    total_pnl = _quote_zero()
    requirement = _quote_zero()
    faulted: list[int] = []

    for position in account.positions:
        if position.base_asset_amount == 0:
            continue
        market = markets.get(position.market_index)
        if market is None:
            raise UnknownMarketFault(position.market_index)

        try:
            pnl = ScaledAmount(position_pnl(market.curve, position, with_funding=True), QUOTE)
            position_requirement = margin_requirement(market, position)
        except ArithmeticFault as exc:
            logger.warning(
                "account %s: position in market %d not valued (%s)",
                account.account_id,
                position.market_index,
                exc,
            )
            faulted.append(position.market_index)
            result.market(position.market_index).add_position(position, None)
            continue

        total_pnl = total_pnl + pnl
        requirement = requirement + position_requirement
        result.market(position.market_index).add_position(position, pnl)

    if faulted:
        return AccountSummary(
            account_id=account.account_id,
            collateral=collateral,
            total_pnl=None,
            margin_requirement=None,
            free_collateral=None,
            withdrawable_collateral=None,
            faulted_markets=tuple(faulted),
        )

    free = max_amount(_quote_zero(), collateral + total_pnl - requirement)
    withdrawable = min_amount(collateral, free)
    return AccountSummary(
        account_id=account.account_id,
        collateral=collateral,
        total_pnl=total_pnl,
        margin_requirement=requirement,
        free_collateral=free,
        withdrawable_collateral=withdrawable,
    )


def aggregate_positions(
    accounts: Iterable[AccountSnapshot],
    markets: Mapping[int, Market],
) -> AggregationResult:
    """Walk every account/position pair against the unmodified snapshot curves."""
    result = AggregationResult()
    for index in markets:
        result.market(index)

    for account in accounts:
        summary = summarize_account(account, markets, result)
        result.accounts.append(summary)
        result.realised_collateral = result.realised_collateral + summary.collateral
        if summary.withdrawable_collateral is None:
            result.faulted_accounts.append(summary.account_id)
        else:
            result.withdrawable_collateral = result.withdrawable_collateral + summary.withdrawable_collateral

    logger.debug(
        "aggregated %d accounts over %d markets (%d faulted accounts)",
        len(result.accounts),
        len(result.markets),
        len(result.faulted_accounts),
    )
    return result
