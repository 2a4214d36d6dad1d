"""Report records: per-market valuation rows and the aggregate solvency row.

Integer inputs are converted to floats here and nowhere else. Money fields
of a market row are rounded half-up to `REPORT_DECIMALS` (3) places; the
precision is not configurable, so reports from different runs diff cleanly.
`exitPrice` and the base amounts are reported unrounded. Aggregate
open-interest totals are sums of the rounded market values, every other
aggregate figure is converted once from its integer total.

`to_record()` emits the key names and ordering downstream report diffs
depend on.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Sequence

from .fixed_point import (
    MARK_PRICE,
    PEG,
    QUOTE,
    RESERVE,
    Scale,
    ScaledAmount,
    from_decimal,
    round_decimal,
    to_decimal,
)

AGGREGATE_SYMBOL = "ALL"
REPORT_DECIMALS = 3


def _num(value: int, scale: Scale) -> float:
    return float(to_decimal(ScaledAmount(value, scale)))


def _rounded(value: Optional[int], scale: Scale) -> Optional[float]:
    if value is None:
        return None
    return round_decimal(_num(value, scale), REPORT_DECIMALS)


def entry_price(cost_basis: int, base_asset_amount: int) -> Optional[float]:
    """``|cost_basis / base_asset_amount|`` as a quote price; None when flat."""
    if base_asset_amount == 0:
        return None
    quote = to_decimal(ScaledAmount(cost_basis, QUOTE))
    base = to_decimal(ScaledAmount(base_asset_amount, RESERVE))
    return round_decimal(float(abs(quote / base)), REPORT_DECIMALS)


@dataclass(frozen=True)
class MarketReport:
    market_symbol: str
    quote_acq: Optional[float]
    quote_acq_long: Optional[float]
    quote_acq_short: Optional[float]
    quote_paid: float
    quote_paid_long: float
    quote_paid_short: float
    terminal_pnl_1: Optional[float]
    terminal_pnl_2: Optional[float]
    local_pnl: Optional[float]
    pnl_divergence: Optional[float]
    exit_price: Optional[float]
    terminal_price: Optional[float]
    peg: float
    total_fee: Optional[float]
    total_fee_minus_distributions: Optional[float]
    base_asset_net: float
    base_asset_long: float
    base_asset_short: float
    entry_price_net: Optional[float]
    entry_price_long: Optional[float]
    entry_price_short: Optional[float]

    def to_record(self) -> dict[str, Any]:
        return {
            "marketSymbol": self.market_symbol,
            "quoteAcq": self.quote_acq,
            "quoteAcqLong": self.quote_acq_long,
            "quoteAcqShort": self.quote_acq_short,
            "quotePaid": self.quote_paid,
            "quotePaidLong": self.quote_paid_long,
            "quotePaidShort": self.quote_paid_short,
            "terminalPnl1": self.terminal_pnl_1,
            "terminalPnl2": self.terminal_pnl_2,
            "localPnl": self.local_pnl,
            "pnlDivergence": self.pnl_divergence,
            "exitPrice": self.exit_price,
            "terminalPrice": self.terminal_price,
            "peg": self.peg,
            "total_fee": self.total_fee,
            "total_fee_minus_distributions": self.total_fee_minus_distributions,
            "baseAssetNet": self.base_asset_net,
            "baseAssetLong": self.base_asset_long,
            "baseAssetShort": self.base_asset_short,
            "entryPriceNet": self.entry_price_net,
            "entryPriceLong": self.entry_price_long,
            "entryPriceShort": self.entry_price_short,
        }


@dataclass(frozen=True)
class AggregateReport:
    total_net_quote_oi: float
    total_long_quote_oi: float
    total_short_quote_oi: float
    total_quote_oi: float
    vaults_balance: float
    user_realise_collateral_local: float
    user_withdrawable_collateral_local: float
    user_realised_collateral_terminal_1: float
    terminal_user_pnl_1: float
    local_user_unrealised_pnl: float
    user_realised_collateral_terminal_2: float
    total_user_collateral_local: float
    levered_loss: float
    realised_collateral_shortfall: float
    withdrawable_collateral_shortfall: float
    total_pnl_divergence: float
    settled_collateral_shortfall: float
    total_settled_collateral: float

    def to_record(self) -> dict[str, Any]:
        return {
            "marketSymbol": AGGREGATE_SYMBOL,
            "totalNetQuoteOI": self.total_net_quote_oi,
            "totalLongQuoteOI": self.total_long_quote_oi,
            "totalShortQuoteOI": self.total_short_quote_oi,
            "totalQuoteOI": self.total_quote_oi,
            "vaultsBalance": self.vaults_balance,
            "userRealiseCollateralLocal": self.user_realise_collateral_local,
            "userWithdrawableCollateralLocal": self.user_withdrawable_collateral_local,
            "userRealisedCollateralTerminal1": self.user_realised_collateral_terminal_1,
            "terminalUserPnl1": self.terminal_user_pnl_1,
            "localUserUnrealisedPnl": self.local_user_unrealised_pnl,
            "userRealisedCollateralTerminal2": self.user_realised_collateral_terminal_2,
            "totalUserCollateralLocal": self.total_user_collateral_local,
            "leveredLoss": self.levered_loss,
            "realisedCollateralShortfall": self.realised_collateral_shortfall,
            "withdrawableCollateralShortfall": self.withdrawable_collateral_shortfall,
            "totalPnlDivergence": self.total_pnl_divergence,
            "settledCollateralShortfall": self.settled_collateral_shortfall,
            "totalSettledCollateral": self.total_settled_collateral,
        }


@dataclass(frozen=True)
class MarketFigures:
    """Integer inputs for one market row.

    `None` marks a figure that could not be computed: valuation fields when
    the rescale or terminal valuation faulted, `local_pnl` when one of the
    market's positions could not be valued.
    """

    symbol: str
    net_base: int
    long_base: int
    short_base: int
    net_quote: int
    long_quote: int
    short_quote: int
    local_pnl: Optional[int]
    peg_multiplier: int
    quote_acq: Optional[int] = None
    quote_acq_long: Optional[int] = None
    quote_acq_short: Optional[int] = None
    terminal_pnl_1: Optional[int] = None
    terminal_pnl_2: Optional[int] = None
    exit_price: Optional[int] = None
    terminal_price: Optional[int] = None
    total_fee: Optional[int] = None
    total_fee_minus_distributions: Optional[int] = None


def assemble_market_report(f: MarketFigures) -> MarketReport:
    divergence = None
    if f.terminal_pnl_1 is not None and f.local_pnl is not None:
        divergence = _rounded(f.local_pnl - f.terminal_pnl_1, QUOTE)
    return MarketReport(
        market_symbol=f.symbol,
        quote_acq=_rounded(f.quote_acq, QUOTE),
        quote_acq_long=_rounded(f.quote_acq_long, QUOTE),
        quote_acq_short=_rounded(f.quote_acq_short, QUOTE),
        quote_paid=round_decimal(_num(f.net_quote, QUOTE), REPORT_DECIMALS),
        quote_paid_long=round_decimal(_num(f.long_quote, QUOTE), REPORT_DECIMALS),
        quote_paid_short=round_decimal(_num(f.short_quote, QUOTE), REPORT_DECIMALS),
        terminal_pnl_1=_rounded(f.terminal_pnl_1, QUOTE),
        terminal_pnl_2=_rounded(f.terminal_pnl_2, QUOTE),
        local_pnl=_rounded(f.local_pnl, QUOTE),
        pnl_divergence=divergence,
        exit_price=None if f.exit_price is None else _num(f.exit_price, QUOTE),
        terminal_price=_rounded(f.terminal_price, MARK_PRICE),
        peg=round_decimal(_num(f.peg_multiplier, PEG), REPORT_DECIMALS),
        total_fee=_rounded(f.total_fee, QUOTE),
        total_fee_minus_distributions=_rounded(f.total_fee_minus_distributions, QUOTE),
        base_asset_net=_num(f.net_base, RESERVE),
        base_asset_long=_num(f.long_base, RESERVE),
        base_asset_short=_num(f.short_base, RESERVE),
        entry_price_net=entry_price(f.net_quote, f.net_base),
        entry_price_long=entry_price(f.long_quote, f.long_base),
        entry_price_short=entry_price(f.short_quote, f.short_base),
    )


def assemble_aggregate_report(
    market_reports: Sequence[MarketReport],
    figures: Sequence[MarketFigures],
    realised_collateral: ScaledAmount,
    withdrawable_collateral: ScaledAmount,
    vault_balance: ScaledAmount,
    total_settled_collateral: ScaledAmount,
) -> AggregateReport:
    """Combine market rows with collateral totals and the injected custodial balances.

    Markets whose valuation failed contribute their local PnL (when it
    exists) but no terminal figures.
    """
    zero = ScaledAmount.zero(QUOTE)
    terminal_1 = zero
    terminal_2 = zero
    local = zero
    for f in figures:
        if f.local_pnl is not None:
            local = local + ScaledAmount(f.local_pnl, QUOTE)
        if f.terminal_pnl_1 is not None and f.terminal_pnl_2 is not None:
            terminal_1 = terminal_1 + ScaledAmount(f.terminal_pnl_1, QUOTE)
            terminal_2 = terminal_2 + ScaledAmount(f.terminal_pnl_2, QUOTE)

    total_net = sum((r.quote_acq for r in market_reports if r.quote_acq is not None), 0.0)
    total_long = sum((r.quote_acq_long for r in market_reports if r.quote_acq_long is not None), 0.0)
    total_short = sum((r.quote_acq_short for r in market_reports if r.quote_acq_short is not None), 0.0)

    collateral_terminal_1 = realised_collateral + terminal_1
    collateral_terminal_2 = realised_collateral + terminal_2
    collateral_local = realised_collateral + local

    return AggregateReport(
        total_net_quote_oi=total_net,
        total_long_quote_oi=total_long,
        total_short_quote_oi=total_short,
        total_quote_oi=total_long + total_short,
        vaults_balance=vault_balance.to_float(),
        user_realise_collateral_local=realised_collateral.to_float(),
        user_withdrawable_collateral_local=withdrawable_collateral.to_float(),
        user_realised_collateral_terminal_1=collateral_terminal_1.to_float(),
        terminal_user_pnl_1=terminal_1.to_float(),
        local_user_unrealised_pnl=local.to_float(),
        user_realised_collateral_terminal_2=collateral_terminal_2.to_float(),
        total_user_collateral_local=collateral_local.to_float(),
        levered_loss=(vault_balance - collateral_terminal_1).to_float(),
        realised_collateral_shortfall=(realised_collateral - vault_balance).to_float(),
        withdrawable_collateral_shortfall=(withdrawable_collateral - vault_balance).to_float(),
        total_pnl_divergence=(collateral_local - collateral_terminal_1).to_float(),
        settled_collateral_shortfall=(total_settled_collateral - vault_balance).to_float(),
        total_settled_collateral=total_settled_collateral.to_float(),
    )


def report_to_json(records: Sequence[dict[str, Any]], *, indent: Optional[int] = None) -> str:
    """Dump the flat record list (market rows followed by the aggregate row)."""
    return json.dumps(list(records), indent=indent, allow_nan=False)


def decimal_to_quote(value: Decimal | int | str | float) -> ScaledAmount:
    """Injected custodial balances arrive as decimals; hold them at QUOTE precision."""
    if isinstance(value, float):
        value = repr(value)
    return from_decimal(value, QUOTE)
