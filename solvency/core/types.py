"""Data types for the solvency engine.

All types are frozen dataclasses (immutable). A "what-if" valuation that
moves reserves works on a `Curve.fork()` / `Curve.with_reserves()` copy,
never on the snapshot curve itself.

Units/conventions (see `fixed_point` for the scale factors):
- reserves, `sqrt_k` and every `base_asset_amount` are RESERVE scaled (1e13).
- `peg_multiplier` is PEG scaled (1e3).
- collateral, cost bases and fee counters are QUOTE scaled (1e6).
- `cumulative_funding_rate` is FUNDING_RATE scaled (1e14).
- `margin_ratio_initial` is MARGIN scaled (1e4).
- `base_asset_amount` is signed (long > 0, short < 0).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, unique
from typing import Literal, Tuple


AssetType = Literal["base", "quote"]


@unique
class PositionDirection(Enum):
    LONG = "long"
    SHORT = "short"


@unique
class SwapDirection(Enum):
    """Whether the input asset is added to or removed from its reserve."""

    ADD = "add"
    REMOVE = "remove"


def _require_int(value: object, name: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class Curve:
    """Constant-product AMM state backing one market."""

    base_asset_reserve: int
    quote_asset_reserve: int
    sqrt_k: int
    peg_multiplier: int
    cumulative_funding_rate: int = 0
    total_fee: int = 0
    total_fee_minus_distributions: int = 0

    def __post_init__(self) -> None:
        for name in (
            "base_asset_reserve",
            "quote_asset_reserve",
            "sqrt_k",
            "peg_multiplier",
            "cumulative_funding_rate",
            "total_fee",
            "total_fee_minus_distributions",
        ):
            _require_int(getattr(self, name), name)
        if self.base_asset_reserve < 0 or self.quote_asset_reserve < 0:
            raise ValueError("reserves must be non-negative")
        if self.sqrt_k < 0:
            raise ValueError("sqrt_k must be non-negative")
        if self.peg_multiplier < 0:
            raise ValueError("peg_multiplier must be non-negative")

    @property
    def invariant_k(self) -> int:
        return self.sqrt_k * self.sqrt_k

    def fork(self) -> "Curve":
        """Independent copy for a simulated swap."""
        return replace(self)

    def with_reserves(self, base_asset_reserve: int, quote_asset_reserve: int) -> "Curve":
        return replace(
            self,
            base_asset_reserve=base_asset_reserve,
            quote_asset_reserve=quote_asset_reserve,
        )


@dataclass(frozen=True)
class Market:
    """One tradable instrument and its curve, as read from the snapshot."""

    index: int
    symbol: str
    base_asset_amount: int
    base_asset_amount_long: int
    base_asset_amount_short: int
    margin_ratio_initial: int
    curve: Curve
    initialized: bool = True

    def __post_init__(self) -> None:
        _require_int(self.index, "index")
        if self.index < 0:
            raise ValueError("index must be non-negative")
        if not isinstance(self.symbol, str) or not self.symbol:
            raise TypeError("symbol must be a non-empty string")
        _require_int(self.base_asset_amount, "base_asset_amount")
        _require_int(self.base_asset_amount_long, "base_asset_amount_long")
        _require_int(self.base_asset_amount_short, "base_asset_amount_short")
        _require_int(self.margin_ratio_initial, "margin_ratio_initial")
        if self.base_asset_amount_long < 0:
            raise ValueError("base_asset_amount_long must be non-negative")
        if self.base_asset_amount_short > 0:
            raise ValueError("base_asset_amount_short must be non-positive")
        if self.margin_ratio_initial < 0:
            raise ValueError("margin_ratio_initial must be non-negative")
        if not isinstance(self.curve, Curve):
            raise TypeError("curve must be a Curve")
        if not isinstance(self.initialized, bool):
            raise TypeError("initialized must be a bool")


@dataclass(frozen=True)
class RawPosition:
    """A trader position as stored in the snapshot."""

    market_index: int
    base_asset_amount: int
    quote_asset_amount: int
    last_cumulative_funding_rate: int = 0

    def __post_init__(self) -> None:
        _require_int(self.market_index, "market_index")
        _require_int(self.base_asset_amount, "base_asset_amount")
        _require_int(self.quote_asset_amount, "quote_asset_amount")
        _require_int(self.last_cumulative_funding_rate, "last_cumulative_funding_rate")
        if self.market_index < 0:
            raise ValueError("market_index must be non-negative")


@dataclass(frozen=True)
class SyntheticPosition:
    """Aggregate exposure derived per market (net, long-only or short-only)."""

    market_index: int
    base_asset_amount: int
    quote_asset_amount: int
    last_cumulative_funding_rate: int
    open_orders: int = 0


# Both raw and synthetic positions are valued by the same curve functions.
AnyPosition = RawPosition | SyntheticPosition


@dataclass(frozen=True)
class AccountSnapshot:
    """One trader's collateral (QUOTE scaled) and positions."""

    account_id: str
    collateral: int
    positions: Tuple[RawPosition, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.account_id, str) or not self.account_id:
            raise TypeError("account_id must be a non-empty string")
        _require_int(self.collateral, "collateral")
        if self.collateral < 0:
            raise ValueError("collateral must be non-negative")
        if not isinstance(self.positions, tuple):
            raise TypeError("positions must be a tuple")
        for p in self.positions:
            if not isinstance(p, RawPosition):
                raise TypeError("positions must contain RawPosition values")
