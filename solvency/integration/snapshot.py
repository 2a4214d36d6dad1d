"""
Snapshot decoding: raw account records -> `Market` / `AccountSnapshot` values.

Goals:
- Fail-closed validation of every field (types, signs, duplicates).
- Joining position books to user accounts; an unknown user id is a
  data-consistency violation (`MissingAccountFault`), never skipped.

Expected layout (all amounts are raw scaled integers, or base-10 strings):

    {
      "version": 1,
      "markets": [{"index", "symbol", "initialized", "base_asset_amount",
                   "base_asset_amount_long", "base_asset_amount_short",
                   "margin_ratio_initial", "amm": {...}}],
      "user_accounts": {"<user id>": {"collateral": ...}},
      "user_positions": [{"user": "<user id>", "positions": [...]}]
    }

Only users that own a position book contribute to collateral totals.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence, Tuple

from ..core.errors import MissingAccountFault
from ..core.types import AccountSnapshot, Curve, Market, RawPosition


SNAPSHOT_VERSION = 1

_CURVE_FIELDS: Tuple[str, ...] = (
    "base_asset_reserve",
    "quote_asset_reserve",
    "sqrt_k",
    "peg_multiplier",
    "cumulative_funding_rate",
    "total_fee",
    "total_fee_minus_distributions",
)
_CURVE_OPTIONAL = {"cumulative_funding_rate", "total_fee", "total_fee_minus_distributions"}


def _require_str(value: Any, *, name: str, max_len: int = 512) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    if not value:
        raise ValueError(f"{name} must be non-empty")
    if len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str) -> int:
    # On-chain integers are often exported as decimal strings to survive JSON tooling.
    if isinstance(value, str):
        try:
            return int(value, 10)
        except ValueError as exc:
            raise ValueError(f"{name} must be a base-10 integer string") from exc
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    return int(value)


def _require_mapping(value: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{name} must be an object")
    return value


def _require_list(value: Any, *, name: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"{name} must be a list")
    return value


@dataclass(frozen=True)
class Snapshot:
    markets: Tuple[Market, ...]
    accounts: Tuple[AccountSnapshot, ...]


def curve_from_dict(obj: Mapping[str, Any]) -> Curve:
    obj = _require_mapping(obj, name="market.amm")
    kwargs: Dict[str, int] = {}
    for field in _CURVE_FIELDS:
        if field not in obj:
            if field in _CURVE_OPTIONAL:
                continue
            raise ValueError(f"market.amm missing required field {field!r}")
        kwargs[field] = _require_int(obj[field], name=f"amm.{field}")
    return Curve(**kwargs)


def market_from_dict(obj: Mapping[str, Any]) -> Market:
    obj = _require_mapping(obj, name="market")
    index = _require_int(obj.get("index"), name="market.index")
    symbol = obj.get("symbol", f"MARKET-{index}")
    initialized = obj.get("initialized", True)
    if not isinstance(initialized, bool):
        raise TypeError("market.initialized must be a bool")
    return Market(
        index=index,
        symbol=_require_str(symbol, name="market.symbol"),
        base_asset_amount=_require_int(obj.get("base_asset_amount"), name="market.base_asset_amount"),
        base_asset_amount_long=_require_int(
            obj.get("base_asset_amount_long"), name="market.base_asset_amount_long",
        ),
        base_asset_amount_short=_require_int(
            obj.get("base_asset_amount_short"), name="market.base_asset_amount_short",
        ),
        margin_ratio_initial=_require_int(obj.get("margin_ratio_initial"), name="market.margin_ratio_initial"),
        curve=curve_from_dict(obj.get("amm")),
        initialized=initialized,
    )


def position_from_dict(obj: Mapping[str, Any]) -> RawPosition:
    obj = _require_mapping(obj, name="position")
    return RawPosition(
        market_index=_require_int(obj.get("market_index"), name="position.market_index"),
        base_asset_amount=_require_int(obj.get("base_asset_amount"), name="position.base_asset_amount"),
        quote_asset_amount=_require_int(obj.get("quote_asset_amount"), name="position.quote_asset_amount"),
        last_cumulative_funding_rate=_require_int(
            obj.get("last_cumulative_funding_rate", 0), name="position.last_cumulative_funding_rate",
        ),
    )


def join_accounts(
    collateral_by_user: Mapping[str, int],
    position_books: Sequence[Tuple[str, Sequence[RawPosition]]],
) -> Tuple[AccountSnapshot, ...]:
    """Attach each position book to its owner's collateral."""
    seen: set[str] = set()
    out: list[AccountSnapshot] = []
    for user, positions in position_books:
        if user not in collateral_by_user:
            raise MissingAccountFault(user)
        if user in seen:
            raise ValueError(f"duplicate position book for user {user!r}")
        seen.add(user)
        out.append(
            AccountSnapshot(
                account_id=user,
                collateral=collateral_by_user[user],
                positions=tuple(positions),
            )
        )
    return tuple(out)


def snapshot_from_dict(obj: Mapping[str, Any]) -> Snapshot:
    """Decode and validate a raw snapshot mapping."""
    obj = _require_mapping(obj, name="snapshot")

    version = obj.get("version", SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    markets = tuple(market_from_dict(m) for m in _require_list(obj.get("markets"), name="snapshot.markets"))
    indexes = [m.index for m in markets]
    if len(set(indexes)) != len(indexes):
        raise ValueError("duplicate market index in snapshot.markets")

    users = _require_mapping(obj.get("user_accounts", {}), name="snapshot.user_accounts")
    collateral_by_user: Dict[str, int] = {}
    for user, account in users.items():
        user_s = _require_str(user, name="user_accounts key")
        account = _require_mapping(account, name=f"user_accounts[{user_s!r}]")
        collateral_by_user[user_s] = _require_int(account.get("collateral"), name=f"{user_s}.collateral")

    books: list[Tuple[str, list[RawPosition]]] = []
    for entry in _require_list(obj.get("user_positions"), name="snapshot.user_positions"):
        entry = _require_mapping(entry, name="user_positions entry")
        user_s = _require_str(entry.get("user"), name="user_positions.user")
        positions = [
            position_from_dict(p)
            for p in _require_list(entry.get("positions"), name="user_positions.positions")
        ]
        books.append((user_s, positions))

    return Snapshot(markets=markets, accounts=join_accounts(collateral_by_user, books))


def load_snapshot(path: Path) -> Snapshot:
    return snapshot_from_dict(json.loads(Path(path).read_text(encoding="utf-8")))
