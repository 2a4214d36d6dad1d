"""
Run configuration loaded from YAML.

Custodial balances are not derivable from the snapshot; they are injected
here as decimals (strings keep them exact):

    vault_balance: "4937519.836505"
    total_settled_collateral: "19493489.556705"
    strict_invariants: false # optional, raise on rescaled-curve violations
    symbols:                 # optional, market index -> display symbol
      0: SOL-PERP
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml


_ALLOWED_KEYS = {"vault_balance", "total_settled_collateral", "strict_invariants", "symbols"}


@dataclass(frozen=True)
class ReportConfig:
    vault_balance: Decimal
    total_settled_collateral: Decimal
    strict_invariants: bool = False
    symbols: Dict[int, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.vault_balance, Decimal):
            raise TypeError("vault_balance must be a Decimal")
        if not isinstance(self.total_settled_collateral, Decimal):
            raise TypeError("total_settled_collateral must be a Decimal")
        if not isinstance(self.strict_invariants, bool):
            raise TypeError("strict_invariants must be a bool")


def _decimal(value: Any, *, name: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise TypeError(f"{name} must be a decimal number")
    try:
        # str() first so YAML floats keep their written digits.
        d = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{name} is not a decimal number: {value!r}") from exc
    if not d.is_finite():
        raise ValueError(f"{name} must be finite")
    return d


def config_from_dict(obj: Mapping[str, Any]) -> ReportConfig:
    if not isinstance(obj, Mapping):
        raise TypeError("config must be a mapping")
    extra = set(obj) - _ALLOWED_KEYS
    if extra:
        raise ValueError(f"config has unknown keys: {sorted(extra)}")
    for key in ("vault_balance", "total_settled_collateral"):
        if key not in obj:
            raise ValueError(f"config missing required key {key!r}")

    symbols_raw = obj.get("symbols") or {}
    if not isinstance(symbols_raw, Mapping):
        raise TypeError("symbols must be a mapping")
    symbols: Dict[int, str] = {}
    for k, v in symbols_raw.items():
        if not isinstance(v, str) or not v:
            raise TypeError(f"symbols[{k!r}] must be a non-empty string")
        symbols[int(k)] = v

    return ReportConfig(
        vault_balance=_decimal(obj["vault_balance"], name="vault_balance"),
        total_settled_collateral=_decimal(obj["total_settled_collateral"], name="total_settled_collateral"),
        strict_invariants=obj.get("strict_invariants", False),
        symbols=symbols,
    )


def load_config(path: Path) -> ReportConfig:
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        raise ValueError(f"config file is empty: {path}")
    return config_from_dict(obj)
