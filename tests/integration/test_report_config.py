"""Tests for solvency/integration/config.py: YAML run configuration."""

from __future__ import annotations

from decimal import Decimal

import pytest

from solvency.integration import config_from_dict, load_config


class TestConfigFromDict:
    def test_minimal(self):
        cfg = config_from_dict({"vault_balance": "4937519.836505", "total_settled_collateral": 10})
        assert cfg.vault_balance == Decimal("4937519.836505")
        assert cfg.total_settled_collateral == Decimal(10)
        assert cfg.strict_invariants is False
        assert cfg.symbols == {}

    def test_missing_balance(self):
        with pytest.raises(ValueError):
            config_from_dict({"vault_balance": "1"})

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            config_from_dict({"vault_balance": "1", "total_settled_collateral": "1", "vault": "2"})

    def test_non_numeric_balance(self):
        with pytest.raises(ValueError):
            config_from_dict({"vault_balance": "lots", "total_settled_collateral": "1"})

    def test_report_precision_not_configurable(self):
        # Rows are always rounded to 3 places; a rounding key is rejected rather than ignored.
        with pytest.raises(ValueError, match="decimals"):
            config_from_dict({"vault_balance": "1", "total_settled_collateral": "1", "decimals": 2})


class TestLoadConfig:
    def test_yaml_file(self, tmp_path):
        path = tmp_path / "report.yaml"
        path.write_text(
            "vault_balance: '990.5'\n"
            "total_settled_collateral: 1000\n"
            "strict_invariants: true\n"
            "symbols:\n"
            "  0: SOL-PERP\n"
            "  1: BTC-PERP\n",
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.vault_balance == Decimal("990.5")
        assert cfg.strict_invariants is True
        assert cfg.symbols == {0: "SOL-PERP", 1: "BTC-PERP"}

    def test_yaml_float_keeps_written_digits(self, tmp_path):
        path = tmp_path / "report.yaml"
        path.write_text("vault_balance: 0.1\ntotal_settled_collateral: 0.2\n", encoding="utf-8")
        cfg = load_config(path)
        assert cfg.vault_balance == Decimal("0.1")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "report.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)
