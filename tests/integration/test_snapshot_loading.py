"""Tests for solvency/integration/snapshot.py: snapshot decoding and account joins."""

from __future__ import annotations

import copy
import json

import pytest

from solvency.core.errors import MissingAccountFault
from solvency.core.types import RawPosition
from solvency.integration import join_accounts, load_snapshot, snapshot_from_dict

BASE = 10**13
R = 10**6 * BASE


def _raw() -> dict:
    return {
        "version": 1,
        "markets": [
            {
                "index": 0,
                "symbol": "SOL-PERP",
                "base_asset_amount": 4 * BASE,
                "base_asset_amount_long": 10 * BASE,
                "base_asset_amount_short": -6 * BASE,
                "margin_ratio_initial": 1_000,
                "amm": {
                    "base_asset_reserve": str(R),
                    "quote_asset_reserve": str(R),
                    "sqrt_k": str(R),
                    "peg_multiplier": 1_000,
                    "total_fee": 70,
                    "total_fee_minus_distributions": 50,
                },
            }
        ],
        "user_accounts": {"alice": {"collateral": 1_000_000_000}, "carol": {"collateral": 5}},
        "user_positions": [
            {
                "user": "alice",
                "positions": [
                    {"market_index": 0, "base_asset_amount": 10 * BASE, "quote_asset_amount": 10_000_000},
                ],
            }
        ],
    }


class TestSnapshotFromDict:
    def test_decodes_markets(self):
        snap = snapshot_from_dict(_raw())
        (market,) = snap.markets
        assert market.symbol == "SOL-PERP"
        assert market.curve.base_asset_reserve == R
        assert market.curve.total_fee_minus_distributions == 50
        assert market.curve.cumulative_funding_rate == 0
        assert market.initialized is True

    def test_default_symbol(self):
        raw = _raw()
        del raw["markets"][0]["symbol"]
        assert snapshot_from_dict(raw).markets[0].symbol == "MARKET-0"

    def test_only_position_owners_are_accounts(self):
        snap = snapshot_from_dict(_raw())
        assert [a.account_id for a in snap.accounts] == ["alice"]
        assert snap.accounts[0].positions[0].base_asset_amount == 10 * BASE

    def test_unknown_user_faults(self):
        raw = _raw()
        raw["user_positions"][0]["user"] = "mallory"
        with pytest.raises(MissingAccountFault) as exc:
            snapshot_from_dict(raw)
        assert exc.value.account_id == "mallory"

    def test_duplicate_market_index(self):
        raw = _raw()
        raw["markets"].append(copy.deepcopy(raw["markets"][0]))
        with pytest.raises(ValueError):
            snapshot_from_dict(raw)

    def test_missing_curve_field(self):
        raw = _raw()
        del raw["markets"][0]["amm"]["sqrt_k"]
        with pytest.raises(ValueError):
            snapshot_from_dict(raw)

    def test_bad_integer_string(self):
        raw = _raw()
        raw["markets"][0]["amm"]["sqrt_k"] = "1e19"
        with pytest.raises(ValueError):
            snapshot_from_dict(raw)

    def test_bool_is_not_an_int(self):
        raw = _raw()
        raw["markets"][0]["margin_ratio_initial"] = True
        with pytest.raises(TypeError):
            snapshot_from_dict(raw)

    def test_unsupported_version(self):
        raw = _raw()
        raw["version"] = 2
        with pytest.raises(ValueError):
            snapshot_from_dict(raw)

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps(_raw()), encoding="utf-8")
        snap = load_snapshot(path)
        assert len(snap.markets) == 1
        assert len(snap.accounts) == 1


class TestJoinAccounts:
    def test_duplicate_book(self):
        pos = RawPosition(market_index=0, base_asset_amount=BASE, quote_asset_amount=1)
        with pytest.raises(ValueError):
            join_accounts({"alice": 1}, [("alice", [pos]), ("alice", [])])

    def test_empty_book_kept(self):
        (acct,) = join_accounts({"alice": 7}, [("alice", [])])
        assert acct.collateral == 7
        assert acct.positions == ()
