from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

BASE = 10**13
R = 10**6 * BASE


def _snapshot() -> dict:
    return {
        "version": 1,
        "markets": [
            {
                "index": 0,
                "base_asset_amount": 10 * BASE,
                "base_asset_amount_long": 10 * BASE,
                "base_asset_amount_short": 0,
                "margin_ratio_initial": 1_000,
                "amm": {"base_asset_reserve": R, "quote_asset_reserve": R, "sqrt_k": R, "peg_multiplier": 1_000},
            }
        ],
        "user_accounts": {"alice": {"collateral": 1_000_000_000}},
        "user_positions": [
            {
                "user": "alice",
                "positions": [
                    {"market_index": 0, "base_asset_amount": 10 * BASE, "quote_asset_amount": 10_000_000},
                ],
            }
        ],
    }


def _run(tmp_path: Path, snapshot: dict) -> subprocess.CompletedProcess:
    repo_root = Path(__file__).resolve().parents[2]
    tool = repo_root / "tools" / "solvency_report.py"

    snapshot_path = tmp_path / "snapshot.json"
    snapshot_path.write_text(json.dumps(snapshot), encoding="utf-8")
    config_path = tmp_path / "report.yaml"
    config_path.write_text(
        "vault_balance: '990'\ntotal_settled_collateral: '1000'\nsymbols:\n  0: SOL-PERP\n",
        encoding="utf-8",
    )
    out_path = tmp_path / "report.json"
    proc = subprocess.run(
        [
            sys.executable, str(tool),
            "--snapshot", str(snapshot_path),
            "--config", str(config_path),
            "--out", str(out_path),
        ],
        capture_output=True,
        text=True,
    )
    return proc


def test_solvency_report_tool_writes_records(tmp_path: Path) -> None:
    proc = _run(tmp_path, _snapshot())
    assert proc.returncode == 0, proc.stderr

    records = json.loads((tmp_path / "report.json").read_text(encoding="utf-8"))
    assert [r["marketSymbol"] for r in records] == ["SOL-PERP", "ALL"]
    assert records[-1]["vaultsBalance"] == 990.0
    assert records[0]["terminalPnl1"] == records[0]["localPnl"]


def test_solvency_report_tool_fails_on_unknown_account(tmp_path: Path) -> None:
    snapshot = _snapshot()
    snapshot["user_positions"][0]["user"] = "mallory"
    proc = _run(tmp_path, snapshot)
    assert proc.returncode != 0
    assert "mallory" in proc.stderr
