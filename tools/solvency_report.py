#!/usr/bin/env python3
"""
Build a solvency report from a snapshot JSON and a YAML run config.

This is glue only:
- No chain access happens here; the snapshot is read from disk.
- The report (market rows followed by the aggregate row) goes to stdout
  unless `--out` is given.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from solvency.core import build_report, report_to_json
from solvency.core.errors import SolvencyError
from solvency.integration import load_config, load_snapshot


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--snapshot", required=True, help="Path to the snapshot JSON")
    p.add_argument("--config", required=True, help="Path to the YAML run config")
    p.add_argument("--out", default="", help="Write JSON to this path (defaults to stdout)")
    p.add_argument("--indent", type=int, default=None, help="JSON indent (default: compact)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log per-market details")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(Path(args.config))
        snapshot = load_snapshot(Path(args.snapshot))
        report = build_report(
            snapshot.markets,
            snapshot.accounts,
            config.vault_balance,
            config.total_settled_collateral,
            symbols=config.symbols,
            strict_invariants=config.strict_invariants,
        )
    except (SolvencyError, ValueError, TypeError) as exc:
        print(f"[solvency-report] FAIL: {exc}", file=sys.stderr)
        return 1

    text = report_to_json(report.to_records(), indent=args.indent) + "\n"
    if args.out:
        Path(args.out).write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
