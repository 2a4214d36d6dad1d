"""
Snapshot and configuration boundary for the solvency engine.
"""

from .config import ReportConfig, config_from_dict, load_config
from .snapshot import Snapshot, join_accounts, load_snapshot, snapshot_from_dict

__all__ = [
    "ReportConfig",
    "config_from_dict",
    "load_config",
    "Snapshot",
    "join_accounts",
    "load_snapshot",
    "snapshot_from_dict",
]
