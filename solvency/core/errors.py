"""Exception types for the solvency engine.

Arithmetic faults abort the computation for a single market; snapshot
consistency faults (missing account, unknown market) abort the whole run.
"""

from __future__ import annotations


class SolvencyError(Exception):
    """Base class for every error raised by this package."""


class ArithmeticFault(SolvencyError, ArithmeticError):
    """Raised on division by zero or when a curve would collapse."""


class ScaleMismatchError(SolvencyError, ValueError):
    """Raised when two amounts of different precision scales are combined."""


class MissingAccountFault(SolvencyError, LookupError):
    """Raised when a position book references an unknown user account."""

    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(f"position book references unknown account {account_id!r}")


class UnknownMarketFault(SolvencyError, LookupError):
    """Raised when a position references a market index absent from the snapshot."""

    def __init__(self, market_index: int) -> None:
        self.market_index = market_index
        super().__init__(f"position references unknown market index {market_index}")


class CurveInvariantError(SolvencyError):
    """Raised when a curve violates one or more invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"curve invariant violations: {', '.join(violations)}")
