"""Fixed-point arithmetic for the solvency engine.

All curve math runs on plain Python ints bound to a named decimal `Scale`.
Conversion to human-readable decimals happens only when a report is built.

Rounding is explicit: `tdiv` truncates toward zero for every sign
combination (Python's `//` floors toward -inf, which differs on negative
operands). Products are always formed before the scale-reducing division.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN

from .errors import ArithmeticFault, ScaleMismatchError


@dataclass(frozen=True)
class Scale:
    """A named power-of-ten precision."""

    name: str
    factor: int

    def __post_init__(self) -> None:
        if not isinstance(self.factor, int) or isinstance(self.factor, bool) or self.factor <= 0:
            raise ValueError(f"scale factor must be a positive int: {self.factor!r}")

    @property
    def decimals(self) -> int:
        return len(str(self.factor)) - 1


RESERVE = Scale("reserve", 10**13)
PEG = Scale("peg", 10**3)
QUOTE = Scale("quote", 10**6)
MARK_PRICE = Scale("mark_price", 10**10)
MARGIN = Scale("margin", 10**4)
FUNDING_RATE = Scale("funding_rate", 10**14)

AMM_RESERVE_PRECISION: int = RESERVE.factor
PEG_PRECISION: int = PEG.factor
QUOTE_PRECISION: int = QUOTE.factor
MARK_PRICE_PRECISION: int = MARK_PRICE.factor

# Ratios between scales (exact, all factors are powers of ten)
AMM_TO_QUOTE_PRECISION_RATIO: int = RESERVE.factor // QUOTE.factor  # 1e7
AMM_TIMES_PEG_TO_QUOTE_PRECISION_RATIO: int = RESERVE.factor * PEG.factor // QUOTE.factor  # 1e10
PRICE_TO_QUOTE_PRECISION_RATIO: int = MARK_PRICE.factor // QUOTE.factor  # 1e4
# Funding deltas (FUNDING_RATE) times base (RESERVE), down to MARK_PRICE
FUNDING_PAYMENT_PRECISION: int = FUNDING_RATE.factor // MARK_PRICE.factor  # 1e4


# -- Integer helpers ---------------------------------------------------------

def tdiv(numerator: int, denominator: int) -> int:
    """Integer division truncating toward zero.

    Raises `ArithmeticFault` on a zero denominator.
    """
    if denominator == 0:
        raise ArithmeticFault("division by zero")
    q = abs(numerator) // abs(denominator)
    return q if (numerator >= 0) == (denominator > 0) else -q


def mul_div(a: int, b: int, c: int) -> int:
    """``a * b / c`` with the product formed first, truncated toward zero."""
    return tdiv(a * b, c)


# -- Scaled amounts ----------------------------------------------------------

@dataclass(frozen=True)
class ScaledAmount:
    """An integer bound to a fixed decimal scale.

    Addition, subtraction and ordering require equal scales. Mixing scales
    goes through `mul`, `div` or `rescale`, which name the target scale.
    """

    value: int
    scale: Scale

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise TypeError("value must be an int")
        if not isinstance(self.scale, Scale):
            raise TypeError("scale must be a Scale")

    @classmethod
    def zero(cls, scale: Scale) -> "ScaledAmount":
        return cls(0, scale)

    def _check(self, other: "ScaledAmount") -> None:
        if not isinstance(other, ScaledAmount):
            raise TypeError(f"expected ScaledAmount, got {type(other).__name__}")
        if other.scale != self.scale:
            raise ScaleMismatchError(f"cannot combine {self.scale.name} with {other.scale.name}")

    def __add__(self, other: "ScaledAmount") -> "ScaledAmount":
        self._check(other)
        return ScaledAmount(self.value + other.value, self.scale)

    def __sub__(self, other: "ScaledAmount") -> "ScaledAmount":
        self._check(other)
        return ScaledAmount(self.value - other.value, self.scale)

    def __neg__(self) -> "ScaledAmount":
        return ScaledAmount(-self.value, self.scale)

    def __abs__(self) -> "ScaledAmount":
        return ScaledAmount(abs(self.value), self.scale)

    def __lt__(self, other: "ScaledAmount") -> bool:
        self._check(other)
        return self.value < other.value

    def __le__(self, other: "ScaledAmount") -> bool:
        self._check(other)
        return self.value <= other.value

    def __gt__(self, other: "ScaledAmount") -> bool:
        self._check(other)
        return self.value > other.value

    def __ge__(self, other: "ScaledAmount") -> bool:
        self._check(other)
        return self.value >= other.value

    def is_zero(self) -> bool:
        return self.value == 0

    def rescale(self, target: Scale) -> "ScaledAmount":
        """Same quantity expressed in `target` (truncated toward zero)."""
        if target == self.scale:
            return self
        return ScaledAmount(mul_div(self.value, target.factor, self.scale.factor), target)

    def to_decimal(self) -> Decimal:
        return to_decimal(self)

    def to_float(self) -> float:
        return float(to_decimal(self))


def mul(a: ScaledAmount, b: ScaledAmount, target: Scale) -> ScaledAmount:
    """``a * b`` expressed in `target`: ``a.v * b.v * t / (a.s * b.s)``."""
    numerator = a.value * b.value * target.factor
    return ScaledAmount(tdiv(numerator, a.scale.factor * b.scale.factor), target)


def div(a: ScaledAmount, b: ScaledAmount, target: Scale) -> ScaledAmount:
    """``a / b`` expressed in `target`: ``a.v * b.s * t / (a.s * b.v)``."""
    if b.value == 0:
        raise ArithmeticFault(f"division by zero {b.scale.name} amount")
    numerator = a.value * b.scale.factor * target.factor
    return ScaledAmount(tdiv(numerator, a.scale.factor * b.value), target)


def max_amount(a: ScaledAmount, b: ScaledAmount) -> ScaledAmount:
    return a if a >= b else b


def min_amount(a: ScaledAmount, b: ScaledAmount) -> ScaledAmount:
    return a if a <= b else b


def abs_amount(a: ScaledAmount) -> ScaledAmount:
    return abs(a)


# -- Decimal conversion ------------------------------------------------------

def to_decimal(a: ScaledAmount) -> Decimal:
    """Exact decimal value of `a` (no rounding)."""
    return Decimal(a.value).scaleb(-a.scale.decimals)


def from_decimal(x: Decimal | int | str, scale: Scale) -> ScaledAmount:
    """Inverse of `to_decimal`; digits past the scale's resolution are truncated."""
    d = Decimal(x).scaleb(scale.decimals).to_integral_value(rounding=ROUND_DOWN)
    return ScaledAmount(int(d), scale)


def round_decimal(x: float, decimals: int = 3) -> float:
    """Round half up on the scaled float: ``floor(x * 10^d + 0.5) / 10^d``."""
    factor = 10**decimals
    return math.floor(x * factor + 0.5) / factor
