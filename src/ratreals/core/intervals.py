"""
Exact Rationals and Closed Rational Intervals.

Rationals are represented with `fractions.Fraction`, which provides
exact, arbitrary-precision arithmetic. Intervals are closed and
inclusive (`a:a` is a valid singleton). An empty intersection is
represented by `None` rather than by an empty interval.
"""

from dataclasses import dataclass
from fractions import Fraction

from ratreals.core.errors import InvalidIntervalError

type Rational = Fraction
"""
An exact rational number.
"""


type RationalLike = Fraction | int | str
"""
Values that can be converted into a `Rational` without loss: integers,
fractions and strings such as `"3/7"` or `"1.25"`. Floats are rejected
since they are approximations by construction.
"""


ZERO = Fraction(0)
ONE = Fraction(1)


def rational(x: RationalLike) -> Rational:
    """
    Convert a value into an exact rational.

    Raises:
        InvalidIntervalError: for floats and malformed strings.
    """
    if isinstance(x, Fraction):
        return x
    if isinstance(x, float):
        raise InvalidIntervalError(
            f"Refusing to build a rational from float {x!r}: "
            + "use a string or a Fraction instead.",
            label="float_input",
        )
    try:
        return Fraction(x)
    except (ValueError, TypeError, ZeroDivisionError) as e:
        raise InvalidIntervalError(
            f"Not a rational: {x!r}", label="bad_rational"
        ) from e


#####
##### Intervals
#####


@dataclass(frozen=True, init=False)
class RationalInterval:
    """
    A closed interval `[low, high]` with exact rational endpoints.

    Endpoints can be provided in any order and are sorted on
    construction, so that `low <= high` always holds.

    Attributes:
        low: The lower endpoint (inclusive).
        high: The upper endpoint (inclusive).
    """

    low: Rational
    high: Rational

    def __init__(self, a: RationalLike, b: RationalLike | None = None):
        lo = rational(a)
        hi = lo if b is None else rational(b)
        if hi < lo:
            lo, hi = hi, lo
        object.__setattr__(self, "low", lo)
        object.__setattr__(self, "high", hi)

    @staticmethod
    def point(q: RationalLike) -> "RationalInterval":
        return RationalInterval(q, q)

    @property
    def width(self) -> Rational:
        return self.high - self.low

    @property
    def midpoint(self) -> Rational:
        return (self.low + self.high) / 2

    @property
    def magnitude(self) -> Rational:
        """
        Largest absolute value of an element of the interval.
        """
        return max(abs(self.low), abs(self.high))

    @property
    def min_magnitude(self) -> Rational:
        """
        Smallest absolute value of an element of the interval, which is
        zero whenever the interval contains zero.
        """
        if self.contains_value(ZERO):
            return ZERO
        return min(abs(self.low), abs(self.high))

    def is_point(self) -> bool:
        return self.low == self.high

    def contains_value(self, x: RationalLike) -> bool:
        q = rational(x)
        return self.low <= q <= self.high

    def contains(self, other: "RationalInterval") -> bool:
        return self.low <= other.low and other.high <= self.high

    def intersection(
        self, other: "RationalInterval"
    ) -> "RationalInterval | None":
        lo = max(self.low, other.low)
        hi = min(self.high, other.high)
        if lo > hi:
            return None
        return RationalInterval(lo, hi)

    def intersects(self, other: "RationalInterval") -> bool:
        return self.intersection(other) is not None

    def distance(self, other: "RationalInterval") -> Rational:
        """
        Distance between two intervals, zero when they intersect.
        """
        if other.high < self.low:
            return self.low - other.high
        if self.high < other.low:
            return other.low - self.high
        return ZERO

    def split(
        self, cut: RationalLike
    ) -> "tuple[RationalInterval, RationalInterval]":
        c = rational(cut)
        if not self.contains_value(c):
            raise InvalidIntervalError(
                f"Cannot split {self} at {c}.", label="bad_split"
            )
        return RationalInterval(self.low, c), RationalInterval(c, self.high)

    def negate(self) -> "RationalInterval":
        return RationalInterval(-self.high, -self.low)

    def __neg__(self) -> "RationalInterval":
        return self.negate()

    def __add__(self, other: "RationalInterval") -> "RationalInterval":
        return RationalInterval(self.low + other.low, self.high + other.high)

    def __sub__(self, other: "RationalInterval") -> "RationalInterval":
        return RationalInterval(self.low - other.high, self.high - other.low)

    def __mul__(self, other: "RationalInterval") -> "RationalInterval":
        products = [
            self.low * other.low,
            self.low * other.high,
            self.high * other.low,
            self.high * other.high,
        ]
        return RationalInterval(min(products), max(products))

    def __truediv__(self, other: "RationalInterval") -> "RationalInterval":
        if other.contains_value(ZERO):
            raise ZeroDivisionError(f"Interval division by {other}")
        return self * RationalInterval(1 / other.high, 1 / other.low)

    def __str__(self) -> str:
        return f"{self.low}:{self.high}"


def interval(
    a: RationalLike, b: RationalLike | None = None
) -> RationalInterval:
    """
    Shorthand for building a `RationalInterval`.
    """
    return RationalInterval(a, b)


def halo(ab: RationalInterval, delta: Rational) -> RationalInterval:
    """
    Expand an interval by `delta` on both sides.
    """
    return RationalInterval(ab.low - delta, ab.high + delta)
