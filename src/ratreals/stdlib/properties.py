"""
Validators for the Oracle Axioms.

Each validator queries an oracle in a way that exercises one of the
axioms listed in `ratreals.core.oracles` and returns whether the
observed answers are compatible with it. Validators are meant to be
used in tests, on fixed or randomized samples.

Unless specified otherwise, the tolerance used for a query defaults to
one tenth of the width of the query interval, or to a random rational
in `[1/100, 1000]` when the query is a single point. Randomness is
drawn from the `rng` argument (a seedable `random.Random`), or from the
`random` module's global generator when it is omitted.
"""

import random
from fractions import Fraction

from ratreals.core.answers import Answer, Maybe, No, Yes
from ratreals.core.errors import InvalidIntervalError
from ratreals.core.intervals import (
    ZERO,
    Rational,
    RationalInterval,
    RationalLike,
    halo,
    rational,
)
from ratreals.core.oracles import Oracle, tolerance

DEFAULT_LENGTH_SCALE = Fraction(1, 10)


def random_rational(
    rng: random.Random | None = None,
    max_numerator: int = 1000,
    max_denominator: int = 100,
) -> Rational:
    """
    A random positive rational `p/q` with `1 <= p <= max_numerator` and
    `1 <= q <= max_denominator`.
    """
    r = rng or random.Random()
    num = r.randint(1, max_numerator)
    den = r.randint(1, max_denominator)
    return Fraction(num, den)


def default_delta(
    ab: RationalInterval, rng: random.Random | None = None
) -> Rational:
    if ab.width == ZERO:
        return random_rational(rng)
    return ab.width * DEFAULT_LENGTH_SCALE


async def _query(
    o: Oracle,
    ab: RationalInterval,
    delta: RationalLike | None,
    rng: random.Random | None,
) -> Answer:
    d = default_delta(ab, rng) if delta is None else tolerance(delta)
    return await o(ab, d)


async def check_range(
    o: Oracle, interval: RationalInterval, delta: RationalLike
) -> bool:
    """
    Range: a `Yes` prophecy intersects the query and fits in its halo,
    and a `No` prophecy (if any) is disjoint from the query.
    """
    d = tolerance(delta)
    match await o(interval, d):
        case Yes(prophecy):
            return interval.intersects(prophecy) and halo(
                interval, d
            ).contains(prophecy)
        case No(prophecy):
            return prophecy is None or not interval.intersects(prophecy)
        case Maybe():
            return True


async def check_existence(
    o: Oracle,
    interval: RationalInterval | None = None,
    delta: RationalLike | None = None,
    *,
    rng: random.Random | None = None,
) -> bool:
    """
    Existence: the oracle answers `Yes` when queried with its own `yes`
    interval (or with `interval` if provided).
    """
    ab = o.yes if interval is None else interval
    return isinstance(await _query(o, ab, delta, rng), Yes)


async def check_separation(
    o: Oracle,
    prophecy: RationalInterval | None = None,
    midpoint: RationalLike | None = None,
    delta: RationalLike | None = None,
    *,
    rng: random.Random | None = None,
) -> bool:
    """
    Separation: for a prophecy `c:d` (the `yes` interval by default)
    and a point `m` strictly inside it (its midpoint by default), at
    least one of `c:m` and `m:d` yields `Yes`.

    Raises:
        InvalidIntervalError: if `midpoint` is not strictly inside.
    """
    cd = o.yes if prophecy is None else prophecy
    m = cd.midpoint if midpoint is None else rational(midpoint)
    if not cd.low < m < cd.high:
        raise InvalidIntervalError(
            f"Midpoint {m} must lie strictly inside {cd}.",
            label="bad_midpoint",
        )
    left, right = cd.split(m)
    if isinstance(await _query(o, left, delta, rng), Yes):
        return True
    return isinstance(await _query(o, right, delta, rng), Yes)


async def check_disjointness(
    o: Oracle,
    disjoint: RationalInterval,
    prophecy: RationalInterval | None = None,
    scale: RationalLike = DEFAULT_LENGTH_SCALE,
) -> bool:
    """
    Disjointness: an interval disjoint from a prophecy (the `yes`
    interval by default) is not answered `Yes` when queried with a
    tolerance smaller than their distance (`scale` times the distance).

    Raises:
        InvalidIntervalError: if the two intervals intersect.
    """
    cd = o.yes if prophecy is None else prophecy
    if disjoint.intersects(cd):
        raise InvalidIntervalError(
            f"Intervals {disjoint} and {cd} are not disjoint.",
            label="not_disjoint",
        )
    delta = cd.distance(disjoint) * rational(scale)
    return not isinstance(await o(disjoint, delta), Yes)


async def check_consistency(
    o: Oracle,
    prophecy: RationalInterval | None = None,
    test_interval: RationalInterval | None = None,
    delta: RationalLike | None = None,
    *,
    rng: random.Random | None = None,
) -> bool:
    """
    Consistency: an interval containing a prophecy (the `yes` interval
    by default) is never answered `No`.

    When `test_interval` is omitted, the prophecy is padded on both
    sides by random multiples of its width. If `test_interval` does not
    contain the prophecy, the check is vacuously satisfied.
    """
    cd = o.yes if prophecy is None else prophecy
    if test_interval is None:
        left = random_rational(rng) * cd.width
        right = random_rational(rng) * cd.width
        test_interval = RationalInterval(cd.low - left, cd.high + right)
    if not test_interval.contains(cd):
        return True
    answer = await _query(o, test_interval, delta, rng)
    return not isinstance(answer, No)


async def check_closed(
    o: Oracle,
    a: RationalLike,
    b: RationalLike | None = None,
    delta: RationalLike | None = None,
    *,
    rng: random.Random | None = None,
) -> bool:
    """
    Closed: for a point `a` whose every neighborhood contains a
    prophecy, the interval `a:b` (`a:a` by default) is answered `Yes`.
    Whether `a` has this property is not checked.
    """
    ab = RationalInterval(a, a if b is None else b)
    return isinstance(await _query(o, ab, delta, rng), Yes)


async def check_reasonableness(
    o: Oracle, interval: RationalInterval, delta: RationalLike
) -> bool:
    """
    Reasonableness: if a query is not answered `Maybe`, it is not
    answered `Maybe` for larger tolerances either (sampled at `2 delta`,
    `3 delta` and `delta + 1`).
    """
    d = tolerance(delta)
    if isinstance(await o(interval, d), Maybe):
        return True
    for larger in [2 * d, 3 * d, d + 1]:
        if isinstance(await o(interval, larger), Maybe):
            return False
    return True
