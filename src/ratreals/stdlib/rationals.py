"""
Oracles for Rational Numbers and Intervals.

Besides `from_rational` and `from_interval`, which are the standard way
to lift exact values into oracles, this module provides a family of
simple oracles for a rational `q` that illustrate the different ways an
oracle can honor the protocol:

- Singular oracle: `Yes(q:q)` if `q` is in `ab`, `No(q:q)` otherwise.
- Reflexive oracle: `Yes(ab)` if `q` is in `ab`, `No(q:q)` otherwise.
- Fuzzy reflexive oracle: `Yes(halo(ab, delta))` if `q` is in `ab`,
  `No()` otherwise.
- Halo oracle: with `I = halo(q:q, delta/2)`, `Yes(I)` if `I`
  intersects `ab`, `No(I)` otherwise.
- Random oracle: like the halo oracle, with `delta` replaced by a random
  `delta'` in `[0, delta]`.
- Bisection oracle of `(q, r0)`: shrinks `q:r_i` towards `q` by halving
  until it is decisive for the query.

None of these oracles has a narrowing strategy, so `narrow` refines
them by bisection through their call contract.
"""

from collections.abc import Callable
from typing import Any

from ratreals.core.answers import Answer, Maybe, No, Yes
from ratreals.core.errors import InvalidIntervalError
from ratreals.core.intervals import (
    Rational,
    RationalInterval,
    RationalLike,
    halo,
    rational,
)
from ratreals.core.oracles import (
    AlgorithmOracle,
    Oracle,
    TestOracle,
    make_algorithm_oracle,
    make_test_oracle,
    tolerance,
)
from ratreals.core.settings import current_settings

DEFAULT_TEST_FUNCTION_BOUND = 10**9


def from_rational(q: RationalLike) -> AlgorithmOracle:
    """
    The oracle of an exact rational, whose `yes` interval is `q:q`.
    """
    yes = RationalInterval.point(q)
    return make_algorithm_oracle(
        yes, lambda current, _: current, name=str(yes.low)
    )


def from_interval(i: RationalInterval) -> AlgorithmOracle:
    """
    An oracle for some unknown real number known to lie in `i`. Such an
    oracle can never be refined.
    """
    return make_algorithm_oracle(i, lambda current, _: current)


def from_test_function(
    test: Callable[[RationalInterval], bool],
    yes: RationalInterval | None = None,
) -> TestOracle:
    """
    Build an oracle from a boolean predicate over intervals, which must
    return `True` if and only if the interval contains the real number.

    Arguments:
        test: The boolean predicate.
        yes: Initial interval known to contain the real number. Defaults
            to `[-10^9, 10^9]`.
    """
    if yes is None:
        bound = DEFAULT_TEST_FUNCTION_BOUND
        yes = RationalInterval(-bound, bound)

    def predicate(i: RationalInterval) -> Answer:
        return Yes(i) if test(i) else No(i)

    return make_test_oracle(yes, predicate)


#####
##### Rational Oracle Family
#####


class _RationalOracle(Oracle):
    def __init__(self, q: RationalLike, yes: RationalInterval | None = None):
        self.q = rational(q)
        if yes is None:
            yes = RationalInterval.point(self.q)
        super().__init__(yes, name=type(self).__name__)


class SingularOracle(_RationalOracle):
    async def __call__(
        self, ab: RationalInterval, delta: RationalLike, input: Any = None
    ) -> Answer:
        point = RationalInterval.point(self.q)
        if ab.contains_value(self.q):
            return Yes(point)
        return No(point)


class ReflexiveOracle(_RationalOracle):
    async def __call__(
        self, ab: RationalInterval, delta: RationalLike, input: Any = None
    ) -> Answer:
        if ab.contains_value(self.q):
            return Yes(ab)
        return No(RationalInterval.point(self.q))


class FuzzyReflexiveOracle(_RationalOracle):
    async def __call__(
        self, ab: RationalInterval, delta: RationalLike, input: Any = None
    ) -> Answer:
        if ab.contains_value(self.q):
            return Yes(halo(ab, tolerance(delta)))
        return No()


class HaloOracle(_RationalOracle):
    async def __call__(
        self, ab: RationalInterval, delta: RationalLike, input: Any = None
    ) -> Answer:
        return _halo_answer(self.q, ab, tolerance(delta))


type RandomTolerance = Callable[[Rational], Rational]
"""
Given a tolerance `delta`, return a rational in `[0, delta]`.
"""


class RandomOracle(_RationalOracle):
    """
    A halo oracle whose tolerance is randomized. A callable passed as
    `input` overrides the random function for a single call.
    """

    def __init__(
        self,
        q: RationalLike,
        random_fn: RandomTolerance,
        yes: RationalInterval | None = None,
    ):
        super().__init__(q, yes)
        self.random_fn = random_fn

    async def __call__(
        self, ab: RationalInterval, delta: RationalLike, input: Any = None
    ) -> Answer:
        fn = input if callable(input) else self.random_fn
        d = tolerance(delta)
        d_prime = rational(fn(d))
        if not 0 <= d_prime <= d:
            raise InvalidIntervalError(
                f"Random tolerance {d_prime} is not within [0, {d}].",
                label="bad_random_tolerance",
            )
        return _halo_answer(self.q, ab, d_prime)


def _halo_answer(
    q: Rational, ab: RationalInterval, delta: Rational
) -> Answer:
    i = halo(RationalInterval.point(q), delta / 2)
    if ab.intersection(i) is not None:
        return Yes(i)
    return No(i)


class BisectionOracle(_RationalOracle):
    """
    Bisection oracle of `(q, r0)`.

    The oracle keeps a current approximation `r_i`. On each call, while
    `q:r_i` intersects the query but does not fit in its halo, `r_i` is
    moved halfway towards `q`. Both `r_i` and `yes` persist across calls.
    """

    def __init__(
        self,
        q: RationalLike,
        r0: RationalLike,
        yes: RationalInterval | None = None,
        *,
        max_iterations: int | None = None,
    ):
        q = rational(q)
        self.r = rational(r0)
        super().__init__(q, yes or RationalInterval(q, self.r))
        if max_iterations is None:
            settings = current_settings()
            max_iterations = settings.bisection_oracle_max_iterations
        self.max_iterations = max_iterations

    async def __call__(
        self, ab: RationalInterval, delta: RationalLike, input: Any = None
    ) -> Answer:
        d = tolerance(delta)
        async with self.queue:
            expanded = halo(ab, d)
            for _ in range(self.max_iterations):
                i = RationalInterval(self.q, self.r)
                if ab.intersection(i) is None:
                    return No(i)
                if expanded.contains(i):
                    return Yes(self._publish(i))
                self.r = (self.r + self.q) / 2
            return Maybe(RationalInterval(self.q, self.r))


def singular_oracle(
    q: RationalLike, yes: RationalInterval | None = None
) -> SingularOracle:
    return SingularOracle(q, yes)


def reflexive_oracle(
    q: RationalLike, yes: RationalInterval | None = None
) -> ReflexiveOracle:
    return ReflexiveOracle(q, yes)


def fuzzy_reflexive_oracle(
    q: RationalLike, yes: RationalInterval | None = None
) -> FuzzyReflexiveOracle:
    return FuzzyReflexiveOracle(q, yes)


def halo_oracle(
    q: RationalLike, yes: RationalInterval | None = None
) -> HaloOracle:
    return HaloOracle(q, yes)


def random_oracle(
    q: RationalLike,
    random_fn: RandomTolerance,
    yes: RationalInterval | None = None,
) -> RandomOracle:
    return RandomOracle(q, random_fn, yes)


def bisection_oracle(
    q: RationalLike,
    r0: RationalLike,
    yes: RationalInterval | None = None,
    *,
    max_iterations: int | None = None,
) -> BisectionOracle:
    return BisectionOracle(q, r0, yes, max_iterations=max_iterations)
