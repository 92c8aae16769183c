"""
The Oracle Protocol.

An oracle names a real number `x` computationally. It holds a
best-known interval `yes` that is guaranteed to contain `x`, and it can
be asked whether `x` lies within a target interval `ab`, up to a
fuzziness tolerance `delta`:

```python
answer = await oracle(ab, delta)
```

The answer is `Yes`, `No` or `Maybe` (see `ratreals.core.answers`).
Every oracle must satisfy the following axioms:

1. **Range**: every answer fits one of `Yes`, `No` or `Maybe`.
2. **Existence**: the oracle's own `yes` interval queried against itself
   yields `Yes`.
3. **Separation**: for any prophecy `c:d` and interior point `m`, at
   least one of `c:m` or `m:d` yields `Yes`.
4. **Disjointness**: if a prophecy is disjoint from a query and `delta`
   is smaller than their distance, the answer is never `Yes`.
5. **Consistency**: a query containing a prophecy never yields `No`.
6. **Closed**: if every positive-delta halo of a point contains a
   prophecy, no query containing that point yields `No`.
7. **Reasonableness**: if a query is not answered with `Maybe`, it is
   not answered with `Maybe` for any larger tolerance either.

Validators for these axioms can be found in `ratreals.stdlib.properties`.

**Refinement discipline**

The `yes` interval of an oracle only ever shrinks. It is owned by the
oracle and mutated exclusively from within its `RefinementQueue`, which
serializes all refinements of a given oracle in FIFO order. External
code reads `yes` but never assigns it: narrowing results are handed
back through `Oracle.publish`, which intersects them with the current
knowledge.

Refinements publish lazily: algorithms may update private iteration
state while they run, but `yes` is only replaced once a refinement
step returns.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from ratreals.core.answers import Answer, Maybe, No, Yes
from ratreals.core.diagnostics import log_warning
from ratreals.core.errors import (
    InvalidIntervalError,
    OracleConsistencyError,
    PrecisionLimitationError,
)
from ratreals.core.intervals import (
    Rational,
    RationalInterval,
    RationalLike,
    halo,
    rational,
)
from ratreals.core.settings import current_settings

type Narrowing = Callable[
    [RationalInterval, Rational], Awaitable[RationalInterval]
]
"""
A domain-specific refinement strategy, called with the current `yes`
interval and a target width. It returns the new `yes` interval, which
has already been published into the oracle.
"""


type Predicate = Callable[[RationalInterval], Answer | Awaitable[Answer]]
"""
A three-valued test over an exact interval, without delta dependence.
"""


type Algorithm = Callable[
    [RationalInterval, Rational],
    RationalInterval | Awaitable[RationalInterval],
]
"""
A refinement algorithm: given the current `yes` interval and a target
precision, return a consistent sub-interval whose width is ideally
below the target.
"""


def tolerance(delta: RationalLike) -> Rational:
    """
    Convert a tolerance into a non-negative rational.
    """
    d = rational(delta)
    if d < 0:
        raise InvalidIntervalError(
            f"Tolerances must be non-negative, got {d}", label="bad_delta"
        )
    return d


async def _resolve[T](value: T | Awaitable[T]) -> T:
    if inspect.isawaitable(value):
        return await value
    return value


#####
##### Refinement Queue
#####


class RefinementQueue:
    """
    Serializes refinements of a single oracle.

    Used as an asynchronous context manager. Waiters are served in
    submission order, so at most one refinement is in flight for a given
    oracle at any time.

    !!! note
        An oracle can outlive the event loop in which it was created
        (e.g. when successive `asyncio.run` calls share oracles). The
        underlying lock is recreated whenever a new loop is detected.
    """

    def __init__(self):
        self._lock: asyncio.Lock | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def _current_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._loop is not loop:
            self._lock = asyncio.Lock()
            self._loop = loop
        return self._lock

    def locked(self) -> bool:
        return self._lock is not None and self._lock.locked()

    async def __aenter__(self) -> None:
        await self._current_lock().acquire()

    async def __aexit__(self, *exc: object) -> None:
        assert self._lock is not None
        self._lock.release()


#####
##### Oracles
#####


class Oracle(ABC):
    """
    Base class for oracles.

    Attributes:
        name: An optional name, used in diagnostics.
        narrowing: An optional domain-specific refinement strategy. When
            absent, `narrow` refines the oracle by generic bisection
            through its call contract.
        queue: The queue serializing all writes to `yes`.
        provisional: Whether the current `yes` interval is only a seed
            that is not guaranteed to contain the real number. Only
            oracles with a narrowing strategy can be provisional, and
            their first refinement replaces the seed.
    """

    name: str | None
    narrowing: Narrowing | None
    queue: RefinementQueue
    provisional: bool

    def __init__(self, yes: RationalInterval, *, name: str | None = None):
        self._yes = yes
        self.name = name
        self.narrowing = None
        self.queue = RefinementQueue()
        self.provisional = False

    @property
    def yes(self) -> RationalInterval:
        """
        The best-known interval containing the real number.
        """
        return self._yes

    @abstractmethod
    async def __call__(
        self, ab: RationalInterval, delta: RationalLike, input: Any = None
    ) -> Answer:
        """
        Ask whether the real number lies within `ab`, with tolerance
        `delta`. The optional `input` is oracle-specific auxiliary data
        that oracles ignore unless documented otherwise.
        """
        pass

    def decide_from_yes(
        self, ab: RationalInterval, delta: Rational
    ) -> Answer | None:
        """
        Answer a query from the current `yes` interval alone, if it is
        decisive: `No` if `yes` is disjoint from `ab`, `Yes` if `yes` is
        contained in the halo of `ab`. A provisional `yes` interval is
        never decisive.
        """
        if self.provisional:
            return None
        yes = self._yes
        if ab.intersection(yes) is None:
            return No(yes)
        if halo(ab, delta).contains(yes):
            return Yes(yes)
        return None

    def _publish(self, new: RationalInterval) -> RationalInterval:
        """
        Intersect `yes` with a newly computed interval. Must only be
        called from within the refinement queue.
        """
        inter = self._yes.intersection(new)
        if inter is None:
            raise OracleConsistencyError(
                f"Refined interval {new} is disjoint from "
                + f"current knowledge {self._yes}.",
                label="disjoint_prophecy",
                meta={"oracle": self.name},
            )
        self._yes = inter
        return inter

    async def publish(self, new: RationalInterval) -> RationalInterval:
        """
        Hand a refined interval back to the oracle, which intersects it
        with its current knowledge. Returns the new `yes` interval.

        Raises:
            OracleConsistencyError: if `new` is disjoint from `yes`, or
                if `yes` is still a provisional seed.
        """
        async with self.queue:
            if self.provisional:
                raise OracleConsistencyError(
                    f"Cannot publish {new} over the provisional seed "
                    + f"{self._yes}: the oracle was never refined.",
                    label="provisional_seed",
                    meta={"oracle": self.name},
                )
            return self._publish(new)

    def __repr__(self) -> str:
        name = self.name or type(self).__name__
        return f"<{name} yes={self._yes}>"


#####
##### Test Oracles
#####


class TestOracle(Oracle):
    """
    An oracle defined by a three-valued predicate over intervals.

    The predicate `test(i)` returns `Yes` if `i` definitively contains
    the real number (optionally with a tighter prophecy), `No` if it
    definitively does not and `Maybe` only if the real number is
    potentially an endpoint of `i`. Refinement is performed by generic
    bisection.
    """

    __test__ = False

    def __init__(
        self,
        yes: RationalInterval,
        test: Predicate,
        *,
        name: str | None = None,
        max_iterations: int | None = None,
    ):
        super().__init__(yes, name=name)
        self.test = test
        if max_iterations is None:
            max_iterations = current_settings().bisection_max_iterations
        self.max_iterations = max_iterations
        self.narrowing = self._bisect

    async def __call__(
        self, ab: RationalInterval, delta: RationalLike, input: Any = None
    ) -> Answer:
        d = tolerance(delta)
        async with self.queue:
            if (decided := self.decide_from_yes(ab, d)) is not None:
                return decided
            result = await _resolve(self.test(ab))
            if isinstance(result, Maybe):
                expanded = halo(ab, d)
                result = await _resolve(self.test(expanded))
                if isinstance(result, Maybe):
                    raise PrecisionLimitationError(
                        f"Both query {ab} and its halo {expanded} "
                        + "were answered with Maybe by the test predicate.",
                        label="precision_limitation",
                        meta={"oracle": self.name},
                    )
            match result:
                case Yes(prophecy, extra):
                    inter = self._yes.intersection(prophecy)
                    if inter is None:
                        raise OracleConsistencyError(
                            f"Test produced a prophecy {prophecy} disjoint "
                            + f"from current knowledge {self._yes}.",
                            label="disjoint_prophecy",
                            meta={"oracle": self.name},
                        )
                    self._yes = inter
                    return Yes(inter, extra)
                case No(_, extra):
                    return No(self._yes, extra)

    async def _bisect(
        self, current: RationalInterval, precision: Rational
    ) -> RationalInterval:
        async with self.queue:
            active = self._yes
            for _ in range(self.max_iterations):
                if active.width <= precision:
                    break
                mid = active.midpoint
                left, right = active.split(mid)
                match await _resolve(self.test(left)):
                    case Yes():
                        active = left
                        continue
                    case No():
                        active = right
                        continue
                    case Maybe():
                        pass
                match await _resolve(self.test(right)):
                    case Yes():
                        active = right
                        continue
                    case No():
                        active = left
                        continue
                    case Maybe():
                        pass
                # Both halves are ambiguous: the number may sit at the
                # midpoint, so try the middle half between the quartiles.
                middle = RationalInterval(
                    (active.low + mid) / 2, (mid + active.high) / 2
                )
                if isinstance(await _resolve(self.test(middle)), Yes):
                    active = middle
                    continue
                log_warning(
                    "Bisection stuck: left, right and middle parts are "
                    + f"all ambiguous at width {active.width}.",
                    source="make_test_oracle",
                    metadata={"oracle": self.name, "interval": active},
                )
                break
            return self._publish(active)


def make_test_oracle(
    yes: RationalInterval, test: Predicate, *, name: str | None = None
) -> TestOracle:
    """
    Build an oracle from a three-valued test predicate.

    When called with `(ab, delta)`, the resulting oracle:

    1. Answers from its `yes` interval alone when it is decisive.
    2. Otherwise calls `test(ab)`, and then `test(halo(ab, delta))` if
       the first answer is `Maybe`. A second `Maybe` raises a
       `PrecisionLimitationError`.
    3. On `Yes`, intersects `yes` with the prophecy (raising an
       `OracleConsistencyError` if they are disjoint) and answers `Yes`
       with the new `yes` interval.
    4. On `No`, answers `No` with the unchanged `yes` interval.
    """
    return TestOracle(yes, test, name=name)


#####
##### Algorithm Oracles
#####


class AlgorithmOracle(Oracle):
    """
    An oracle defined by a refinement algorithm.

    Attributes:
        algorithm: The refinement algorithm, which owns any iterative
            state it needs.
        provisional: See `Oracle`. A provisional seed is replaced
            (rather than intersected) by the first refinement, and is
            never used to answer queries.
    """

    def __init__(
        self,
        yes: RationalInterval,
        algorithm: Algorithm,
        *,
        name: str | None = None,
        provisional: bool = False,
    ):
        super().__init__(yes, name=name)
        self.algorithm = algorithm
        self.provisional = provisional
        self.narrowing = self._refine

    async def _refine(
        self, current: RationalInterval, precision: Rational
    ) -> RationalInterval:
        async with self.queue:
            result = await _resolve(self.algorithm(self._yes, precision))
            if self.provisional:
                self._yes = result
                self.provisional = False
                return result
            return self._publish(result)

    async def __call__(
        self, ab: RationalInterval, delta: RationalLike, input: Any = None
    ) -> Answer:
        d = tolerance(delta)
        if (decided := self.decide_from_yes(ab, d)) is not None:
            return decided
        # Any interval narrower than `d` that intersects `ab` lies within
        # `halo(ab, d)`, so `d` is a sufficient target precision.
        refined = await self._refine(self._yes, d)
        if ab.intersection(refined) is None:
            return No(refined)
        if halo(ab, d).contains(refined):
            return Yes(refined)
        log_warning(
            f"Narrowing failed to reach target delta {d}: "
            + f"current width is {refined.width}.",
            source="make_algorithm_oracle",
            metadata={"oracle": self.name, "interval": refined},
        )
        return Maybe(refined)


def make_algorithm_oracle(
    yes: RationalInterval, algorithm: Algorithm, *, name: str | None = None
) -> AlgorithmOracle:
    """
    Build an oracle from a refinement algorithm.

    The algorithm `alg(current, precision)` must return a sub-interval of
    `current` (or at least an interval intersecting it) that contains
    the real number, ideally of width at most `precision`. It may be
    synchronous or asynchronous.

    When called with `(ab, delta)`, the resulting oracle answers from
    its `yes` interval when it is decisive and otherwise refines itself
    to precision `delta` before checking again. If the target precision
    cannot be reached, a warning is logged and `Maybe` is returned.
    """
    return AlgorithmOracle(yes, algorithm, name=name)
