"""
The Narrowing Engine.

Drive the `yes` interval of any oracle down to a requested width,
independently of how the oracle is implemented. Oracles exposing a
`narrowing` strategy are refined through it. Other oracles are refined
by bisection, querying each half through their call contract. A `Yes`
answer narrows the interval to its prophecy, not to the queried half.

No termination guarantee is provided beyond an iteration cap: when the
cap is exhausted or no progress can be made, a warning is logged and
the best interval found is returned. Callers must check its width.
"""

from collections.abc import Callable
from typing import Any

from ratreals.core.answers import Answer, Maybe, No, Yes
from ratreals.core.diagnostics import log_warning
from ratreals.core.errors import OracleConsistencyError
from ratreals.core.intervals import (
    Rational,
    RationalInterval,
    RationalLike,
    rational,
)
from ratreals.core.oracles import Oracle, tolerance
from ratreals.core.settings import current_settings

type Cutter = Callable[[RationalInterval], RationalLike]
"""
A function picking a split point inside an interval.
"""


async def narrow(
    oracle: Oracle, precision: RationalLike
) -> RationalInterval:
    """
    Narrow the `yes` interval of an oracle to width at most `precision`.

    The final interval is published into the oracle and returned. A
    provisional `yes` interval is always refined at least once, even
    when it is already narrow enough.
    """
    target = tolerance(precision)
    settings = current_settings()
    current = await _settle(oracle, target)
    rounds = 0
    while current.width > target:
        if rounds >= settings.narrow_max_iterations:
            _warn_cap(oracle, target, current)
            break
        rounds += 1
        if oracle.narrowing is not None:
            nxt = await oracle.narrowing(current, target)
        else:
            nxt = await _bisection_step(
                oracle, current, target / settings.internal_delta_divisor
            )
        if nxt is None or nxt == current:
            _warn_stuck(oracle, target, current)
            break
        current = nxt
    return await oracle.publish(current)


async def _settle(oracle: Oracle, target: Rational) -> RationalInterval:
    if oracle.provisional and oracle.narrowing is not None:
        return await oracle.narrowing(oracle.yes, target)
    return oracle.yes


def _keep(
    oracle: Oracle, current: RationalInterval, prophecy: RationalInterval
) -> RationalInterval:
    # A `Yes` only bounds the number by its prophecy, which may stick
    # out of the queried part by up to `delta`.
    kept = current.intersection(prophecy)
    if kept is None:
        raise OracleConsistencyError(
            f"Prophecy {prophecy} is disjoint from the interval {current} "
            + "being narrowed.",
            label="disjoint_prophecy",
            meta={"oracle": oracle.name},
        )
    return kept


async def _bisection_step(
    oracle: Oracle, current: RationalInterval, delta: Rational
) -> RationalInterval | None:
    left, right = current.split(current.midpoint)
    left_ans = await oracle(left, delta)
    right_ans = await oracle(right, delta)
    match left_ans, right_ans:
        case Yes(prophecy), _:
            return _keep(oracle, current, prophecy)
        case _, Yes(prophecy):
            return _keep(oracle, current, prophecy)
        case No(), Maybe():
            return right
        case Maybe(), No():
            return left
        case _:
            # Both ambiguous, or contradictory `No` answers.
            return None


async def narrow_with_cutter(
    oracle: Oracle, precision: RationalLike, cutter: Cutter
) -> RationalInterval:
    """
    Narrow the `yes` interval of an oracle using a custom split point.

    At each round, `cutter` picks a point inside the current interval
    (points outside are clamped to the nearest endpoint). The oracle is
    asked about the left part. On `Yes`, the engine keeps the part of the
    current interval covered by the answer's prophecy. On `No`, it keeps
    the right part. It stops on `Maybe`.
    """
    target = tolerance(precision)
    settings = current_settings()
    current = await _settle(oracle, target)
    rounds = 0
    while current.width > target:
        if rounds >= settings.narrow_max_iterations:
            _warn_cap(oracle, target, current)
            break
        rounds += 1
        cut = min(max(rational(cutter(current)), current.low), current.high)
        left = RationalInterval(current.low, cut)
        match await oracle(left, target):
            case Yes(prophecy):
                nxt = _keep(oracle, current, prophecy)
            case No():
                nxt = RationalInterval(cut, current.high)
            case Maybe():
                _warn_stuck(oracle, target, current)
                break
        if nxt == current:
            _warn_stuck(oracle, target, current)
            break
        current = nxt
    return await oracle.publish(current)


def _warn_cap(oracle: Oracle, target: Rational, current: RationalInterval):
    log_warning(
        f"Narrowing hit its iteration cap before reaching width {target} "
        + f"(current width: {current.width}).",
        source="narrow",
        metadata={"oracle": oracle.name, "interval": current},
    )


def _warn_stuck(oracle: Oracle, target: Rational, current: RationalInterval):
    log_warning(
        f"Narrowing cannot make progress towards width {target} "
        + f"(current width: {current.width}).",
        source="narrow",
        metadata={"oracle": oracle.name, "interval": current},
    )


#####
##### Refined Views
#####


class RefinedOracle(Oracle):
    """
    A view of an oracle after narrowing, whose `yes` interval is the
    narrowed one and whose calls are forwarded to the underlying oracle.
    """

    def __init__(self, base: Oracle, yes: RationalInterval):
        super().__init__(yes, name=base.name)
        self.base = base

    async def __call__(
        self, ab: RationalInterval, delta: RationalLike, input: Any = None
    ) -> Answer:
        return await self.base(ab, delta, input)


async def refine(oracle: Oracle, precision: RationalLike) -> RefinedOracle:
    """
    Narrow an oracle and return a refined view of it.
    """
    return RefinedOracle(oracle, await narrow(oracle, precision))


async def refine_with_cutter(
    oracle: Oracle, precision: RationalLike, cutter: Cutter
) -> RefinedOracle:
    """
    Narrow an oracle with a custom cutter and return a refined view.
    """
    yes = await narrow_with_cutter(oracle, precision, cutter)
    return RefinedOracle(oracle, yes)
