"""
Arithmetic on Oracles.

Given oracles `a` and `b` for reals `x` and `y`, build oracles for `-x`,
`x + y`, `x - y`, `x * y` and `x / y`. Each composed oracle is an
algorithm oracle whose `yes` interval is the interval-arithmetic result
of its operands' current `yes` intervals.

To answer a query at tolerance `delta`, operands are narrowed to a
tolerance derived from `delta` and from the operands' current
magnitudes, so that the recomputed result has width at most `delta` (up
to second-order terms). Independent operands are narrowed concurrently.

Composed oracles reference their operands but do not own them: several
composed oracles can share an operand, in which case narrowing requests
are serialized by the operand's refinement queue.
"""

import asyncio

from ratreals.core.diagnostics import log_warning
from ratreals.core.errors import DivisionByZeroError
from ratreals.core.intervals import ZERO, Rational, RationalInterval
from ratreals.core.narrowing import narrow
from ratreals.core.oracles import AlgorithmOracle, Oracle
from ratreals.core.settings import current_settings


def _label(oracle: Oracle) -> str:
    return oracle.name or "?"


def _seeded(a: Oracle, b: Oracle) -> bool:
    # A result seeded from a provisional operand is provisional too.
    return a.provisional or b.provisional


async def _narrow_both(a: Oracle, b: Oracle, precision: Rational) -> None:
    await asyncio.gather(narrow(a, precision), narrow(b, precision))


def negate(a: Oracle) -> AlgorithmOracle:
    async def alg(current: RationalInterval, delta: Rational):
        await narrow(a, delta)
        return -a.yes

    name = f"-{_label(a)}"
    return AlgorithmOracle(-a.yes, alg, name=name, provisional=a.provisional)


def add(a: Oracle, b: Oracle) -> AlgorithmOracle:
    async def alg(current: RationalInterval, delta: Rational):
        await _narrow_both(a, b, delta / 2)
        return a.yes + b.yes

    name = f"({_label(a)} + {_label(b)})"
    return AlgorithmOracle(
        a.yes + b.yes, alg, name=name, provisional=_seeded(a, b)
    )


def subtract(a: Oracle, b: Oracle) -> AlgorithmOracle:
    async def alg(current: RationalInterval, delta: Rational):
        await _narrow_both(a, b, delta / 2)
        return a.yes - b.yes

    name = f"({_label(a)} - {_label(b)})"
    return AlgorithmOracle(
        a.yes - b.yes, alg, name=name, provisional=_seeded(a, b)
    )


def multiply(a: Oracle, b: Oracle) -> AlgorithmOracle:
    threshold = current_settings().small_magnitude_threshold

    async def alg(current: RationalInterval, delta: Rational):
        # |Δ(xy)| ≈ |x|Δy + |y|Δx ≤ 2Mε with M = max(|x|, |y|).
        m = max(a.yes.magnitude, b.yes.magnitude)
        if m < threshold:
            sub_delta = delta
        else:
            sub_delta = delta / (2 * m)
        await _narrow_both(a, b, sub_delta)
        return a.yes * b.yes

    name = f"({_label(a)} * {_label(b)})"
    return AlgorithmOracle(
        a.yes * b.yes, alg, name=name, provisional=_seeded(a, b)
    )


def divide(numer: Oracle, denom: Oracle) -> AlgorithmOracle:
    """
    Build the oracle of a quotient.

    Raises:
        DivisionByZeroError: immediately if the denominator is known to
            be exactly zero, and upon refinement if the denominator
            interval still contains zero at the requested precision.

    If the denominator interval contains zero at construction time, a
    warning is logged and the `yes` interval of the quotient is seeded
    by nudging the denominator away from zero. Such a seed is
    provisional: it is not used to answer queries and is replaced by the
    first successful refinement.
    """
    d_yes = denom.yes
    if d_yes == RationalInterval.point(ZERO) and not denom.provisional:
        raise DivisionByZeroError(
            "Denominator is known to be zero.",
            label="division_by_zero",
            meta={"denominator": _label(denom)},
        )
    spans_zero = d_yes.contains_value(ZERO)
    safe_denom = d_yes
    if spans_zero:
        log_warning(
            f"Denominator interval {d_yes} contains zero.",
            source="divide",
            metadata={"denominator": _label(denom), "interval": d_yes},
        )
        eps = current_settings().division_epsilon
        safe_denom = _away_from_zero(d_yes, eps)

    async def alg(current: RationalInterval, delta: Rational):
        # |Δ(n/d)| ≈ ε(|d| + |n|) / d²
        n_mag = numer.yes.magnitude
        d_min = denom.yes.min_magnitude
        if d_min == ZERO:
            sub_delta = delta / 4
        else:
            sub_delta = delta * d_min * d_min / (d_min + n_mag)
        await _narrow_both(numer, denom, sub_delta)
        d_now = denom.yes
        if d_now.contains_value(ZERO):
            raise DivisionByZeroError(
                f"Denominator interval {d_now} still contains zero "
                + f"at requested delta {delta}.",
                label="division_by_zero",
                meta={"denominator": _label(denom)},
            )
        return numer.yes / d_now

    name = f"({_label(numer)} / {_label(denom)})"
    seed = numer.yes / safe_denom
    provisional = spans_zero or _seeded(numer, denom)
    return AlgorithmOracle(seed, alg, name=name, provisional=provisional)


def _away_from_zero(d: RationalInterval, eps: Rational) -> RationalInterval:
    """
    Shrink an interval containing zero into a nearby interval that does
    not, keeping the side of zero with the largest magnitude.
    """
    if d.high <= ZERO:
        return RationalInterval(d.low, d.high - eps)
    if d.low >= ZERO:
        return RationalInterval(d.low + eps, d.high)
    if abs(d.low) > abs(d.high):
        return RationalInterval(d.low, -eps)
    return RationalInterval(eps, d.high)
