"""
Asking Oracles.

A thin wrapper around oracle calls, which can short-circuit expensive
oracles, record a history of calls and feed prophecies back into the
oracle's `yes` interval.
"""

from dataclasses import dataclass
from typing import Any

from ratreals.core.answers import Answer, Yes
from ratreals.core.diagnostics import log_warning
from ratreals.core.errors import OracleConsistencyError
from ratreals.core.intervals import Rational, RationalInterval, RationalLike
from ratreals.core.oracles import Oracle, tolerance


@dataclass(frozen=True)
class HistoryEntry:
    """
    A recorded oracle call.

    Attributes:
        interval: The query interval.
        delta: The tolerance of the query.
        input: The auxiliary input passed to the oracle, if any.
        answer: The answer of the oracle.
    """

    interval: RationalInterval
    delta: Rational
    input: Any
    answer: Answer


async def ask(
    oracle: Oracle,
    ab: RationalInterval,
    delta: RationalLike,
    input: Any = None,
    *,
    expensive: bool = False,
    history: list[HistoryEntry] | None = None,
    update: bool = False,
) -> Answer:
    """
    Ask an oracle whether its real number lies in `ab`.

    Arguments:
        oracle: The oracle to query.
        ab: The query interval.
        delta: The tolerance.
        input: Auxiliary input forwarded to the oracle.
        expensive: If set, the oracle is not invoked whenever its `yes`
            interval alone is decisive for the query.
        history: If provided, a `HistoryEntry` is appended for the call.
        update: If set, the prophecy of a `Yes` answer is published into
            the oracle. Prophecies that are disjoint from the oracle's
            `yes` interval are ignored (and logged).
    """
    d = tolerance(delta)
    answer = oracle.decide_from_yes(ab, d) if expensive else None
    if answer is None:
        answer = await oracle(ab, d, input)
    if history is not None:
        history.append(HistoryEntry(ab, d, input, answer))
    if update and isinstance(answer, Yes):
        try:
            await oracle.publish(answer.prophecy)
        except OracleConsistencyError as e:
            log_warning(
                f"Ignored prophecy {answer.prophecy}: {e.description}",
                source="ask",
                metadata={"oracle": oracle.name},
            )
    return answer
