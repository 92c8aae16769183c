"""
Oracle Answers.

A single oracle invocation `oracle(ab, delta)` produces one of three
answers:

- `Yes`: the prophecy intersects the query interval `ab` and lies
  within its halo `halo(ab, delta)`.
- `No`: the prophecy, if any, is disjoint from `ab`. A missing prophecy
  means that none was computed (cheap predicate-only negative answer).
- `Maybe`: neither could be established within the resources allowed
  for this call. The best interval found so far is attached.

All variants accept an opaque `extra` payload for implementation-private
state, which never affects the meaning of the answer.
"""

from dataclasses import dataclass
from typing import Any, Literal

from ratreals.core.intervals import RationalInterval


@dataclass(frozen=True)
class Yes:
    """
    Positive answer.

    Attributes:
        prophecy: An interval containing the real number, intersecting
            the query and contained in its halo.
        extra: Optional implementation-private payload.
    """

    prophecy: RationalInterval
    extra: Any = None


@dataclass(frozen=True)
class No:
    """
    Negative answer.

    Attributes:
        prophecy: An interval containing the real number and disjoint
            from the query, or `None` if no prophecy was computed.
        extra: Optional implementation-private payload.
    """

    prophecy: RationalInterval | None = None
    extra: Any = None


@dataclass(frozen=True)
class Maybe:
    """
    Undecided answer, produced when a computational limit is reached.

    Attributes:
        prophecy: The best interval known to contain the real number.
        extra: Optional implementation-private payload.
    """

    prophecy: RationalInterval
    extra: Any = None


type Answer = Yes | No | Maybe


type AnswerKind = Literal["yes", "no", "maybe"]


def answer_kind(answer: Answer) -> AnswerKind:
    match answer:
        case Yes():
            return "yes"
        case No():
            return "no"
        case Maybe():
            return "maybe"
