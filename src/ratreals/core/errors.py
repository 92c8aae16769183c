"""
Exceptions raised by oracles.

Fatal conditions (programming errors or broken oracles) are raised as
subclasses of `OracleError` and always propagate to the caller.
Recoverable anomalies are not exceptions: they are reported to the
active diagnostics sink (see `ratreals.core.diagnostics`).
"""

import pprint
from typing import Any


class OracleError(Exception):
    """
    Base class for rich error messages raised by oracles and their
    refinement machinery.

    Attributes:
        label: A short identifier for the kind of failure.
        description: A human-readable explanation.
        meta: Optional structured data (e.g. intervals involved).
    """

    label: str | None
    description: str | None
    meta: Any | None

    def __init__(
        self,
        description: str | None = None,
        *,
        label: str | None = None,
        meta: Any | None = None,
    ):
        if label is not None:
            assert label
        self.label = label
        self.description = description
        self.meta = meta
        super().__init__(str(self))

    def __str__(self):
        elts: list[str] = []
        if self.label:
            elts.append(self.label)
        if self.description:
            elts.append(self.description)
        if self.meta:
            elts.append(pprint.pformat(self.meta))
        return "\n\n".join(elts)


class DivisionByZeroError(OracleError, ZeroDivisionError):
    """
    The denominator of a quotient oracle is known to be zero, or still
    contains zero after refinement at the requested precision.
    """

    pass


class PrecisionLimitationError(OracleError):
    """
    A test predicate answered `Maybe` both for a query and for its
    halo, so no decision can be made at any tolerance.
    """

    pass


class OracleConsistencyError(OracleError):
    """
    A prophecy was produced that is disjoint from what the oracle
    already knows to contain its real number.
    """

    pass


class KantorovichConditionError(OracleError):
    """
    The Kantorovich convergence precondition `h <= 1/4` does not hold
    for the provided guess and derivative bounds.
    """

    pass


class InvalidIntervalError(OracleError, ValueError):
    """
    Malformed rational or interval input.
    """

    pass
