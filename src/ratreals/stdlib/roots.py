"""
Root-Finding Oracles.

Four oracles naming roots of non-linear equations, built on the oracle
factories:

- `n_root`: Newton iteration for `q^(1/n)`, bracketing the root between
  the current guess and its partner `q / guess^(n-1)`.
- `n_root_test`: verification-based test (`q` in `[a^n, b^n]`) refined
  by bisection on `mid^n` versus `q`.
- `kantorovich_root`: Newton iteration for a general function, with the
  error radius guaranteed by the Kantorovich theorem.
- `ivt_root`: bisection on a sign change (Intermediate Value Theorem).

Iterative state is held in explicit state objects owned by each oracle
and only updated from within its refinement queue. Exhausting an
iteration cap is not an error: a warning is logged and the oracle
answers `Maybe` for queries that cannot be decided.
"""

from collections.abc import Callable
from dataclasses import dataclass
from fractions import Fraction

from ratreals.core.answers import Answer, No, Yes
from ratreals.core.diagnostics import log_warning
from ratreals.core.errors import (
    InvalidIntervalError,
    KantorovichConditionError,
)
from ratreals.core.intervals import (
    ONE,
    ZERO,
    Rational,
    RationalInterval,
    RationalLike,
    rational,
)
from ratreals.core.oracles import AlgorithmOracle, TestOracle
from ratreals.core.settings import current_settings

type RealFunction = Callable[[Rational], Rational]
"""
A function evaluated exactly on rationals.
"""


def _warn_cap(source: str, precision: Rational, current: RationalInterval):
    log_warning(
        f"Iteration cap reached before width {precision} "
        + f"(current width: {current.width}).",
        source=source,
        metadata={"interval": current},
    )


#####
##### Newton n-th Root
#####


@dataclass
class NewtonRootState:
    """
    State of a Newton iteration for `q^(1/n)`.

    For `q > 0` and `guess > 0`, the root always lies between `guess`
    and `partner = q / guess^(n-1)`.
    """

    q: Rational
    n: int
    guess: Rational
    partner: Rational

    @staticmethod
    def start(q: Rational, n: int, guess: Rational) -> "NewtonRootState":
        return NewtonRootState(q, n, guess, q / guess ** (n - 1))

    def interval(self) -> RationalInterval:
        return RationalInterval(self.guess, self.partner)

    def step(self) -> None:
        n = self.n
        self.guess = ((n - 1) * self.guess + self.partner) / n
        self.partner = self.q / self.guess ** (n - 1)


def n_root(
    q: RationalLike, guess: RationalLike, n: int = 2
) -> AlgorithmOracle:
    """
    Oracle for the positive `n`-th root of `q > 0`, computed by Newton
    iteration from a positive initial guess.
    """
    q, guess = rational(q), rational(guess)
    if n < 1 or q <= 0 or guess <= 0:
        raise InvalidIntervalError(
            f"n_root expects n >= 1, q > 0 and guess > 0 (got {n}, {q}, "
            + f"{guess}).",
            label="bad_root_input",
        )
    state = NewtonRootState.start(q, n, guess)
    max_iterations = current_settings().newton_max_iterations

    def refine(current: RationalInterval, precision: Rational):
        yes = state.interval()
        for _ in range(max_iterations):
            if yes.width <= precision:
                break
            state.step()
            yes = state.interval()
        else:
            if yes.width > precision:
                _warn_cap("n_root", precision, yes)
        return yes

    return AlgorithmOracle(state.interval(), refine, name=f"root{n}({q})")


#####
##### Verification-based n-th Root
#####


class NRootTestOracle(TestOracle):
    """
    Test oracle for `q^(1/n)`: an interval `[a, b]` of non-negative
    rationals contains the root if and only if `q` lies in `[a^n, b^n]`.
    """

    def __init__(self, q: Rational, n: int, yes: RationalInterval):
        self.q = q
        self.n = n
        super().__init__(yes, self.verify, name=f"root{n}_test({q})")
        self.narrowing = self._bisect_powers

    def verify(self, ab: RationalInterval) -> Answer:
        # The root is positive: only the non-negative part of `ab` counts.
        if ab.high < ZERO:
            return No()
        low = max(ab.low, ZERO)
        powers = RationalInterval(low**self.n, ab.high**self.n)
        if powers.contains_value(self.q):
            return Yes(RationalInterval(low, ab.high))
        return No()

    async def _bisect_powers(
        self, current: RationalInterval, precision: Rational
    ) -> RationalInterval:
        async with self.queue:
            active = self._yes
            for _ in range(self.max_iterations):
                if active.width <= precision:
                    break
                mid = active.midpoint
                if mid**self.n > self.q:
                    active = RationalInterval(active.low, mid)
                else:
                    active = RationalInterval(mid, active.high)
            else:
                if active.width > precision:
                    _warn_cap("n_root_test", precision, active)
            return self._publish(active)


def n_root_test(
    q: RationalLike, yes: RationalInterval | None = None, n: int = 2
) -> NRootTestOracle:
    """
    Verification-based oracle for the positive `n`-th root of `q > 0`.
    The initial interval defaults to the one spanned by `1` and `q`.
    """
    q = rational(q)
    if n < 1 or q <= 0:
        raise InvalidIntervalError(
            f"n_root_test expects n >= 1 and q > 0 (got {n}, {q}).",
            label="bad_root_input",
        )
    if yes is None:
        yes = RationalInterval(ONE, q)
    if yes.high <= ZERO:
        raise InvalidIntervalError(
            "n_root_test expects an initial interval with positive "
            + f"numbers (got {yes}).",
            label="bad_root_input",
        )
    yes = RationalInterval(max(yes.low, ZERO), yes.high)
    return NRootTestOracle(q, n, yes)


#####
##### Kantorovich-guaranteed Newton
#####


@dataclass
class KantorovichState:
    """
    State of a Newton iteration whose error is bounded by the
    Kantorovich theorem: with `beta = |f(g) / f'(g)|`, the root lies
    within `2 * beta` of the guess `g`.
    """

    f: RealFunction
    fprime: RealFunction
    guess: Rational

    def newton_step_size(self) -> Rational:
        der = self.fprime(self.guess)
        if der == ZERO:
            raise KantorovichConditionError(
                f"Derivative vanishes at {self.guess}.",
                label="vanishing_derivative",
            )
        return self.f(self.guess) / der

    def interval(self) -> RationalInterval:
        r = 2 * abs(self.newton_step_size())
        return RationalInterval(self.guess - r, self.guess + r)

    def step(self) -> None:
        self.guess = self.guess - self.newton_step_size()


def kantorovich_root(
    f: RealFunction,
    fprime: RealFunction,
    guess: RationalLike,
    domain: RationalInterval,
    maxpp: RationalLike,
    minp: RationalLike,
) -> AlgorithmOracle:
    """
    Oracle for the root of `f` close to `guess`.

    Arguments:
        f: The function.
        fprime: Its derivative.
        guess: The initial guess.
        domain: An interval containing the guess, on which the bounds
            below hold.
        maxpp: An upper bound on `|f''|` over the domain.
        minp: A positive lower bound on `|f'|` over the domain.

    Raises:
        KantorovichConditionError: if `h = beta * gamma > 1/4`, with
            `beta = |f(guess) / f'(guess)|` and
            `gamma = maxpp / (2 * minp)`.
    """
    g, maxpp, minp = rational(guess), rational(maxpp), rational(minp)
    if minp <= 0:
        raise KantorovichConditionError(
            f"Lower bound on |f'| must be positive (got {minp}).",
            label="bad_bounds",
        )
    state = KantorovichState(f, fprime, g)
    beta = abs(state.newton_step_size())
    gamma = maxpp / (2 * minp)
    h = beta * gamma
    if h > Fraction(1, 4):
        raise KantorovichConditionError(
            f"Kantorovich condition failed: h = {h} > 1/4.",
            label="kantorovich_condition",
            meta={"beta": str(beta), "gamma": str(gamma)},
        )
    yes = state.interval()
    if not domain.contains(yes):
        log_warning(
            f"Kantorovich ball {yes} exceeds domain {domain}.",
            source="kantorovich_root",
        )
    max_iterations = current_settings().newton_max_iterations

    def refine(current: RationalInterval, precision: Rational):
        yes = state.interval()
        for _ in range(max_iterations):
            if yes.width <= precision:
                break
            state.step()
            yes = state.interval()
        else:
            if yes.width > precision:
                _warn_cap("kantorovich_root", precision, yes)
        return yes

    return AlgorithmOracle(yes, refine, name="kantorovich_root")


#####
##### Bisection on a Sign Change
#####


def ivt_root(f: RealFunction, initial: RationalInterval) -> AlgorithmOracle:
    """
    Oracle for a root of a continuous function `f` on an interval whose
    endpoints have values of opposite signs.

    If the endpoint values have the same (nonzero) sign, a warning is
    logged: the oracle is still built but bisection is then meaningless.
    """
    fa, fb = f(initial.low), f(initial.high)
    if fa * fb > ZERO:
        log_warning(
            f"No sign change on {initial}: f(a) = {fa}, f(b) = {fb}.",
            source="ivt_root",
        )
    max_iterations = current_settings().bisection_max_iterations

    def refine(current: RationalInterval, precision: Rational):
        active = current
        f_low = f(active.low)
        if f_low == ZERO:
            return RationalInterval.point(active.low)
        if f(active.high) == ZERO:
            return RationalInterval.point(active.high)
        for _ in range(max_iterations):
            if active.width <= precision:
                break
            mid = active.midpoint
            f_mid = f(mid)
            if f_mid == ZERO:
                return RationalInterval.point(mid)
            if f_low * f_mid < ZERO:
                active = RationalInterval(active.low, mid)
            else:
                active = RationalInterval(mid, active.high)
                f_low = f_mid
        else:
            if active.width > precision:
                _warn_cap("ivt_root", precision, active)
        return active

    return AlgorithmOracle(initial, refine, name="ivt_root")
