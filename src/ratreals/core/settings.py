"""
Refinement Settings.

Iteration caps and numerical constants used throughout the library,
which can be overriden locally with `use_settings` or loaded from a
`ratreals.yaml` file.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import Any

import yaml

from ratreals.core.diagnostics import LogLevel
from ratreals.utils.typing import load_dataclass

SETTINGS_FILE = "ratreals.yaml"


_POSITIVE_FIELDS = [
    "bisection_max_iterations",
    "narrow_max_iterations",
    "newton_max_iterations",
    "bisection_oracle_max_iterations",
    "internal_delta_divisor",
    "division_epsilon",
]


@dataclass(frozen=True, kw_only=True)
class RefinementSettings:
    """
    Attributes:
        bisection_max_iterations: Maximum number of bisection steps
            performed by a single generic bisection narrowing (test
            oracles, `n_root_test`, `ivt_root`).
        narrow_max_iterations: Maximum number of rounds performed by
            `narrow` and `narrow_with_cutter`.
        newton_max_iterations: Maximum number of Newton steps performed
            by a single refinement of `n_root` or `kantorovich_root`.
        bisection_oracle_max_iterations: Maximum number of halving steps
            performed by a single call to a `bisection_oracle`.
        internal_delta_divisor: `narrow` queries the halves of an
            interval with tolerance `precision / internal_delta_divisor`.
        division_epsilon: Amount by which a denominator interval that
            spans zero is nudged away from zero to seed a quotient.
        small_magnitude_threshold: Below this operand magnitude, product
            oracles refine their operands to the requested tolerance
            directly.
        log_level: Minimum severity of the default diagnostics sink.
    """

    bisection_max_iterations: int = 100
    narrow_max_iterations: int = 10_000
    newton_max_iterations: int = 100
    bisection_oracle_max_iterations: int = 100
    internal_delta_divisor: int = 10
    division_epsilon: Fraction = Fraction(1, 1_000_000_000)
    small_magnitude_threshold: Fraction = Fraction(1, 2)
    log_level: LogLevel = "warn"

    def __post_init__(self):
        for field in _POSITIVE_FIELDS:
            value = getattr(self, field)
            if value <= 0:
                raise ValueError(
                    f"Setting `{field}` must be positive, got {value}."
                )


_settings: ContextVar[RefinementSettings] = ContextVar(
    "ratreals_settings", default=RefinementSettings()
)


def current_settings() -> RefinementSettings:
    return _settings.get()


@contextmanager
def use_settings(settings: RefinementSettings) -> Iterator[RefinementSettings]:
    """
    Context manager that makes `settings` the current settings.

    Oracles capture their iteration caps at construction time, so the
    settings must be active when oracles are built.
    """
    token = _settings.set(settings)
    try:
        yield settings
    finally:
        _settings.reset(token)


#####
##### Loading settings files
#####


def load_settings(path: Path) -> RefinementSettings:
    """
    Load settings from a YAML file. Missing fields take their default
    value and unknown fields are rejected.

    Raises:
        ValueError: if the file has unknown fields.
        ValidationError: if some field values are invalid.
    """
    with open(path, "r") as f:
        data: Any = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid settings file: {path}")
    return load_dataclass(RefinementSettings, data, source=str(path))


def find_settings_file(starting_dir: Path) -> Path | None:
    """
    Find the closest `ratreals.yaml` file, looking in `starting_dir` and
    then in all its parents.
    """
    current_dir = starting_dir.resolve()
    while True:
        candidate = current_dir / SETTINGS_FILE
        if candidate.exists():
            return candidate
        if current_dir == current_dir.parent:
            return None
        current_dir = current_dir.parent
