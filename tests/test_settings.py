from fractions import Fraction as F
from pathlib import Path

import pytest

import ratreals as rr
from ratreals.core.intervals import interval
from ratreals.utils.typing import ValidationError


def test_defaults():
    s = rr.RefinementSettings()
    assert s.bisection_max_iterations == 100
    assert s.narrow_max_iterations == 10_000
    assert s.newton_max_iterations == 100
    assert s.internal_delta_divisor == 10
    assert s.division_epsilon == F(1, 1_000_000_000)
    assert s.small_magnitude_threshold == F(1, 2)
    assert s.log_level == "warn"
    assert rr.current_settings() == s


def test_use_settings():
    custom = rr.RefinementSettings(bisection_max_iterations=3)
    with rr.use_settings(custom):
        assert rr.current_settings() is custom
        o = rr.make_test_oracle(interval(0, 1), lambda i: rr.No())
    assert o.max_iterations == 3
    assert rr.current_settings().bisection_max_iterations == 100


def test_load_settings(tmp_path: Path):
    path = tmp_path / rr.SETTINGS_FILE
    path.write_text("bisection_max_iterations: 50\nlog_level: info\n")
    s = rr.load_settings(path)
    assert s.bisection_max_iterations == 50
    assert s.log_level == "info"
    assert s.newton_max_iterations == 100


def test_load_empty_settings(tmp_path: Path):
    path = tmp_path / rr.SETTINGS_FILE
    path.write_text("")
    assert rr.load_settings(path) == rr.RefinementSettings()


def test_unknown_settings(tmp_path: Path):
    path = tmp_path / rr.SETTINGS_FILE
    path.write_text("bisection_max_iteration: 50\n")
    with pytest.raises(ValueError):
        rr.load_settings(path)


def test_invalid_settings(tmp_path: Path):
    path = tmp_path / rr.SETTINGS_FILE
    path.write_text("log_level: loud\n")
    with pytest.raises(ValidationError):
        rr.load_settings(path)


def test_find_settings_file(tmp_path: Path):
    path = tmp_path / rr.SETTINGS_FILE
    path.write_text("narrow_max_iterations: 10\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert rr.find_settings_file(nested) == path.resolve()


@pytest.mark.parametrize(
    "field", ["narrow_max_iterations", "internal_delta_divisor"]
)
def test_non_positive_settings(field: str):
    with pytest.raises(ValueError):
        rr.RefinementSettings(**{field: 0})


def test_non_positive_settings_file(tmp_path: Path):
    path = tmp_path / rr.SETTINGS_FILE
    path.write_text("division_epsilon: 0\n")
    with pytest.raises(ValueError):
        rr.load_settings(path)
