import asyncio
import contextvars
from fractions import Fraction as F

import pytest

import ratreals as rr
from ratreals.core.diagnostics import DEFAULT_SINK_CAPACITY
from ratreals.core.intervals import interval
from ratreals.utils.yaml import dump_yaml, load_yaml, pretty_yaml


def test_log_levels():
    d = rr.Diagnostics("info")
    d.log("debug", "ignored")
    d.log("info", "kept")
    d.log("error", "kept too")
    assert [m.message for m in d.messages] == ["kept", "kept too"]
    assert not d.warnings()
    d.clear()
    assert not d.messages


def test_bounded_sink():
    d = rr.Diagnostics(max_messages=2)
    for i in range(3):
        d.log("warn", f"warning {i}")
    assert [m.message for m in d.messages] == ["warning 1", "warning 2"]


def test_default_sink_is_bounded():
    sink = contextvars.Context().run(rr.current_diagnostics)
    assert sink is not None
    assert sink.messages.maxlen == DEFAULT_SINK_CAPACITY


def test_context_sink():
    outer = rr.current_diagnostics()
    with rr.diagnostics() as d:
        assert rr.current_diagnostics() is d
        rr.log_warning("hello", source="test")
        rr.log("debug", "filtered")
    assert rr.current_diagnostics() is outer
    assert [(m.message, m.source) for m in d.warnings()] == [
        ("hello", "test")
    ]
    assert len(d.messages) == 1


def test_sink_level_follows_settings():
    with rr.use_settings(rr.RefinementSettings(log_level="error")):
        with rr.diagnostics() as d:
            rr.log_warning("filtered")
    assert not d.messages


def test_sink_is_inherited_by_tasks():
    async def warn():
        rr.log_warning("from a task")

    async def main():
        await asyncio.gather(warn(), warn())

    with rr.diagnostics() as d:
        asyncio.run(main())
    assert len(d.warnings()) == 2


def test_detached_sink():
    previous = rr.current_diagnostics()
    rr.set_diagnostics(None)
    try:
        o = rr.divide(rr.from_rational(1), rr.from_interval(interval(-1, 1)))
        assert o.provisional
        rr.log_warning("nobody listens")
    finally:
        rr.set_diagnostics(previous)
    assert rr.current_diagnostics() is previous


def test_dump_log():
    d = rr.Diagnostics()
    d.log(
        "warn",
        "Denominator spans zero.",
        source="divide",
        metadata={"interval": interval(-1, 1), "delta": F(1, 10)},
    )
    exported = list(d.export_log(remove_timing_info=True))
    assert exported[0].time is None
    assert exported[0].metadata == {"interval": "-1:1", "delta": "1/10"}
    dumped = d.dump_log()
    assert "source: divide" in dumped
    assert "-1:1" in dumped
    assert "time" not in dumped
    loaded = load_yaml(list[rr.ExportableLogMessage], dumped)
    assert loaded[0].message == "Denominator spans zero."


def test_dump_yaml_settings():
    dumped = dump_yaml(rr.RefinementSettings, rr.RefinementSettings())
    assert "narrow_max_iterations: 10000" in dumped


@pytest.mark.parametrize(
    "obj,multi",
    [({"name": ("foo", "bar")}, False), ({"error": "one\ntwo"}, True)],
)
def test_pretty_yaml(obj: object, multi: bool):
    res = pretty_yaml(obj, width=50)
    assert ("|" in res) == multi


#####
##### Errors
#####


def test_error_rendering():
    e = rr.OracleError("Something broke.", label="broken", meta={"a": 1})
    text = str(e)
    assert "broken" in text
    assert "Something broke." in text
    assert "'a': 1" in text


def test_error_hierarchy():
    assert issubclass(rr.DivisionByZeroError, ZeroDivisionError)
    assert issubclass(rr.InvalidIntervalError, ValueError)
    for cls in [
        rr.DivisionByZeroError,
        rr.PrecisionLimitationError,
        rr.OracleConsistencyError,
        rr.KantorovichConditionError,
        rr.InvalidIntervalError,
    ]:
        assert issubclass(cls, rr.OracleError)
