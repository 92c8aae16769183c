"""
Diagnostics Sink.

Recoverable anomalies (a denominator spanning zero, a narrowing that
cannot reach its target precision...) are not errors: they are reported
to the active diagnostics sink and computation proceeds with a degraded
result. Oracles behave identically whether or not a sink is attached.
"""

import threading
from collections import deque
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from ratreals.utils.typing import json_value
from ratreals.utils.yaml import dump_yaml

type LogLevel = Literal["trace", "debug", "info", "warn", "error"]


_LEVELS: Sequence[LogLevel] = ["trace", "debug", "info", "warn", "error"]


def log_level_greater_or_equal(lhs: LogLevel, rhs: LogLevel) -> bool:
    return _LEVELS.index(lhs) >= _LEVELS.index(rhs)


@dataclass(frozen=True, kw_only=True)
class LogMessage:
    """
    A log message.

    Attributes:
        message: The message to log.
        level: Severity of the message.
        time: Time at which the message was produced.
        source: Name of the component that emitted the message (e.g.
            `"divide"` or `"narrow"`).
        metadata: Optional metadata associated with the message, as an
            object that can be serialized to JSON using Pydantic.
    """

    message: str
    level: LogLevel
    time: datetime
    source: str | None = None
    metadata: object | None = None


@dataclass(frozen=True, kw_only=True)
class ExportableLogMessage:
    """
    An exportable log message, whose fields are JSON values.
    """

    message: str
    level: LogLevel
    time: datetime | None = None
    source: str | None = None
    metadata: object | None = None  # JSON value


class Diagnostics:
    """
    A mutable, thread-safe list of log messages.

    Attributes:
        messages: Logged messages, in order. When `max_messages` is set,
            only the most recent ones are kept.
        log_level: The minimum severity of recorded messages.
        lock: A reentrant lock protecting the message list.
    """

    def __init__(
        self, log_level: LogLevel = "warn", max_messages: int | None = None
    ):
        self.messages: deque[LogMessage] = deque(maxlen=max_messages)
        self.log_level: LogLevel = log_level
        self.lock = threading.RLock()

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str | None = None,
        metadata: object | None = None,
    ) -> None:
        if not log_level_greater_or_equal(level, self.log_level):
            return
        time = datetime.now()
        with self.lock:
            self.messages.append(
                LogMessage(
                    message=message,
                    level=level,
                    time=time,
                    source=source,
                    metadata=metadata,
                )
            )

    def warnings(self) -> Sequence[LogMessage]:
        with self.lock:
            return [m for m in self.messages if m.level == "warn"]

    def clear(self) -> None:
        with self.lock:
            self.messages.clear()

    def export_log(
        self, *, remove_timing_info: bool = False
    ) -> Iterable[ExportableLogMessage]:
        """
        Export the log into an easily serializable format. Intervals
        and rationals in metadata are rendered as strings.
        """
        with self.lock:
            messages = list(self.messages)
        for m in messages:
            yield ExportableLogMessage(
                message=m.message,
                level=m.level,
                time=m.time if not remove_timing_info else None,
                source=m.source,
                metadata=json_value(m.metadata),
            )

    def dump_log(self) -> str:
        """
        Render the log as YAML.
        """
        exported = list(self.export_log(remove_timing_info=True))
        return dump_yaml(
            list[ExportableLogMessage], exported, exclude_none=True
        )


#####
##### Active Sink
#####


DEFAULT_SINK_CAPACITY = 1000
"""
Number of recent messages kept by the sink that is active when none was
installed explicitly.
"""


_sink: ContextVar[Diagnostics | None] = ContextVar(
    "ratreals_diagnostics",
    default=Diagnostics(max_messages=DEFAULT_SINK_CAPACITY),
)


def current_diagnostics() -> Diagnostics | None:
    """
    Return the active diagnostics sink, or `None` if detached.
    """
    return _sink.get()


def set_diagnostics(sink: Diagnostics | None) -> None:
    """
    Replace the active diagnostics sink (`None` detaches it).
    """
    _sink.set(sink)


@contextmanager
def diagnostics(sink: Diagnostics | None = None) -> Iterator[Diagnostics]:
    """
    Context manager that temporarily installs a diagnostics sink (a
    fresh one if none is provided).

    !!! note
        Asyncio tasks inherit the sink that is active when they are
        created.
    """
    if sink is None:
        from ratreals.core.settings import current_settings

        sink = Diagnostics(current_settings().log_level)
    token = _sink.set(sink)
    try:
        yield sink
    finally:
        _sink.reset(token)


def log(
    level: LogLevel,
    message: str,
    *,
    source: str | None = None,
    metadata: object | None = None,
) -> None:
    sink = _sink.get()
    if sink is not None:
        sink.log(level, message, source=source, metadata=metadata)


def log_warning(
    message: str, *, source: str | None = None, metadata: object | None = None
) -> None:
    log("warn", message, source=source, metadata=metadata)
