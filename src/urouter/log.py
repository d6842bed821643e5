"""Injectable event logging.

Router and server never print or reach for a module-level logger on their
own; they call ``log(event)`` on whatever was handed to them. The default
drops everything.
"""

from dataclasses import dataclass, field
import logging
import typing as t


@dataclass(frozen=True, slots=True)
class LogEvent:
    name: str
    fields: dict[str, t.Any] = field(default_factory=dict)

    def __str__(self):
        detail = " ".join(f"{k}={v!r}" for k, v in self.fields.items())
        return f"{self.name} {detail}" if detail else self.name


@t.runtime_checkable
class Logger(t.Protocol):
    def log(self, event: LogEvent) -> None: ...


class NullLogger:
    def log(self, event: LogEvent) -> None:
        del event  # unused param


class StdlibLogger:
    """Forward events to a :mod:`logging` logger.

    The event name goes out as the message; the fields ride along in
    ``extra`` under ``event_fields`` for formatters that want them.
    """

    def __init__(self, logger: logging.Logger | None = None,
                 level: int = logging.DEBUG):
        self.logger = logger or logging.getLogger("urouter")
        self.level = level

    def log(self, event: LogEvent) -> None:
        if self.logger.isEnabledFor(self.level):
            self.logger.log(self.level, "%s", event,
                            extra={"event_name": event.name,
                                   "event_fields": event.fields})


NULL_LOGGER = NullLogger()


def ensure_logger(logger: Logger | None) -> Logger:
    return NULL_LOGGER if logger is None else logger
