# log_utils.py
""" Logger helpers shared by the loaders and the server.

    Components never touch process-wide logging state directly. The entry point
    builds one LogContext and hands it to everything that needs to log, and
    timed operations are wrapped in LogContext.span() so the end record is
    written on every exit path.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Names accepted by LOG_LEVEL / --log-level.
LEVELS: dict[str, int] = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

DEFAULT_LEVEL = logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Return the module logger for `name`."""
    return logging.getLogger(name)


def level_from_name(name: Optional[str]) -> Optional[int]:
    """ Map a level name (trace/debug/info/warn/error, any case) to a logging level.
        Returns None for empty or unrecognized names.
    """
    if not name:
        return None
    return LEVELS.get(name.strip().lower())


def _format_fields(fields: dict[str, Any]) -> str:
    return " ".join(f"{k}={v}" for k, v in fields.items())


@dataclass
class Span:
    """A timed operation. Set `outcome` inside the block to override 'success'."""
    name: str
    span_id: str
    fields: dict[str, Any] = field(default_factory=dict)
    outcome: Optional[str] = None
    started: float = field(default_factory=time.perf_counter)
    duration_ms: Optional[float] = None


class LogContext:
    """ 20261019 MMH LogContext
        Explicit logging context: one logger plus the level it runs at.
        Built once in the entry point and injected into the loaders.
    """

    def __init__(self, logger: Optional[logging.Logger] = None,
                 level: Optional[int] = None) -> None:
        self.logger = logger or get_logger("sensei")
        if level is not None:
            self.set_level(level)

    @property
    def level(self) -> int:
        return self.logger.getEffectiveLevel()

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def set_level_name(self, name: Optional[str]) -> bool:
        """ Apply a named level. Unrecognized names leave the level unchanged.
            Returns:
                bool: True if the level was changed.
        """
        level = level_from_name(name)
        if level is None:
            return False
        self.set_level(level)
        return True

    def child(self, suffix: str) -> "LogContext":
        """Context for a sub-component; shares the parent's level."""
        return LogContext(self.logger.getChild(suffix))

    # Level helpers keep call sites short: log.info(...) rather than log.logger.info(...)
    def trace(self, msg: str, *args: Any) -> None:
        self.logger.log(TRACE, msg, *args)

    def debug(self, msg: str, *args: Any) -> None:
        self.logger.debug(msg, *args)

    def info(self, msg: str, *args: Any) -> None:
        self.logger.info(msg, *args)

    def warning(self, msg: str, *args: Any) -> None:
        self.logger.warning(msg, *args)

    def error(self, msg: str, *args: Any) -> None:
        self.logger.error(msg, *args)

    def exception(self, msg: str, *args: Any) -> None:
        self.logger.exception(msg, *args)

    @contextmanager
    def span(self, name: str, /, **fields: Any) -> Iterator[Span]:
        """ Time the enclosed block.

            Logs 'Started span' on entry and 'Ended span' with duration_ms and
            outcome on exit. An exception marks the outcome 'error' and is
            re-raised.

            Example:
                with log.span("load_file", path=str(p)) as span:
                    if skip:
                        span.outcome = "skipped"
        """
        span = Span(name=name, span_id=f"{name}-{uuid.uuid4().hex[:8]}", fields=fields)
        self.debug("Started span: %s %s", span.span_id, _format_fields(fields))
        try:
            yield span
        except BaseException:
            span.outcome = "error"
            raise
        finally:
            span.duration_ms = (time.perf_counter() - span.started) * 1000.0
            self.debug("Ended span: %s duration_ms=%.2f outcome=%s %s",
                       span.span_id, span.duration_ms, span.outcome or "success",
                       _format_fields(fields))
