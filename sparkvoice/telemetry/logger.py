"""Structured event logging utilities.

Responsibilities:
- Emit concise, deterministic event lines for pipeline and scheduler activity.
- Route each logger's lines to its own sink through `loguru`.
"""

from __future__ import annotations

import itertools
import sys
from threading import Lock
from typing import TextIO

from loguru import logger as _loguru_logger

_TOKENS = itertools.count(1)
_DEFAULT_HANDLER_LOCK = Lock()
_default_handler_removed = False
_SHARED_LOGGER_LOCK = Lock()
_shared_logger: EventLogger | None = None


def _remove_default_handler() -> None:
    """Drop loguru's stock stderr handler once so lines are not printed twice."""

    global _default_handler_removed
    with _DEFAULT_HANDLER_LOCK:
        if _default_handler_removed:
            return
        try:
            _loguru_logger.remove(0)
        except ValueError:
            pass
        _default_handler_removed = True


def _write_stderr(message: str) -> None:
    """Write to whatever `sys.stderr` is at emit time."""

    sys.stderr.write(message)


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/", "+"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


class EventLogger:
    """Emit deterministic event lines to a dedicated sink."""

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Register a loguru handler that only receives this logger's lines."""

        _remove_default_handler()
        self._sink = sink if sink is not None else _write_stderr
        token = next(_TOKENS)
        self._logger = _loguru_logger.bind(event_logger=token)
        self._handler_id = _loguru_logger.add(
            self._sink,
            format="{message}",
            level=level,
            colorize=False,
            filter=lambda record: record["extra"].get("event_logger") == token,
        )

    def _emit(self, level: str, component: str, event: str, **context: object) -> None:
        """Emit one structured event line."""

        line = f"[event] level={level} component={component} event={event}{_format_context(context)}"
        self._logger.log(level, line)

    def info(self, component: str, event: str, **context: object) -> None:
        """Emit an INFO event."""

        self._emit("INFO", component, event, **context)

    def warning(self, component: str, event: str, **context: object) -> None:
        """Emit a WARNING event."""

        self._emit("WARNING", component, event, **context)

    def error(self, component: str, event: str, **context: object) -> None:
        """Emit an ERROR event; callers pass error types, never secret payloads."""

        self._emit("ERROR", component, event, **context)

    def close(self) -> None:
        """Detach this logger's handler."""

        _loguru_logger.remove(self._handler_id)


def shared_event_logger() -> EventLogger:
    """Return the process-wide stderr logger used when callers pass none.

    It is created once and never closed, so constructing many pipelines or
    schedulers without an explicit logger does not add loguru handlers.
    """

    global _shared_logger
    with _SHARED_LOGGER_LOCK:
        if _shared_logger is None:
            _shared_logger = EventLogger()
        return _shared_logger
