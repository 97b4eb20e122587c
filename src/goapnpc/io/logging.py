"""Structured logging for agents, the planner and the CLI."""

from __future__ import annotations

import json
import sys
from datetime import datetime, UTC
from typing import Any, TextIO


_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


class StructuredLogger:
    """Write log records as JSON lines or ``key=value`` text.

    Loggers are cheap to derive: :meth:`bind` returns a sibling sharing the
    same stream and level with extra context fields, which is how every agent
    gets its own ``agent=<name>`` field.
    """

    def __init__(
        self,
        *,
        name: str,
        json_mode: bool = False,
        stream: TextIO | None = None,
        level: str = "DEBUG",
        context: dict[str, Any] | None = None,
    ) -> None:
        """Create a logger writing records at ``level`` or above to ``stream``."""
        threshold = level.upper()
        if threshold not in _LEVELS:
            msg = f"unknown log level: {level}"
            raise ValueError(msg)
        self._name = name
        self._json_mode = json_mode
        self._stream: TextIO = stream if stream is not None else sys.stdout
        self._level = threshold
        self._context: dict[str, Any] = dict(context or {})

    @property
    def name(self) -> str:
        """Return the logger name."""
        return self._name

    @property
    def json_mode(self) -> bool:
        """Return ``True`` when records are written as JSON lines."""
        return self._json_mode

    @property
    def level(self) -> str:
        """Return the minimum level that is written."""
        return self._level

    def bind(self, **fields: Any) -> StructuredLogger:
        """Return a logger sharing this output that adds ``fields`` to every record."""
        return StructuredLogger(
            name=self._name,
            json_mode=self._json_mode,
            stream=self._stream,
            level=self._level,
            context={**self._context, **fields},
        )

    def log(self, level: str, message: str, **fields: Any) -> None:
        """Write ``message`` at ``level`` unless it is below the threshold."""
        if _LEVELS[level] < _LEVELS[self._level]:
            return
        record = {**self._context, **fields}
        when = datetime.now(UTC).isoformat()
        if self._json_mode:
            line = self._as_json(when, level, message, record)
        else:
            line = self._as_text(when, level, message, record)
        self._stream.write(line + "\n")
        self._stream.flush()

    def debug(self, message: str, **fields: Any) -> None:
        """Write a DEBUG record."""
        self.log("DEBUG", message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        """Write an INFO record."""
        self.log("INFO", message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        """Write a WARNING record."""
        self.log("WARNING", message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        """Write an ERROR record."""
        self.log("ERROR", message, **fields)

    def _as_json(self, when: str, level: str, message: str, record: dict[str, Any]) -> str:
        body: dict[str, Any] = {"timestamp": when, "level": level, "logger": self._name, "message": message}
        body.update(record)
        return json.dumps(body, ensure_ascii=False, default=str)

    def _as_text(self, when: str, level: str, message: str, record: dict[str, Any]) -> str:
        head = f"[{when}] {level:<7} {self._name}: {message}"
        if not record:
            return head
        pairs = " ".join(f"{key}={json.dumps(value, ensure_ascii=False, default=str)}" for key, value in record.items())
        return f"{head} | {pairs}"


def quiet_logger() -> StructuredLogger:
    """Return a logger that only writes errors to stderr."""
    return StructuredLogger(name="goapnpc", stream=sys.stderr, level="ERROR")


__all__ = ["StructuredLogger", "quiet_logger"]
