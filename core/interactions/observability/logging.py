"""
Session-aware logging.

A simulator or bridge session stamps its ``project_id`` and ``session_id``
into a ContextVar once; every record logged afterwards in that context, from
any module, is rendered with them. Two renderings exist:

- ``json``: one JSON object per line, for hosts that ship logs somewhere
- ``human``: colored single lines with a ``[project | session]`` prefix

    GameSimulator.start()
        set_trace_context(project_id=..., session_id=...)
    run_traversal()
        logger.debug("Set quest = 'started'")   # rendered with both ids
"""

import json
import logging
import os
import re
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, TextIO

trace_context: ContextVar[dict[str, Any] | None] = ContextVar("trace_context", default=None)

# Record attributes copied into the output when a caller passes them via extra=
RECORD_FIELDS = ("node_id", "event")

LEVEL_COLORS = {
    logging.DEBUG: "\x1b[36m",
    logging.INFO: "\x1b[32m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[35m",
}
RESET = "\x1b[0m"

_ANSI = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi_codes(text: str) -> str:
    return _ANSI.sub("", text)


def _record_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields = {}
    for name in RECORD_FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            fields[name] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Render records as JSON lines carrying the session context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": strip_ansi_codes(record.getMessage()),
            **get_trace_context(),
            **_record_fields(record),
        }
        if isinstance(entry.get("event"), str):
            entry["event"] = strip_ansi_codes(entry["event"])
        if record.exc_info:
            entry["exception"] = strip_ansi_codes(self.formatException(record.exc_info))
        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Render records as colored lines for a terminal."""

    def format(self, record: logging.LogRecord) -> str:
        context = get_trace_context()
        tags = []
        if context.get("project_id"):
            tags.append(f"project:{context['project_id']}")
        if context.get("session_id"):
            tags.append(f"session:{context['session_id'][-8:]}")

        color = LEVEL_COLORS.get(record.levelno, "")
        parts = [f"{color}[{record.levelname:<8}]{RESET}"]
        if tags:
            parts.append(f"[{' | '.join(tags)}]")
        parts.append(record.getMessage())

        event = getattr(record, "event", None)
        if event is not None:
            parts.append(f"[{event}]")

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _resolve_format(format: str) -> str:
    if format != "auto":
        return format
    if os.getenv("LOG_FORMAT", "").lower() == "json":
        return "json"
    if os.getenv("ENV", "development").lower() == "production":
        return "json"
    return "human"


def configure_logging(
    level: str = "INFO",
    format: str = "auto",
    stream: TextIO | None = None,
) -> logging.Handler:
    """
    Install a single root handler.

    Args:
        level: Root log level name, case-insensitive
        format: "json", "human", or "auto" (json when LOG_FORMAT=json or
            ENV=production)
        stream: Output stream, stderr by default

    Returns:
        The installed handler
    """
    if _resolve_format(format) == "json":
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = HumanReadableFormatter()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())
    return handler


def set_trace_context(**fields: Any) -> None:
    """Merge fields into the logging context of the current task or thread."""
    trace_context.set({**get_trace_context(), **fields})


def get_trace_context() -> dict[str, Any]:
    """Copy of the current logging context; empty when nothing is set."""
    return dict(trace_context.get() or {})


def clear_trace_context() -> None:
    trace_context.set(None)
