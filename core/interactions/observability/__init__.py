"""Logging setup and the per-session context attached to every record."""

from interactions.observability.logging import (
    clear_trace_context,
    configure_logging,
    get_trace_context,
    set_trace_context,
)

__all__ = [
    "configure_logging",
    "set_trace_context",
    "get_trace_context",
    "clear_trace_context",
]
