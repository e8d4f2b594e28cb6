"""
RequestContext management.
Use ContextVar to share trace / span ids across async execution.
"""

from contextvars import ContextVar
from typing import Optional

from .trace import TraceParent


# Context variable for the trace id (32 hex).
_trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)
# Context variable for the span id of the running action (16 hex).
_span_id_var: ContextVar[Optional[str]] = ContextVar("span_id", default=None)


def get_trace_id() -> Optional[str]:
    """Get the current trace id."""
    return _trace_id_var.get()


def get_span_id() -> Optional[str]:
    """Get the current span id."""
    return _span_id_var.get()


def set_trace_id(traceparent: str) -> str:
    """
    Set the trace id from a traceparent header.

    Args:
        traceparent: W3C traceparent header string

    Returns:
        The trace id that was set

    Raises:
        ValueError: when the header cannot be parsed
    """
    trace = TraceParent.parse(traceparent)
    _trace_id_var.set(trace.trace_id)
    return trace.trace_id


def start_trace() -> str:
    """Generate and set a new trace id for the current context."""
    trace = TraceParent.generate()
    _trace_id_var.set(trace.trace_id)
    return trace.trace_id


def set_span_id(span_id: Optional[str]) -> None:
    _span_id_var.set(span_id)


def clear_trace_id() -> None:
    """Clear the trace context."""
    _trace_id_var.set(None)
    _span_id_var.set(None)
