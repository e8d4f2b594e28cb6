"""
Where: flowgate/common/core/trace.py
What: W3C trace context identifiers (traceparent header).
Why: Give every invocation a trace id / span id pair that callers can correlate.
"""

import re
import secrets
from typing import Optional

_TRACEPARENT_RE = re.compile(
    r"^(?P<version>[0-9a-f]{2})-(?P<trace_id>[0-9a-f]{32})-(?P<parent_id>[0-9a-f]{16})-(?P<flags>[0-9a-f]{2})$"
)
_INVALID_TRACE_ID = "0" * 32
_INVALID_SPAN_ID = "0" * 16


def generate_span_id() -> str:
    """Generate a new 16 hex-char span id."""
    return secrets.token_hex(8)


class TraceParent:
    """
    W3C traceparent header:
    00-<32 hex trace id>-<16 hex parent span id>-<2 hex flags>
    """

    def __init__(self, trace_id: str, parent_id: Optional[str] = None, sampled: bool = True):
        self.trace_id = trace_id
        self.parent_id = parent_id
        self.sampled = sampled

    @classmethod
    def generate(cls) -> "TraceParent":
        """Generate a new trace (no parent span)."""
        return cls(trace_id=secrets.token_hex(16))

    @classmethod
    def parse(cls, header: str) -> "TraceParent":
        """
        Parse a traceparent header string.

        Raises:
            ValueError: when the header is not a valid traceparent value
        """
        match = _TRACEPARENT_RE.match(header.strip().lower())
        if not match:
            raise ValueError(f"Invalid traceparent header: {header!r}")
        if match.group("version") == "ff":
            raise ValueError("Unsupported traceparent version: ff")

        trace_id = match.group("trace_id")
        parent_id = match.group("parent_id")
        if trace_id == _INVALID_TRACE_ID or parent_id == _INVALID_SPAN_ID:
            raise ValueError(f"All-zero id in traceparent header: {header!r}")

        sampled = bool(int(match.group("flags"), 16) & 0x01)
        return cls(trace_id=trace_id, parent_id=parent_id, sampled=sampled)

    def child(self, span_id: Optional[str] = None) -> "TraceParent":
        """Return the traceparent for a child span of this trace."""
        return TraceParent(
            trace_id=self.trace_id,
            parent_id=span_id or generate_span_id(),
            sampled=self.sampled,
        )

    def __str__(self) -> str:
        parent = self.parent_id or _INVALID_SPAN_ID
        flags = "01" if self.sampled else "00"
        return f"00-{self.trace_id}-{parent}-{flags}"
