"""
Data model definitions package.

Aggregates Pydantic models for use in other modules.
"""

from .invocation import (
    ActionFailure,
    ActionSuccess,
    InvocationRequest,
    InvocationResult,
    StreamChunk,
)

__all__ = [
    "ActionFailure",
    "ActionSuccess",
    "InvocationRequest",
    "InvocationResult",
    "StreamChunk",
]
