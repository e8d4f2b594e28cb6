"""
Invocation models.

InvocationRequest -> (StreamChunk*) -> InvocationResult.
"""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class InvocationRequest(BaseModel):
    """
    One decoded call to a named action.

    Immutable; header names are lower-cased and passed through untouched.
    """

    model_config = ConfigDict(frozen=True)

    action_name: str
    input_payload: Any = None
    wants_stream: bool = False
    headers: Dict[str, str] = Field(default_factory=dict)


class StreamChunk(BaseModel):
    """Intermediate value emitted by a streaming action."""

    model_config = ConfigDict(frozen=True)

    payload: Any = None


class ActionSuccess(BaseModel):
    """Terminal outcome of an action that completed."""

    model_config = ConfigDict(frozen=True)

    value: Any = None
    trace_id: Optional[str] = None
    span_id: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return True


class ActionFailure(BaseModel):
    """Terminal outcome of an action that failed."""

    model_config = ConfigDict(frozen=True)

    status: str
    message: str
    details: Any = None
    trace_id: Optional[str] = None
    span_id: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return False


InvocationResult = Union[ActionSuccess, ActionFailure]


def trace_headers(result: InvocationResult) -> Dict[str, str]:
    """x-genkit-* correlation headers carried by a result."""
    headers = {}
    if result.trace_id:
        headers["x-genkit-trace-id"] = result.trace_id
    if result.span_id:
        headers["x-genkit-span-id"] = result.span_id
    return headers
