"""
Unary and streaming responders.

Turn an executor outcome into an HTTP response. Nothing raised by the
executor escapes: it is converted to an INTERNAL failure instead.
"""

import logging
from typing import Any, AsyncIterator, Protocol, Union

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response, StreamingResponse

from ..core.exceptions import error_body
from ..core.status import StatusName, map_status
from ..core.streaming import error_chunk, message_chunk, result_chunk
from ..models.invocation import (
    ActionFailure,
    InvocationRequest,
    InvocationResult,
    StreamChunk,
    trace_headers,
)
from .executor import describe_exception

logger = logging.getLogger("gateway.responders")


class Executor(Protocol):
    async def invoke(self, action_name: str, input_payload: Any, headers) -> InvocationResult: ...

    def invoke_streaming(
        self, action_name: str, input_payload: Any, headers
    ) -> AsyncIterator[Union[StreamChunk, InvocationResult]]: ...


def _internal_failure(message: str) -> ActionFailure:
    return ActionFailure(status=StatusName.INTERNAL.value, message=message)


def trace_ids(result: InvocationResult) -> dict:
    return {"trace_id": result.trace_id, "span_id": result.span_id}


def _failure_response(failure: ActionFailure) -> JSONResponse:
    return JSONResponse(
        status_code=map_status(failure.status),
        content=jsonable_encoder(error_body(failure.status, failure.message, failure.details)),
        headers=trace_headers(failure),
    )


async def respond_unary(request: InvocationRequest, executor: Executor) -> Response:
    """Invoke the action to completion and render one JSON body."""
    try:
        result = await executor.invoke(request.action_name, request.input_payload, request.headers)
    except Exception as e:
        logger.exception(
            f"Executor raised for '{request.action_name}'",
            extra={"action_name": request.action_name, "error_type": type(e).__name__},
        )
        result = _internal_failure(
            f"Unhandled error invoking '{request.action_name}': {describe_exception(e)}"
        )

    try:
        if not result.is_success:
            return _failure_response(result)
        content = jsonable_encoder({"result": result.value})
        return JSONResponse(status_code=200, content=content, headers=trace_headers(result))
    except Exception as e:
        logger.error(
            f"Result of '{request.action_name}' is not JSON serializable",
            extra={"action_name": request.action_name, "error_detail": str(e)},
        )
        failure = _internal_failure(f"Result is not JSON serializable: {describe_exception(e)}")
        return _failure_response(failure.model_copy(update=trace_ids(result)))


def _terminal_chunk(result: InvocationResult) -> str:
    if result.is_success:
        return result_chunk(result.value)
    return error_chunk(result.status, result.message, result.details)


async def stream_body(request: InvocationRequest, executor: Executor) -> AsyncIterator[str]:
    """
    Yield the framed chunks of one streaming invocation.

    Always ends with exactly one terminal chunk (result or error).
    """
    stream = None
    try:
        stream = executor.invoke_streaming(
            request.action_name, request.input_payload, request.headers
        )
        async for item in stream:
            try:
                if isinstance(item, StreamChunk):
                    chunk = message_chunk(item.payload)
                else:
                    chunk = _terminal_chunk(item)
            except Exception as e:
                logger.error(
                    f"Output of '{request.action_name}' is not JSON serializable",
                    extra={"action_name": request.action_name, "error_detail": str(e)},
                )
                yield error_chunk(
                    StatusName.INTERNAL.value,
                    f"Output is not JSON serializable: {describe_exception(e)}",
                )
                return

            yield chunk
            if not isinstance(item, StreamChunk):
                return

        logger.error(
            f"Stream for '{request.action_name}' ended without a result",
            extra={"action_name": request.action_name},
        )
        yield error_chunk(StatusName.INTERNAL.value, "Stream ended without a result")

    except Exception as e:
        logger.exception(
            f"Executor raised while streaming '{request.action_name}'",
            extra={"action_name": request.action_name, "error_type": type(e).__name__},
        )
        yield error_chunk(
            StatusName.INTERNAL.value,
            f"Unhandled error invoking '{request.action_name}': {describe_exception(e)}",
        )

    finally:
        aclose = getattr(stream, "aclose", None)
        if aclose is not None:
            await aclose()


def respond_streaming(
    request: InvocationRequest, executor: Executor, media_type: str = "text/plain"
) -> StreamingResponse:
    """Commit a 200 chunked response and stream the invocation into it."""
    return StreamingResponse(
        stream_body(request, executor),
        status_code=200,
        media_type=media_type,
        headers={"Transfer-Encoding": "chunked"},
    )
