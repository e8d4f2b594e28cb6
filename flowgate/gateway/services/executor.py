"""
Action Executor Service

Runs registered actions for the gateway responders and converts every
outcome into an InvocationResult (ActionSuccess / ActionFailure).
"""

import asyncio
import contextlib
import logging
from typing import Any, AsyncIterator, Mapping, Optional, Union

from flowgate.common.core.request_context import get_trace_id, set_span_id, start_trace
from flowgate.common.core.trace import generate_span_id

from ..core.action import Action, ActionContext
from ..core.exceptions import ActionNotFoundError, FlowError
from ..core.status import StatusName
from ..models.invocation import ActionFailure, ActionSuccess, InvocationResult, StreamChunk
from .action_registry import ActionRegistry

logger = logging.getLogger("gateway.executor")


class _StreamDone:
    """Queue sentinel carrying the terminal result."""

    def __init__(self, result: InvocationResult):
        self.result = result


def describe_exception(exc: BaseException) -> str:
    """Non-empty diagnostic text for an exception."""
    return str(exc) or type(exc).__name__


class ActionExecutor:
    def __init__(
        self,
        registry: ActionRegistry,
        default_timeout: Optional[float] = None,
        stream_buffer_size: int = 16,
    ):
        """
        Args:
            registry: ActionRegistry used to resolve action names
            default_timeout: deadline (seconds) for actions without their own; None disables it
            stream_buffer_size: chunks buffered per stream before send_chunk blocks
        """
        if stream_buffer_size < 1:
            raise ValueError("stream_buffer_size must be >= 1")
        self.registry = registry
        self.default_timeout = default_timeout
        self.stream_buffer_size = stream_buffer_size

    def _timeout_for(self, action: Action) -> Optional[float]:
        return action.timeout if action.timeout is not None else self.default_timeout

    async def _execute(self, action: Action, input_payload: Any, ctx: ActionContext) -> Any:
        timeout = self._timeout_for(action)
        if timeout is None:
            return await action.run(input_payload, ctx)
        return await asyncio.wait_for(action.run(input_payload, ctx), timeout)

    async def _run_to_result(
        self,
        action_name: str,
        input_payload: Any,
        headers: Mapping[str, str],
        chunk_sink=None,
    ) -> InvocationResult:
        trace_id = get_trace_id() or start_trace()
        span_id = generate_span_id()
        set_span_id(span_id)

        try:
            action = self.registry.lookup(action_name)
            auth = await action.resolve_auth(headers)
            ctx = ActionContext(headers=headers, auth=auth, chunk_sink=chunk_sink)
            value = await self._execute(action, input_payload, ctx)
            return ActionSuccess(value=value, trace_id=trace_id, span_id=span_id)

        except ActionNotFoundError as e:
            logger.warning(str(e), extra={"action_name": action_name})
            return ActionFailure(
                status=e.status, message=e.message, trace_id=trace_id, span_id=span_id
            )

        except FlowError as e:
            logger.info(
                f"Action '{action_name}' failed with {e.status}",
                extra={"action_name": action_name, "status": e.status},
            )
            return ActionFailure(
                status=e.status,
                message=e.message,
                details=e.details,
                trace_id=trace_id,
                span_id=span_id,
            )

        except asyncio.TimeoutError:
            logger.warning(
                f"Action '{action_name}' exceeded its deadline",
                extra={"action_name": action_name},
            )
            return ActionFailure(
                status=StatusName.DEADLINE_EXCEEDED.value,
                message=f"Action '{action_name}' exceeded its deadline",
                trace_id=trace_id,
                span_id=span_id,
            )

        except Exception as e:
            logger.exception(
                f"Action '{action_name}' raised an unexpected error",
                extra={"action_name": action_name, "error_type": type(e).__name__},
            )
            return ActionFailure(
                status=StatusName.INTERNAL.value,
                message=describe_exception(e),
                trace_id=trace_id,
                span_id=span_id,
            )

    async def invoke(
        self, action_name: str, input_payload: Any, headers: Mapping[str, str]
    ) -> InvocationResult:
        """Run an action to completion; chunks it sends are discarded."""
        return await self._run_to_result(action_name, input_payload, headers)

    async def invoke_streaming(
        self, action_name: str, input_payload: Any, headers: Mapping[str, str]
    ) -> AsyncIterator[Union[StreamChunk, InvocationResult]]:
        """
        Run an action, yielding each chunk it sends and then its result.

        The action runs as its own task and hands chunks over a bounded
        queue. Closing this iterator early cancels the action.
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.stream_buffer_size)
        closing = False

        async def sink(chunk: Any) -> None:
            await queue.put(StreamChunk(payload=chunk))

        async def produce() -> None:
            try:
                result = await self._run_to_result(action_name, input_payload, headers, sink)
            except asyncio.CancelledError:
                if closing:
                    raise
                # Cancelled from inside the action, not by the consumer.
                result = ActionFailure(
                    status=StatusName.CANCELLED.value,
                    message=f"Action '{action_name}' was cancelled",
                    trace_id=get_trace_id(),
                )
            await queue.put(_StreamDone(result))

        task = asyncio.create_task(produce())
        try:
            while True:
                item = await queue.get()
                if isinstance(item, _StreamDone):
                    yield item.result
                    return
                yield item
        finally:
            if not task.done():
                closing = True
                logger.info(
                    f"Stream for '{action_name}' closed early; cancelling action",
                    extra={"action_name": action_name},
                )
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
