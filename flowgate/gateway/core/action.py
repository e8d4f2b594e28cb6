"""
Where: flowgate/gateway/core/action.py
What: Action wrapper and the per-invocation ActionContext.
Why: Let flows be plain or async callables taking (input) or (input, ctx).
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional

from starlette.concurrency import run_in_threadpool

from .exceptions import FlowError
from .status import StatusName

ContextProvider = Callable[[Mapping[str, str]], Any]


class ActionContext:
    """
    Per-invocation context handed to an action.

    Async actions await `send_chunk`: in streaming mode it blocks when the
    stream buffer is full, in unary mode it discards the chunk. Sync actions
    cannot stream.
    """

    def __init__(
        self,
        headers: Optional[Mapping[str, str]] = None,
        auth: Any = None,
        chunk_sink: Optional[Callable[[Any], Awaitable[None]]] = None,
    ):
        self.headers = dict(headers or {})
        self.auth = auth
        self._chunk_sink = chunk_sink

    @property
    def is_streaming(self) -> bool:
        return self._chunk_sink is not None

    def send_chunk(self, chunk: Any) -> Optional[Awaitable[None]]:
        """
        Emit a chunk; async actions await the returned awaitable.

        Raises:
            FlowError: FAILED_PRECONDITION when a sync action (running in the
                threadpool) calls it while streaming
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            if self.is_streaming:
                raise FlowError(
                    StatusName.FAILED_PRECONDITION,
                    "send_chunk requires an async action; sync actions cannot stream",
                ) from None
            return None
        return self._deliver(chunk)

    async def _deliver(self, chunk: Any) -> None:
        if self._chunk_sink is None:
            return
        await self._chunk_sink(chunk)


def _accepts_context(fn: Callable[..., Any]) -> bool:
    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return False
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return True
    positional = [
        p
        for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    return len(positional) >= 2


@dataclass
class Action:
    """A named, invokable unit of work."""

    name: str
    fn: Callable[..., Any]
    timeout: Optional[float] = None
    description: Optional[str] = None
    context_provider: Optional[ContextProvider] = None

    def __post_init__(self):
        self._takes_context = _accepts_context(self.fn)
        self._is_async = inspect.iscoroutinefunction(self.fn) or inspect.iscoroutinefunction(
            getattr(self.fn, "__call__", None)
        )

    async def resolve_auth(self, headers: Mapping[str, str]) -> Any:
        """Run the context provider (if any) against the forwarded headers."""
        if self.context_provider is None:
            return None
        auth = self.context_provider(headers)
        if inspect.isawaitable(auth):
            auth = await auth
        return auth

    async def run(self, input_payload: Any, ctx: ActionContext) -> Any:
        args = (input_payload, ctx) if self._takes_context else (input_payload,)
        if self._is_async:
            return await self.fn(*args)

        # Plain callables run in the threadpool; they cannot await send_chunk.
        result = await run_in_threadpool(self.fn, *args)
        if asyncio.iscoroutine(result):
            result = await result
        return result
