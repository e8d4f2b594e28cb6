"""
Where: flowgate/gateway/client.py
What: HTTP client for flows served by the gateway (unary and streaming).
Why: Give Python callers the same wire contract the gateway serves.
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from flowgate.common.core.config import BaseAppConfig
from flowgate.common.core.http_client import HttpClientFactory
from flowgate.common.core.request_context import get_trace_id
from flowgate.common.core.trace import TraceParent

from .core.exceptions import FlowError
from .core.status import StatusName, status_name_for_http
from .core.streaming import CHUNK_DELIMITER, DATA_PREFIX, ERROR_PREFIX

logger = logging.getLogger("gateway.client")

_MISSING = object()


class FlowInvocationError(FlowError):
    """A flow call that came back as an error body or an error chunk."""

    def __init__(
        self,
        status: str,
        message: str,
        details: Optional[Any] = None,
        http_status: Optional[int] = None,
    ):
        super().__init__(status, message, details)
        self.response_status = http_status


def _parse_chunk(block: str) -> tuple:
    prefix, sep, payload = block.partition(":")
    if not sep:
        raise FlowInvocationError(
            StatusName.INTERNAL.value, f"Malformed stream chunk: {block[:200]!r}"
        )
    try:
        return prefix.strip(), json.loads(payload)
    except json.JSONDecodeError as e:
        raise FlowInvocationError(
            StatusName.INTERNAL.value, f"Stream chunk is not valid JSON: {e.msg}"
        ) from e


def _error_from_response(response: httpx.Response) -> FlowInvocationError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    return FlowInvocationError(
        status=body.get("status") or status_name_for_http(response.status_code).value,
        message=body.get("message") or response.text or f"HTTP {response.status_code}",
        details=body.get("details"),
        http_status=response.status_code,
    )


class FlowStream:
    """
    Async iterator over the chunks of one streaming flow call.

    After iteration completes, `result` holds the flow output. An error
    chunk raises FlowInvocationError from the iteration.
    """

    def __init__(self, client: "FlowClient", action_name: str, data: Any, headers: Dict[str, str]):
        self._client = client
        self._action_name = action_name
        self._data = data
        self._headers = headers
        self._result: Any = _MISSING

    @property
    def result(self) -> Any:
        if self._result is _MISSING:
            raise RuntimeError("Stream has not produced a result yet")
        return self._result

    def __aiter__(self) -> AsyncIterator[Any]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Any]:
        headers = {**self._headers, "Accept": "text/event-stream"}
        async with self._client.http_client.stream(
            "POST",
            self._client.flow_url(self._action_name),
            json={"data": self._data},
            headers=headers,
            timeout=self._client.timeout,
        ) as response:
            if response.status_code != 200:
                await response.aread()
                raise _error_from_response(response)

            buffer = ""
            async for text in response.aiter_text():
                buffer += text
                while CHUNK_DELIMITER in buffer:
                    block, buffer = buffer.split(CHUNK_DELIMITER, 1)
                    if not block.strip():
                        continue
                    prefix, payload = _parse_chunk(block)
                    if prefix == ERROR_PREFIX:
                        error = payload.get("error", {}) if isinstance(payload, dict) else {}
                        raise FlowInvocationError(
                            status=error.get("status", StatusName.UNKNOWN.value),
                            message=error.get("message", "Flow failed"),
                            details=error.get("details"),
                            http_status=response.status_code,
                        )
                    if prefix != DATA_PREFIX or not isinstance(payload, dict):
                        logger.warning(f"Ignoring unexpected stream chunk prefix '{prefix}'")
                        continue
                    if "message" in payload:
                        yield payload["message"]
                    elif "result" in payload:
                        self._result = payload["result"]
                        return

        raise FlowInvocationError(
            StatusName.INTERNAL.value, "Stream closed before a result was received"
        )


class FlowClient:
    """
    Client for flows exposed by a gateway at `base_url`.
    """

    def __init__(
        self,
        base_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        config: Optional[BaseAppConfig] = None,
    ):
        """
        Args:
            base_url: gateway URL that flow names are appended to
            http_client: shared httpx.AsyncClient; one is created (and owned) when omitted
            timeout: per-call timeout (seconds); None keeps the http client's default
            config: settings for the owned client (SSL verification)
        """
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        if http_client is None:
            factory = HttpClientFactory(config or BaseAppConfig())
            factory.configure_global_settings()
            http_client = factory.create_async_client()
        self.http_client = http_client
        self.timeout = httpx.USE_CLIENT_DEFAULT if timeout is None else timeout

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> "FlowClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def flow_url(self, action_name: str) -> str:
        return f"{self.base_url}/{action_name}"

    def _request_headers(self, headers: Optional[Dict[str, str]]) -> Dict[str, str]:
        merged = {"Content-Type": "application/json"}
        trace_id = get_trace_id()
        if trace_id:
            # Continue the caller's trace on the gateway side.
            merged["traceparent"] = str(TraceParent(trace_id=trace_id).child())
        merged.update(headers or {})
        return merged

    async def run_flow(
        self, action_name: str, data: Any = None, headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        Invoke a flow and return its result.

        Raises:
            FlowInvocationError: the gateway answered with an error body
        """
        response = await self.http_client.post(
            self.flow_url(action_name),
            json={"data": data},
            headers=self._request_headers(headers),
            timeout=self.timeout,
        )
        if response.status_code != 200:
            raise _error_from_response(response)

        body = response.json()
        if not isinstance(body, dict) or "result" not in body:
            raise FlowInvocationError(
                StatusName.INTERNAL.value,
                "Response body has no 'result' field",
                http_status=response.status_code,
            )
        return body["result"]

    def stream_flow(
        self, action_name: str, data: Any = None, headers: Optional[Dict[str, str]] = None
    ) -> FlowStream:
        """Invoke a flow in streaming mode; iterate the returned FlowStream for chunks."""
        return FlowStream(self, action_name, data, self._request_headers(headers))
