"""
Where: flowgate/gateway/tests/test_responders.py
What: Unary and streaming responders against fake executors.
Why: Executor faults must always come back as well-formed results or one terminal chunk.
"""

import json

import pytest

from flowgate.gateway.models.invocation import (
    ActionFailure,
    ActionSuccess,
    InvocationRequest,
    StreamChunk,
)
from flowgate.gateway.services.responders import respond_streaming, respond_unary, stream_body


def _request(stream: bool = False) -> InvocationRequest:
    return InvocationRequest(
        action_name="helloFlow",
        input_payload={"name": "Ada"},
        wants_stream=stream,
        headers={"authorization": "Bearer abc"},
    )


class FakeExecutor:
    def __init__(self, result=None, chunks=(), error=None, stream_error_after=None):
        self.result = result
        self.chunks = list(chunks)
        self.error = error
        self.stream_error_after = stream_error_after
        self.calls = []
        self.closed = False

    async def invoke(self, action_name, input_payload, headers):
        self.calls.append((action_name, input_payload, headers))
        if self.error:
            raise self.error
        return self.result

    async def invoke_streaming(self, action_name, input_payload, headers):
        self.calls.append((action_name, input_payload, headers))
        try:
            for index, chunk in enumerate(self.chunks):
                if self.stream_error_after is not None and index >= self.stream_error_after:
                    raise self.error
                yield StreamChunk(payload=chunk)
            if self.error and self.stream_error_after is not None:
                raise self.error
            if self.result is not None:
                yield self.result
        finally:
            self.closed = True


async def _collect(request, executor):
    return [chunk async for chunk in stream_body(request, executor)]


@pytest.mark.asyncio
async def test_unary_success_passes_value_and_trace_headers():
    executor = FakeExecutor(
        result=ActionSuccess(
            value={"greeting": "Hello, Ada"}, trace_id="a" * 32, span_id="b" * 16
        )
    )

    response = await respond_unary(_request(), executor)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    assert response.headers["x-genkit-trace-id"] == "a" * 32
    assert response.headers["x-genkit-span-id"] == "b" * 16
    assert json.loads(response.body) == {"result": {"greeting": "Hello, Ada"}}
    assert executor.calls == [("helloFlow", {"name": "Ada"}, {"authorization": "Bearer abc"})]


@pytest.mark.asyncio
async def test_unary_failure_uses_mapped_status():
    executor = FakeExecutor(
        result=ActionFailure(status="NOT_FOUND", message="no such user", details={"id": 7})
    )

    response = await respond_unary(_request(), executor)

    assert response.status_code == 404
    assert json.loads(response.body) == {
        "code": 404,
        "status": "NOT_FOUND",
        "message": "no such user",
        "details": {"id": 7},
    }


@pytest.mark.asyncio
async def test_unary_failure_omits_absent_details():
    executor = FakeExecutor(result=ActionFailure(status="PERMISSION_DENIED", message="nope"))

    response = await respond_unary(_request(), executor)

    assert response.status_code == 403
    assert "details" not in json.loads(response.body)


@pytest.mark.asyncio
async def test_unary_unknown_status_maps_to_500():
    executor = FakeExecutor(result=ActionFailure(status="TEAPOT", message="short and stout"))

    response = await respond_unary(_request(), executor)

    assert response.status_code == 500
    assert json.loads(response.body)["status"] == "TEAPOT"


@pytest.mark.asyncio
async def test_unary_executor_raise_becomes_internal():
    executor = FakeExecutor(error=RuntimeError("executor exploded"))

    response = await respond_unary(_request(), executor)

    assert response.status_code == 500
    body = json.loads(response.body)
    assert body["code"] == 500
    assert body["status"] == "INTERNAL"
    assert "executor exploded" in body["message"]
    assert "details" not in body


@pytest.mark.asyncio
async def test_unary_unserializable_value_becomes_internal():
    executor = FakeExecutor(result=ActionSuccess(value=object()))

    response = await respond_unary(_request(), executor)

    assert response.status_code == 500
    assert json.loads(response.body)["status"] == "INTERNAL"


@pytest.mark.asyncio
async def test_stream_chunks_in_order_then_result():
    executor = FakeExecutor(
        chunks=["Hello", ", Ada"],
        result=ActionSuccess(value={"greeting": "Hello, Ada"}),
    )

    chunks = await _collect(_request(stream=True), executor)

    assert chunks == [
        'data: {"message": "Hello"}\n\n',
        'data: {"message": ", Ada"}\n\n',
        'data: {"result": {"greeting": "Hello, Ada"}}\n\n',
    ]
    assert executor.closed is True


@pytest.mark.asyncio
async def test_stream_failure_result_becomes_error_chunk():
    executor = FakeExecutor(
        chunks=["partial"],
        result=ActionFailure(status="DEADLINE_EXCEEDED", message="too slow"),
    )

    chunks = await _collect(_request(stream=True), executor)

    assert chunks[0] == 'data: {"message": "partial"}\n\n'
    assert chunks[1] == (
        'error: {"error": {"status": "DEADLINE_EXCEEDED", "message": "too slow"}}\n\n'
    )
    assert len(chunks) == 2


@pytest.mark.asyncio
async def test_stream_executor_raise_mid_stream_yields_single_error_chunk():
    executor = FakeExecutor(
        chunks=["one", "two"], error=RuntimeError("kaboom"), stream_error_after=1
    )

    chunks = await _collect(_request(stream=True), executor)

    assert len(chunks) == 2
    assert chunks[0] == 'data: {"message": "one"}\n\n'
    assert chunks[1].startswith("error: ")
    payload = json.loads(chunks[1][len("error: ") :])
    assert payload["error"]["status"] == "INTERNAL"
    assert "kaboom" in payload["error"]["message"]
    assert not any('"result"' in chunk for chunk in chunks)


@pytest.mark.asyncio
async def test_stream_executor_raise_at_call_yields_error_chunk():
    class BrokenExecutor:
        def invoke_streaming(self, action_name, input_payload, headers):
            raise RuntimeError("cannot start")

    chunks = await _collect(_request(stream=True), BrokenExecutor())

    assert len(chunks) == 1
    assert chunks[0].startswith("error: ")
    assert "cannot start" in chunks[0]


@pytest.mark.asyncio
async def test_stream_without_terminal_result_yields_error_chunk():
    executor = FakeExecutor(chunks=["only"], result=None)

    chunks = await _collect(_request(stream=True), executor)

    assert chunks[0] == 'data: {"message": "only"}\n\n'
    assert chunks[1].startswith("error: ")
    assert len(chunks) == 2


@pytest.mark.asyncio
async def test_stream_unserializable_chunk_yields_error_chunk():
    executor = FakeExecutor(chunks=[object()], result=ActionSuccess(value="done"))

    chunks = await _collect(_request(stream=True), executor)

    assert len(chunks) == 1
    assert chunks[0].startswith("error: ")
    assert executor.closed is True


@pytest.mark.asyncio
async def test_stream_closed_early_closes_executor_stream():
    executor = FakeExecutor(chunks=["a", "b", "c"], result=ActionSuccess(value="done"))

    body = stream_body(_request(stream=True), executor)
    first = await body.__anext__()
    await body.aclose()

    assert first == 'data: {"message": "a"}\n\n'
    assert executor.closed is True


def test_respond_streaming_commits_200_chunked():
    executor = FakeExecutor(result=ActionSuccess(value=1))

    response = respond_streaming(_request(stream=True), executor, media_type="text/event-stream")

    assert response.status_code == 200
    assert response.headers["transfer-encoding"] == "chunked"
    assert response.headers["content-type"].startswith("text/event-stream")


def _strict_json(text: str):
    def reject(constant):
        raise ValueError(f"non-finite number {constant}")

    return json.loads(text, parse_constant=reject)


@pytest.mark.asyncio
async def test_unary_non_finite_value_becomes_internal_with_trace_headers():
    executor = FakeExecutor(
        result=ActionSuccess(value={"x": float("nan")}, trace_id="a" * 32, span_id="b" * 16)
    )

    response = await respond_unary(_request(), executor)

    assert response.status_code == 500
    assert _strict_json(response.body)["status"] == "INTERNAL"
    assert response.headers["x-genkit-trace-id"] == "a" * 32
    assert response.headers["x-genkit-span-id"] == "b" * 16


@pytest.mark.asyncio
async def test_stream_non_finite_chunk_ends_with_error_chunk():
    executor = FakeExecutor(
        chunks=["ok", float("nan"), "never"], result=ActionSuccess(value="done")
    )

    chunks = await _collect(_request(stream=True), executor)

    assert len(chunks) == 2
    assert chunks[0] == 'data: {"message": "ok"}\n\n'
    assert chunks[1].startswith("error: ")
    assert _strict_json(chunks[1][len("error: ") :])["error"]["status"] == "INTERNAL"
    assert executor.closed is True


@pytest.mark.asyncio
async def test_stream_non_finite_result_becomes_error_chunk():
    executor = FakeExecutor(chunks=["ok"], result=ActionSuccess(value=float("inf")))

    chunks = await _collect(_request(stream=True), executor)

    assert len(chunks) == 2
    assert chunks[1].startswith("error: ")
    assert "Infinity" not in chunks[1]
    _strict_json(chunks[1][len("error: ") :])
