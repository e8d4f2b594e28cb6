"""
Where: flowgate/gateway/middleware.py
What: Gateway HTTP middleware for trace propagation and access logging.
Why: Isolate cross-cutting request concerns from app assembly.
"""

import logging
import time

from fastapi import Request

from flowgate.common.core.request_context import clear_trace_id, set_trace_id, start_trace

logger = logging.getLogger("gateway.main")

TRACE_ID_HEADER = "x-genkit-trace-id"


async def trace_propagation_middleware(request: Request, call_next):
    """Middleware for traceparent propagation and structured access logging."""
    start_time = time.perf_counter()

    traceparent = request.headers.get("traceparent")
    trace_id = None
    if traceparent:
        try:
            trace_id = set_trace_id(traceparent)
        except ValueError as exc:
            logger.warning(
                "Failed to parse incoming traceparent: '%s', error: %s",
                traceparent,
                exc,
            )
    if trace_id is None:
        trace_id = start_trace()

    try:
        response = await call_next(request)
        # Unary responses already carry the action's ids; streaming ones get the trace id here.
        if TRACE_ID_HEADER not in response.headers:
            response.headers[TRACE_ID_HEADER] = trace_id

        process_time = time.perf_counter() - start_time
        process_time_ms = round(process_time * 1000, 2)

        logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "trace_id": trace_id,
                "method": request.method,
                "path": request.url.path,
                "query_params": str(request.query_params),
                "status": response.status_code,
                "latency_ms": process_time_ms,
                "user_agent": request.headers.get("user-agent"),
                "client_ip": request.client.host if request.client else None,
            },
        )

        return response
    finally:
        clear_trace_id()
