"""
Gateway Dispatcher - Service Layer

Standardizes the flow: HTTP request -> InvocationRequest -> unary or streaming response.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from ..core.decoder import decode_request
from ..core.exceptions import MalformedRequestError
from .responders import Executor, respond_streaming, respond_unary

logger = logging.getLogger("gateway.dispatcher")


class GatewayDispatcher:
    """
    Decodes each request and hands it to the matching responder.

    Holds no per-request state; one instance serves every request.
    """

    def __init__(self, executor: Executor, stream_media_type: str = "text/plain"):
        self.executor = executor
        self.stream_media_type = stream_media_type

    async def handle(self, request: Request) -> Response:
        body = await request.body()
        try:
            invocation = decode_request(request.method, str(request.url), request.headers, body)
        except MalformedRequestError as e:
            logger.warning(
                f"Rejected malformed request: {e.message}",
                extra={"method": request.method, "path": request.url.path},
            )
            return JSONResponse(status_code=e.http_status, content=e.to_body())

        mode = "stream" if invocation.wants_stream else "unary"
        logger.info(
            f"Dispatching '{invocation.action_name}' ({mode})",
            extra={"action_name": invocation.action_name, "stream": invocation.wants_stream},
        )

        if invocation.wants_stream:
            return respond_streaming(invocation, self.executor, self.stream_media_type)
        return await respond_unary(invocation, self.executor)
