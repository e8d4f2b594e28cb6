"""
Custom exception classes.

Represent errors related to flow invocation.
"""

import logging
from typing import Any, Dict, Optional, Union

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .status import StatusName, map_status, status_name_for_http

logger = logging.getLogger(__name__)


class FlowError(Exception):
    """
    Base exception for flow invocation.

    Actions raise it (or a subclass) to fail with a specific status.
    """

    def __init__(
        self,
        status: Union[StatusName, str],
        message: str,
        details: Optional[Any] = None,
    ):
        self.status = status.value if isinstance(status, StatusName) else str(status)
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def http_status(self) -> int:
        return map_status(self.status)

    def to_body(self) -> Dict[str, Any]:
        """Unary error body: code, status, message and optional details."""
        return error_body(self.status, self.message, self.details)


class MalformedRequestError(FlowError):
    """Raised when an inbound request cannot be decoded into an invocation."""

    def __init__(self, message: str):
        super().__init__(StatusName.INVALID_ARGUMENT, message)


class ActionNotFoundError(FlowError):
    """Raised when no action is registered or resolvable under a name."""

    def __init__(self, action_name: str):
        self.action_name = action_name
        super().__init__(StatusName.NOT_FOUND, f"Action not found: {action_name}")


def error_body(
    status_name: Union[StatusName, str], message: str, details: Optional[Any] = None
) -> Dict[str, Any]:
    name = status_name.value if isinstance(status_name, StatusName) else str(status_name)
    body: Dict[str, Any] = {"code": map_status(name), "status": name, "message": message}
    if details is not None:
        body["details"] = details
    return body


# ===========================================
# Exception Handlers
# ===========================================


async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unhandled exceptions.
    """
    logger.error(
        f"Global exception handler caught: {exc}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(StatusName.INTERNAL, str(exc) or type(exc).__name__),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handler for HTTPException.
    """
    name = status_name_for_http(exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.status_code, "status": name.value, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def flow_error_handler(request: Request, exc: FlowError):
    """
    Handler for FlowError raised outside a responder.
    """
    return JSONResponse(status_code=exc.http_status, content=exc.to_body())
