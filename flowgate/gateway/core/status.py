"""
Where: flowgate/gateway/core/status.py
What: Canonical status names and their HTTP status codes.
Why: One total mapping shared by unary responses, exception handlers and the client.
"""

from enum import Enum
from typing import Union


class StatusName(str, Enum):
    """Internal status taxonomy for action failures."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    ABORTED = "ABORTED"
    RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"
    CANCELLED = "CANCELLED"
    UNAVAILABLE = "UNAVAILABLE"
    DATA_LOSS = "DATA_LOSS"
    UNKNOWN = "UNKNOWN"
    INTERNAL = "INTERNAL"
    UNIMPLEMENTED = "UNIMPLEMENTED"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"


HTTP_STATUS_BY_NAME = {
    StatusName.INVALID_ARGUMENT: 400,
    StatusName.FAILED_PRECONDITION: 400,
    StatusName.OUT_OF_RANGE: 400,
    StatusName.UNAUTHENTICATED: 401,
    StatusName.PERMISSION_DENIED: 403,
    StatusName.NOT_FOUND: 404,
    StatusName.ALREADY_EXISTS: 409,
    StatusName.ABORTED: 409,
    StatusName.RESOURCE_EXHAUSTED: 429,
    StatusName.CANCELLED: 499,
    StatusName.UNAVAILABLE: 503,
    StatusName.DATA_LOSS: 500,
    StatusName.UNKNOWN: 500,
    StatusName.INTERNAL: 500,
    StatusName.UNIMPLEMENTED: 501,
    StatusName.DEADLINE_EXCEEDED: 504,
}

_NAME_BY_HTTP_STATUS = {
    400: StatusName.INVALID_ARGUMENT,
    401: StatusName.UNAUTHENTICATED,
    403: StatusName.PERMISSION_DENIED,
    404: StatusName.NOT_FOUND,
    409: StatusName.ALREADY_EXISTS,
    429: StatusName.RESOURCE_EXHAUSTED,
    499: StatusName.CANCELLED,
    501: StatusName.UNIMPLEMENTED,
    503: StatusName.UNAVAILABLE,
    504: StatusName.DEADLINE_EXCEEDED,
}


def map_status(status: Union[StatusName, str, None]) -> int:
    """
    Map an internal status name to its HTTP status code.

    Unknown names map to 500, same as UNKNOWN.
    """
    try:
        return HTTP_STATUS_BY_NAME[StatusName(status)]
    except ValueError:
        return 500


def status_name_for_http(code: int) -> StatusName:
    """Best-effort reverse lookup used for plain HTTP errors (e.g. 405 from routing)."""
    return _NAME_BY_HTTP_STATUS.get(code, StatusName.UNKNOWN if code < 500 else StatusName.INTERNAL)

