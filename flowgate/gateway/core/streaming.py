"""
Streaming chunk framing.

Each chunk is `<prefix>: <json>\n\n` with prefix `data` or `error`.
"""

import json
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder

CHUNK_DELIMITER = "\n\n"
DATA_PREFIX = "data"
ERROR_PREFIX = "error"


def format_chunk(prefix: str, payload: Any) -> str:
    """
    Frame one chunk.

    Raises:
        ValueError: payload holds NaN or Infinity, which JSON cannot carry
    """
    body = json.dumps(jsonable_encoder(payload), ensure_ascii=False, allow_nan=False)
    return f"{prefix}: {body}{CHUNK_DELIMITER}"


def message_chunk(payload: Any) -> str:
    return format_chunk(DATA_PREFIX, {"message": payload})


def result_chunk(output: Any) -> str:
    return format_chunk(DATA_PREFIX, {"result": output})


def error_chunk(status: str, message: str, details: Optional[Any] = None) -> str:
    error = {"status": status, "message": message}
    if details is not None:
        error["details"] = details
    return format_chunk(ERROR_PREFIX, {"error": error})
