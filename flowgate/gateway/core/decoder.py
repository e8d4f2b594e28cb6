"""
Where: flowgate/gateway/core/decoder.py
What: Decode an inbound HTTP call into an InvocationRequest.
Why: Reject malformed calls before any action runs, without touching FastAPI objects.
"""

import json
from typing import Mapping, Union
from urllib.parse import parse_qsl, unquote, urlsplit

from ..models.invocation import InvocationRequest
from .exceptions import MalformedRequestError

STREAM_MEDIA_TYPE = "text/event-stream"


def _is_json_media_type(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _action_name_from_path(path: str) -> str:
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        raise MalformedRequestError("Action name is missing from the request path")
    return unquote(segments[-1])


def _query_wants_stream(query: str) -> bool:
    for key, value in parse_qsl(query, keep_blank_values=True):
        if key == "stream" and value.lower() == "true":
            return True
    return False


def decode_request(
    method: str,
    url: str,
    headers: Mapping[str, str],
    body: Union[bytes, str],
) -> InvocationRequest:
    """
    Decode method/url/headers/body into an InvocationRequest.

    Streaming is selected by `Accept: text/event-stream` or `?stream=true`;
    when `stream=true` is combined with `Accept: application/json`, the query
    parameter wins.

    Raises:
        MalformedRequestError: non-POST method, non-JSON body, missing `data`
    """
    if method.upper() != "POST":
        raise MalformedRequestError(f"Method {method.upper()} not allowed; use POST")

    normalized_headers = {str(k).lower(): str(v) for k, v in headers.items()}

    content_type = normalized_headers.get("content-type")
    if content_type and not _is_json_media_type(content_type):
        raise MalformedRequestError(f"Unsupported Content-Type: {content_type}")

    parts = urlsplit(url)
    action_name = _action_name_from_path(parts.path)

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedRequestError("Request body is not valid UTF-8") from e

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise MalformedRequestError(f"Request body is not valid JSON: {e.msg}") from e

    if not isinstance(payload, dict) or "data" not in payload:
        raise MalformedRequestError("Request body must be a JSON object with a 'data' field")

    accept = normalized_headers.get("accept", "")
    wants_stream = STREAM_MEDIA_TYPE in accept.lower() or _query_wants_stream(parts.query)

    return InvocationRequest(
        action_name=action_name,
        input_payload=payload["data"],
        wants_stream=wants_stream,
        headers=normalized_headers,
    )
