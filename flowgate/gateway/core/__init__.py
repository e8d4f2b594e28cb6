"""
Core logic package.

Provides status mapping, request decoding and chunk framing.
"""

from .decoder import decode_request
from .status import StatusName, map_status
from .streaming import format_chunk

__all__ = [
    "decode_request",
    "StatusName",
    "map_status",
    "format_chunk",
]
