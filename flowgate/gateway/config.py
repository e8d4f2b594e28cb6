"""
Gateway configuration definition.

Loads configuration from environment variables and provides a Pydantic model.
Uses pydantic-settings for type safety and defaults.
"""

import sys
from typing import Literal, Optional

from pydantic import Field

from flowgate.common.core.config import BaseAppConfig


class GatewayConfig(BaseAppConfig):
    """
    Configuration management for the flow gateway.
    """

    # Server settings
    UVICORN_BIND_ADDR: str = Field(default="0.0.0.0:8000", description="Listen address")

    # Path settings
    FLOWS_CONFIG_PATH: str = Field(
        default="/app/config/flows.yml", description="Flow definition file path"
    )

    # Invocation
    INVOKE_TIMEOUT_SECONDS: Optional[float] = Field(
        default=None,
        gt=0,
        description="Default action timeout (seconds). Unset means actions run without a deadline",
    )

    # Streaming
    STREAM_BUFFER_SIZE: int = Field(
        default=16,
        ge=1,
        description="Chunks buffered per stream before the action blocks on send_chunk",
    )
    STREAM_CONTENT_TYPE: Literal["text/plain", "text/event-stream"] = Field(
        default="text/plain", description="Content-Type of streaming responses"
    )

    # FastAPI settings
    root_path: str = Field(default="", description="API root path (for proxy)")


# Load config as a singleton.
# pydantic-settings reads environment variables during instantiation.
try:
    config = GatewayConfig()
except Exception as e:
    sys.stderr.write(f"Failed to load configuration: {e}\n")
    raise
