"""
Where: flowgate/gateway/lifecycle.py
What: Gateway startup/shutdown orchestration.
Why: Keep main.py focused on app assembly while preserving lifecycle behavior.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from .config import GatewayConfig

logger = logging.getLogger("gateway.main")


@asynccontextmanager
async def manage_lifespan(app: FastAPI, gateway_config: GatewayConfig) -> AsyncIterator[None]:
    """Manage application lifecycle."""
    registry = app.state.action_registry

    registry.load_flows_config(gateway_config.FLOWS_CONFIG_PATH)
    if gateway_config.INVOKE_TIMEOUT_SECONDS is None:
        logger.info("No default invoke timeout configured; actions run without a deadline.")

    logger.info(
        "Gateway initialized with %d actions: %s",
        len(registry.list_actions()),
        ", ".join(registry.list_actions()) or "-",
    )
    try:
        yield
    finally:
        logger.info("Gateway shutting down.")
