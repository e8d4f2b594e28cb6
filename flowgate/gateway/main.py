"""
Flow Gateway - action invocation server

Exposes registered actions ("flows") over HTTP: POST /<actionName> with
{"data": <input>} runs the action once, or streams its chunks when the
caller asks for text/event-stream (or ?stream=true).
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import Response
import logging

from .api.deps import DispatcherDep
from .config import GatewayConfig, config
from .core.logging_config import setup_logging
from .exceptions import register_exception_handlers
from .lifecycle import manage_lifespan
from .middleware import trace_propagation_middleware
from .services.action_registry import ActionRegistry
from .services.dispatcher import GatewayDispatcher
from .services.executor import ActionExecutor

# Logger setup
setup_logging()
logger = logging.getLogger("gateway.main")

FLOW_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(
    gateway_config: Optional[GatewayConfig] = None,
    registry: Optional[ActionRegistry] = None,
) -> FastAPI:
    """
    Assemble the gateway application.

    Registry, executor and dispatcher are built here and stored on app.state,
    so the app serves requests with or without running the lifespan.
    """
    gateway_config = gateway_config or config
    registry = registry if registry is not None else ActionRegistry()

    def lifespan(app: FastAPI):
        return manage_lifespan(app, gateway_config)

    app = FastAPI(
        title="Flow Gateway",
        version="1.0.0",
        lifespan=lifespan,
        root_path=gateway_config.root_path,
    )

    executor = ActionExecutor(
        registry,
        default_timeout=gateway_config.INVOKE_TIMEOUT_SECONDS,
        stream_buffer_size=gateway_config.STREAM_BUFFER_SIZE,
    )
    app.state.gateway_config = gateway_config
    app.state.action_registry = registry
    app.state.action_executor = executor
    app.state.dispatcher = GatewayDispatcher(
        executor, stream_media_type=gateway_config.STREAM_CONTENT_TYPE
    )

    app.middleware("http")(trace_propagation_middleware)
    register_exception_handlers(app)

    # ===========================================
    # Endpoint definitions.
    # ===========================================

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.api_route("/{action_path:path}", methods=FLOW_METHODS)
    async def flow_handler(request: Request, action_path: str, dispatcher: DispatcherDep) -> Response:
        """
        Catch-all route: the final path segment names the action.

        Decoding, unary/streaming selection and error rendering happen in the dispatcher.
        """
        return await dispatcher.handle(request)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    host, _, port = config.UVICORN_BIND_ADDR.rpartition(":")
    uvicorn.run(app, host=host or "0.0.0.0", port=int(port))
