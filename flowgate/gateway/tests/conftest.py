import pytest
from fastapi.testclient import TestClient

from flowgate.gateway.config import GatewayConfig
from flowgate.gateway.main import create_app
from flowgate.gateway.services.action_registry import ActionRegistry


@pytest.fixture
def gateway_config():
    return GatewayConfig(_env_file=None, FLOWS_CONFIG_PATH="/nonexistent/flows.yml")


@pytest.fixture
def registry():
    """
    Registry with the flows used across route tests.
    """
    registry = ActionRegistry()

    @registry.flow("helloFlow")
    def hello_flow(data):
        return {"greeting": f"Hello, {data['name']}"}

    @registry.flow("streamGreeting")
    async def stream_greeting(data, ctx):
        await ctx.send_chunk("Hello")
        await ctx.send_chunk(f", {data['name']}")
        return {"greeting": f"Hello, {data['name']}"}

    @registry.flow("boom")
    async def boom(data):
        raise RuntimeError("kaboom")

    @registry.flow("chunkThenBoom")
    async def chunk_then_boom(data, ctx):
        await ctx.send_chunk("partial")
        raise RuntimeError("kaboom")

    return registry


@pytest.fixture
def main_app(gateway_config, registry):
    app = create_app(gateway_config, registry)
    yield app
    app.dependency_overrides = {}


@pytest.fixture
def client(main_app):
    return TestClient(main_app)
