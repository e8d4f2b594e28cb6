"""
Sample flows referenced by config/flows.yml.
"""

from .core.action import ActionContext
from .core.exceptions import FlowError
from .core.status import StatusName


def _name_of(data) -> str:
    name = data.get("name") if isinstance(data, dict) else None
    if not name:
        raise FlowError(StatusName.INVALID_ARGUMENT, "'name' is required")
    return name


def hello_flow(data):
    """Greets the caller by name."""
    return {"greeting": f"Hello, {_name_of(data)}"}


async def streaming_greeting(data, ctx: ActionContext):
    """Streams "Hello" then ", <name>" and returns the full greeting."""
    name = _name_of(data)
    await ctx.send_chunk("Hello")
    await ctx.send_chunk(f", {name}")
    return {"greeting": f"Hello, {name}"}
