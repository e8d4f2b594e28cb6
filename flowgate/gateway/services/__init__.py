"""
Services package.

Provides action registration, execution and response rendering.
"""

from .action_registry import ActionRegistry
from .dispatcher import GatewayDispatcher
from .executor import ActionExecutor

__all__ = [
    "ActionExecutor",
    "ActionRegistry",
    "GatewayDispatcher",
]
