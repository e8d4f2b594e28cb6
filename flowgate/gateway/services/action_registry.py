"""
Action registry.

Loads flows.yml and provides name-to-action mapping, with resolver
fallback for actions that are not registered up front.
"""

import importlib
import logging
import os
import string
from typing import Any, Callable, Dict, List, Optional

import yaml

from ..core.action import Action, ContextProvider
from ..core.exceptions import ActionNotFoundError

logger = logging.getLogger("gateway.action_registry")

ActionResolver = Callable[[str], Optional[Action]]


def import_target(target: str) -> Callable[..., Any]:
    """
    Import a `module:attribute` target string.

    Raises:
        ValueError: when the target is not in `module:attribute` form
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise ValueError(f"Invalid flow target '{target}', expected 'module:attribute'")

    obj: Any = importlib.import_module(module_name)
    for attr in attr_path.split("."):
        obj = getattr(obj, attr)
    if not callable(obj):
        raise ValueError(f"Flow target '{target}' is not callable")
    return obj


class ActionRegistry:
    def __init__(self):
        self._actions: Dict[str, Action] = {}
        self._resolvers: List[ActionResolver] = []

    def register(
        self,
        name: str,
        fn: Callable[..., Any],
        *,
        timeout: Optional[float] = None,
        description: Optional[str] = None,
        context_provider: Optional[ContextProvider] = None,
    ) -> Action:
        """Register `fn` under `name`, replacing any previous registration."""
        if not name:
            raise ValueError("Action name must not be empty")
        if name in self._actions:
            logger.warning(f"Replacing registered action '{name}'")

        action = Action(
            name=name,
            fn=fn,
            timeout=timeout,
            description=description,
            context_provider=context_provider,
        )
        self._actions[name] = action
        return action

    def flow(
        self,
        name: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        description: Optional[str] = None,
        context_provider: Optional[ContextProvider] = None,
    ):
        """Decorator form of `register`; defaults the name to the function name."""

        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            self.register(
                name or fn.__name__,
                fn,
                timeout=timeout,
                description=description or (fn.__doc__ or "").strip() or None,
                context_provider=context_provider,
            )
            return fn

        return decorator

    def add_resolver(self, resolver: ActionResolver) -> None:
        """Add a fallback consulted, in order, for names that are not registered."""
        self._resolvers.append(resolver)

    def try_get(self, name: str) -> Optional[Action]:
        """
        Look up an action by name.

        Registered actions win; otherwise each resolver is asked in turn and
        the first hit is cached as a registration.
        """
        action = self._actions.get(name)
        if action is not None:
            return action

        for resolver in self._resolvers:
            action = resolver(name)
            if action is not None:
                logger.info(f"Resolved action '{name}' dynamically")
                self._actions[name] = action
                return action
        return None

    def lookup(self, name: str) -> Action:
        action = self.try_get(name)
        if action is None:
            raise ActionNotFoundError(name)
        return action

    def list_actions(self) -> List[str]:
        return sorted(self._actions)

    def load_flows_config(self, config_path: str) -> Dict[str, Action]:
        """
        Load flows.yml and register every flow it declares.

        Returns:
            Dict of flow name -> Action registered from the file
        """
        loaded: Dict[str, Action] = {}
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                # Substitute environment variables using string.Template.
                template = string.Template(f.read())
                content = template.safe_substitute(os.environ.copy())
                cfg = yaml.safe_load(content) or {}

        except FileNotFoundError:
            logger.warning(f"Flows config not found at {config_path}")
            return loaded

        except yaml.YAMLError as e:
            logger.error(f"Error parsing flows config: {e}")
            return loaded

        defaults = cfg.get("defaults") or {}
        for name, flow_config in (cfg.get("flows") or {}).items():
            flow_config = flow_config or {}
            target = flow_config.get("target")
            if not target:
                logger.error(f"Flow '{name}' has no target; skipping")
                continue

            fn = import_target(target)
            timeout = flow_config.get("timeout", defaults.get("timeout"))
            loaded[name] = self.register(
                name,
                fn,
                timeout=float(timeout) if timeout is not None else None,
                description=flow_config.get("description"),
            )

        logger.info(f"Loaded {len(loaded)} flows from {config_path}")
        return loaded
