"""
Dependency Injection for Gateway API.

Manage request handler dependencies using FastAPI Depends.
"""

from typing import Annotated

from fastapi import Depends, Request

from ..services.dispatcher import GatewayDispatcher


def get_dispatcher(request: Request) -> GatewayDispatcher:
    return request.app.state.dispatcher


DispatcherDep = Annotated[GatewayDispatcher, Depends(get_dispatcher)]
