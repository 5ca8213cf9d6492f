"""Dependency injection for FastAPI endpoints.

This module provides FastAPI dependencies for accessing shared resources
like Redis and the signed-in user.

Usage in controllers:
    from calendarly.dependencies import CurrentUserId

    @router.post("/events")
    async def create_event(form: EventForm, user_id: CurrentUserId):
        ...
"""

from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends, Request

from calendarly import state
from calendarly.errors import UnauthorizedError


def get_optional_redis() -> redis.Redis | None:
    return state.redis_client


def get_user_id(request: Request) -> str | None:
    """The signed-in user's id as resolved by ``AuthMiddleware``, or None."""
    return getattr(request.state, "user_id", None)


def require_user_id(request: Request) -> str:
    """Like ``get_user_id`` but for pages that cannot render anonymously.

    Raises:
        UnauthorizedError: If nobody is signed in.
    """
    user_id = get_user_id(request)
    if user_id is None:
        raise UnauthorizedError(detail="Sign in required")
    return user_id


OptionalRedis = Annotated[redis.Redis | None, Depends(get_optional_redis)]
CurrentUserId = Annotated[str | None, Depends(get_user_id)]
SignedInUserId = Annotated[str, Depends(require_user_id)]
