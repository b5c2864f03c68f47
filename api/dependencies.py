"""Request-scoped dependencies: database session, caller identity, event sink."""
import asyncio
from typing import AsyncIterator, Optional
from uuid import UUID

from fastapi import Header
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db
from pipeline.errors import AuthenticationFailed
from pipeline.events import EventSink, NotificationSink
from tools import supabase_tools


async def get_session() -> AsyncIterator[AsyncSession]:
    async with get_db() as session:
        yield session


async def get_current_user_id(authorization: Optional[str] = Header(default=None)) -> UUID:
    """Resolve the bearer token to a user id; anonymous callers get a 401."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise AuthenticationFailed("Authentication required")
    token = authorization[len("bearer "):].strip()
    if not token:
        raise AuthenticationFailed("Authentication required")
    user = await asyncio.to_thread(supabase_tools.get_user_from_token, token)
    if user is None:
        raise AuthenticationFailed("Invalid or expired token")
    try:
        return UUID(str(user["id"]))
    except (KeyError, ValueError) as exc:
        raise AuthenticationFailed("Invalid or expired token") from exc


def get_event_sink() -> EventSink:
    return NotificationSink()
