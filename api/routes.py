"""HTTP routes for search, webset start, the provider webhook, and health."""
import json
import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user_id, get_event_sink, get_session
from pipeline.errors import ValidationFailed
from pipeline.events import EventSink
from pipeline.search import search_leads, start_webset_search
from pipeline.webhook import SIGNATURE_HEADER, handle_webset_webhook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["leads"])
health_router = APIRouter(prefix="/health", tags=["health"])


async def _json_body(request: Request):
    raw = await request.body()
    try:
        return json.loads(raw or b"null")
    except ValueError as exc:
        raise ValidationFailed("Request body must be valid JSON") from exc


@router.post("/exa-search")
async def exa_search(
    request: Request,
    background_tasks: BackgroundTasks,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    events: EventSink = Depends(get_event_sink),
):
    payload = await _json_body(request)
    result = await search_leads(session, user_id, payload, events)
    background_tasks.add_task(events.flush)
    return result.model_dump()


@router.post("/exa-webset-search")
async def exa_webset_search(
    request: Request,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    payload = await _json_body(request)
    result = await start_webset_search(session, user_id, payload)
    return result.model_dump(by_alias=True)


@router.post("/exa-webhook")
async def exa_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    events: EventSink = Depends(get_event_sink),
):
    raw_body = await request.body()
    result = await handle_webset_webhook(
        session, raw_body, request.headers.get(SIGNATURE_HEADER), events
    )
    background_tasks.add_task(events.flush)
    return result


@health_router.get("")
def health_root():
    return {"status": "ok", "ts": datetime.now(timezone.utc).isoformat()}
