"""Webset webhook handler.

Deliveries are at-least-once. Guards, in order:
  1. unknown job id              -> 404, nothing processed
  2. signature (when the job has a secret) -> 401 on missing/invalid
  3. job already completed       -> success, skipped
  4. conditional status flip processing -> processing_webhook; the loser of
     a race returns skipped without writing anything

Items are fetched in one call before the lock is taken, so a provider
failure leaves the job retryable. A failure after the lock rolls back the
delivery's writes and puts the job back to processing for the next one.
"""
import asyncio
import hashlib
import hmac
import json
import logging
from typing import Any, Dict, List, Optional, Set
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

import config
from db.models import WebsetSearch
from db.repositories import campaigns as campaigns_repo
from db.repositories import leads as leads_repo
from db.repositories import suppression as suppression_repo
from db.repositories import websets as websets_repo
from pipeline import credits
from pipeline.credentials import extract_credentials
from pipeline.enrichment import DEFAULT_STRATEGY, ItemStrategy, enrichment_value
from pipeline.errors import AuthenticationFailed, ProviderError, UnknownWebset, ValidationFailed
from pipeline.events import EventSink
from schemas.lead import ProfileData, WebsetLead
from tools import exa_tools

logger = logging.getLogger(__name__)

WEBSET_IDLE = "webset.idle"
SIGNATURE_HEADER = "x-exa-signature"


def verify_signature(raw_body: bytes, signature: str, secret: str) -> bool:
    """HMAC-SHA256 of the raw body, as bare hex or 'sha256=<hex>'."""
    expected = hmac.new(secret.encode(), raw_body, hashlib.sha256).hexdigest()
    candidate = signature.strip()
    if candidate.startswith("sha256="):
        candidate = candidate[len("sha256="):]
    return hmac.compare_digest(candidate.encode(), expected.encode())


def _profile_text(lead: WebsetLead) -> str:
    values = [enrichment_value(e) for e in lead.enrichments]
    return " ".join(v for v in [lead.title, *values] if v and not v.startswith("http"))


def build_lead_row(lead: WebsetLead, user_id, campaign_id) -> Dict[str, Any]:
    text = _profile_text(lead)
    creds = extract_credentials(text)
    profile = ProfileData(
        source="exa_websets_batch",
        item_id=lead.item_id,
        enrichments=lead.enrichments,
        snippet=text[: config.SEARCH_TEXT_MAX_CHARACTERS] or None,
        certifications=creds.certifications,
        licenses=creds.licenses,
        specialty=creds.specialty,
    )
    return {
        "user_id": user_id,
        "campaign_id": campaign_id,
        "name": lead.name,
        "title": lead.title,
        "company": lead.company,
        "location": lead.location,
        "industry": creds.specialty,
        "email": lead.email,
        "linkedin_url": lead.linkedin_url,
        "profile_data": profile.to_storage(),
    }


def _parse_payload(raw_body: bytes) -> tuple[str, Dict[str, Any]]:
    try:
        payload = json.loads(raw_body or b"")
    except ValueError as exc:
        raise ValidationFailed("Invalid payload") from exc
    if not isinstance(payload, dict):
        raise ValidationFailed("Invalid payload")
    event_type = payload.get("type")
    data = payload.get("data")
    if not event_type or not isinstance(data, dict) or not data:
        logger.error("Invalid webhook payload: missing type or data")
        raise ValidationFailed("Invalid payload")
    return event_type, data


async def handle_webset_webhook(
    session: AsyncSession,
    raw_body: bytes,
    signature: Optional[str],
    events: EventSink,
    strategy: ItemStrategy = DEFAULT_STRATEGY,
) -> Dict[str, Any]:
    """Process one webhook delivery. Returns the JSON response body."""
    event_type, data = _parse_payload(raw_body)
    if event_type != WEBSET_IDLE:
        logger.info("Ignoring webhook event %s", event_type)
        return {"success": True}

    webset_id = data.get("id") or data.get("websetId")
    if not webset_id:
        raise ValidationFailed("Invalid payload")

    record = await websets_repo.get_by_webset_id(session, webset_id)
    if record is None:
        logger.error("Unknown webset %s, rejecting webhook", webset_id)
        raise UnknownWebset()

    if record.webhook_secret:
        if not signature:
            logger.error("Missing webhook signature for webset %s", webset_id)
            raise AuthenticationFailed("Missing signature")
        if not verify_signature(raw_body, signature, record.webhook_secret):
            logger.error("Invalid webhook signature for webset %s", webset_id)
            raise AuthenticationFailed("Invalid signature")

    if record.status == "completed":
        logger.info("Webset %s already processed, skipping", webset_id)
        return {"success": True, "skipped": True}

    fetched = await asyncio.to_thread(exa_tools.exa_fetch_webset, webset_id)
    if fetched.get("error"):
        logger.error("Failed to fetch webset items for %s: %s", webset_id, fetched["error"])
        raise ProviderError(f"Failed to fetch webset items: {fetched['error']}")
    items = fetched.get("items") or []

    if not await websets_repo.acquire_processing_lock(session, webset_id):
        logger.info("Webset %s is being processed by another delivery, skipping", webset_id)
        return {"success": True, "skipped": True}
    await session.commit()

    try:
        await _process_items(session, record, items, events, strategy)
    except Exception:
        logger.exception("Processing webset %s failed, releasing it for redelivery", webset_id)
        await session.rollback()
        await websets_repo.release_processing_lock(session, webset_id)
        await session.commit()
        raise
    return {"success": True}


async def _process_items(
    session: AsyncSession,
    record: WebsetSearch,
    items: List[Dict[str, Any]],
    events: EventSink,
    strategy: ItemStrategy,
) -> None:
    """Save, charge and complete one locked job; the caller commits or releases."""
    webset_id = record.webset_id
    campaign = record.campaign
    campaign_id = record.campaign_id
    user_id = record.user_id or (campaign.user_id if campaign else None)

    budget = await credits.get_budget(session, user_id) if user_id else None
    suppressed = await suppression_repo.get_suppressed_emails(session, user_id) if user_id else set()

    saved_ids: Set[UUID] = set()
    skipped = 0
    for item in items:
        if budget is not None and len(saved_ids) >= budget.available:
            logger.info("Credit budget of %d reached for webset %s", budget.available, webset_id)
            break
        lead = strategy.parse(item)
        if not lead.is_usable():
            logger.debug("Skipping webset item %s: no name, linkedin or email", lead.item_id)
            skipped += 1
            continue
        if lead.email and lead.email.lower() in suppressed:
            skipped += 1
            continue
        try:
            async with session.begin_nested():
                row, _ = await leads_repo.upsert_in_campaign(
                    session, build_lead_row(lead, user_id, campaign_id)
                )
        except SQLAlchemyError:
            logger.exception("Saving webset item %s failed", lead.item_id)
            skipped += 1
            continue
        if row.id in saved_ids:
            skipped += 1
            continue
        saved_ids.add(row.id)

    saved = len(saved_ids)
    if user_id and saved:
        await credits.charge_for_leads(
            session,
            user_id,
            saved,
            f"{saved} leads discovered via Exa webset",
            events,
            campaign_name=record.query or "Your Campaign",
        )

    await websets_repo.mark_completed(session, webset_id, len(items))
    if campaign_id:
        await campaigns_repo.refresh_lead_count(session, campaign_id, status="active")

    logger.info("Webset %s complete: %d saved, %d skipped", webset_id, saved, skipped)
