"""Synchronous lead search and webset start.

search_leads() runs one request end to end:

    rate limit -> validate -> credit check -> expand query -> provider search
    -> parse / suppress / extract credentials / upsert (until the credit
    budget is spent) -> score the saved leads -> charge credits -> update
    campaign aggregates

The caller authenticates first and owns the session (commit/rollback).
"""
import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional, Set
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

import config
from db.models import Campaign, Lead
from db.repositories import campaigns as campaigns_repo
from db.repositories import leads as leads_repo
from db.repositories import suppression as suppression_repo
from db.repositories import websets as websets_repo
from pipeline import credits, scorer
from pipeline.credentials import extract_credentials
from pipeline.errors import NoCredits, ProviderError, RateLimited, ValidationFailed
from pipeline.events import EventSink
from pipeline.parser import parse_search_result
from pipeline.query_expander import expand_query
from pipeline.rate_limiter import check_rate_limit
from schemas.lead import ParsedLead, ProfileData
from schemas.search import (
    SearchRequest,
    SearchResponse,
    WebsetSearchRequest,
    WebsetSearchResponse,
)
from tools import exa_tools

logger = logging.getLogger(__name__)

SEARCH_ENDPOINT = "exa-search"
WEBSET_ENDPOINT = "exa-webset-search"


def parse_request(payload: Any, model=SearchRequest):
    """Validate a raw JSON body; any problem is a 400 with a readable message."""
    if not isinstance(payload, dict):
        raise ValidationFailed("Request body must be a JSON object")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or "body"
        raise ValidationFailed(f"Invalid {field}: {first.get('msg')}") from exc


async def _enforce_rate_limit(session: AsyncSession, user_id: UUID, endpoint: str) -> None:
    decision = await check_rate_limit(session, user_id, endpoint)
    if not decision.allowed:
        raise RateLimited(decision.retry_after)
    # Accepted requests count even if the search fails further on.
    await session.commit()


async def _load_campaign(
    session: AsyncSession, campaign_id: Optional[UUID], user_id: UUID
) -> Optional[Campaign]:
    if campaign_id is None:
        return None
    campaign = await campaigns_repo.get_for_user(session, campaign_id, user_id)
    if campaign is None:
        raise ValidationFailed("Campaign not found")
    return campaign


def build_lead_row(
    parsed: ParsedLead, user_id: UUID, campaign_id: Optional[UUID]
) -> Dict[str, Any]:
    """Map a parsed hit (plus its credentials) onto lead columns."""
    creds = extract_credentials(" ".join(filter(None, [parsed.title, parsed.text])))
    profile = ProfileData(
        source="exa_search",
        exa_id=parsed.exa_id,
        exa_score=parsed.exa_score,
        snippet=parsed.text[: config.SEARCH_TEXT_MAX_CHARACTERS] or None,
        certifications=creds.certifications,
        licenses=creds.licenses,
        specialty=creds.specialty,
    )
    return {
        "user_id": user_id,
        "campaign_id": campaign_id,
        "name": parsed.name,
        "title": parsed.title,
        "company": parsed.company,
        "location": parsed.location,
        "industry": creds.specialty,
        "email": parsed.email,
        "linkedin_url": parsed.linkedin_url,
        "profile_data": profile.to_storage(),
    }


async def search_leads(
    session: AsyncSession,
    user_id: UUID,
    payload: Any,
    events: EventSink,
    enforce_rate_limit: bool = True,
) -> SearchResponse:
    """Run one synchronous lead search for an authenticated user."""
    if enforce_rate_limit:
        await _enforce_rate_limit(session, user_id, SEARCH_ENDPOINT)

    request = parse_request(payload)
    campaign = await _load_campaign(session, request.campaign_id, user_id)

    budget = await credits.get_budget(session, user_id)
    if budget.exhausted or budget.available <= 0:
        logger.info("User %s has no credits left", user_id)
        raise NoCredits()

    if campaign is not None:
        await campaigns_repo.set_status(session, campaign.id, "searching")
        await session.commit()

    search_query = await asyncio.to_thread(expand_query, request.query)
    response = await asyncio.to_thread(
        exa_tools.exa_search_people,
        search_query,
        config.SEARCH_RESULT_COUNT,
        config.SEARCH_TEXT_MAX_CHARACTERS,
    )
    if response.get("error"):
        logger.error("People search failed: %s", response["error"])
        raise ProviderError(f"Search provider error: {response['error']}")

    results = response.get("results") or []
    suppressed = await suppression_repo.get_suppressed_emails(session, user_id)
    campaign_id = campaign.id if campaign else None

    saved: List[Lead] = []
    saved_ids: Set[UUID] = set()
    skipped = 0
    for result in results:
        if len(saved) >= budget.available:
            logger.info("Credit budget of %d reached, stopping", budget.available)
            break
        parsed = parse_search_result(result)
        if parsed is None:
            skipped += 1
            continue
        if parsed.email and parsed.email.lower() in suppressed:
            logger.debug("Skipping do-not-contact email for %s", parsed.name)
            skipped += 1
            continue
        lead, _ = await leads_repo.upsert_in_campaign(
            session, build_lead_row(parsed, user_id, campaign_id)
        )
        if lead.id in saved_ids:
            # Same profile twice in one response: one row, one credit.
            logger.debug("Duplicate result for %s in this search", lead.linkedin_url)
            skipped += 1
            continue
        saved_ids.add(lead.id)
        saved.append(lead)

    if saved:
        try:
            await scorer.score_and_store(session, saved, request.query)
        except Exception:
            logger.exception("Storing scores failed; leads kept unscored")

    campaign_name = campaign.name if campaign else request.query
    await credits.charge_for_leads(
        session,
        user_id,
        len(saved),
        f"{len(saved)} leads discovered via Exa search",
        events,
        campaign_name=campaign_name,
    )

    if campaign is not None:
        status = "active" if saved else "draft"
        await campaigns_repo.refresh_lead_count(session, campaign.id, status=status)

    logger.info(
        "Search for user %s done: %d saved, %d skipped (%d results)",
        user_id, len(saved), skipped, len(results),
    )
    return SearchResponse(
        leads_found=len(saved),
        leads_skipped=skipped,
        message=f"Found {len(saved)} leads" + (f", skipped {skipped}" if skipped else ""),
    )


async def start_webset_search(
    session: AsyncSession,
    user_id: UUID,
    payload: Any,
    enforce_rate_limit: bool = True,
) -> WebsetSearchResponse:
    """Start an asynchronous webset; its leads arrive through the webhook."""
    if enforce_rate_limit:
        await _enforce_rate_limit(session, user_id, WEBSET_ENDPOINT)

    request = parse_request(payload, WebsetSearchRequest)
    campaign = await _load_campaign(session, request.campaign_id, user_id)

    budget = await credits.get_budget(session, user_id)
    if budget.exhausted or budget.available <= 0:
        raise NoCredits()
    count = min(request.count or config.WEBSET_DEFAULT_COUNT, budget.available)

    search_query = await asyncio.to_thread(expand_query, request.query)
    created = await asyncio.to_thread(
        exa_tools.exa_create_webset, search_query, count, uuid.uuid4().hex
    )
    if created.get("error") or not created.get("webset_id"):
        raise ProviderError(f"Search provider error: {created.get('error', 'no webset id')}")

    secret = config.EXA_WEBHOOK_SECRET
    if config.EXA_WEBHOOK_URL:
        hook = await asyncio.to_thread(exa_tools.exa_create_webhook, config.EXA_WEBHOOK_URL)
        if hook.get("error"):
            logger.warning("Webhook registration failed, using configured secret: %s", hook["error"])
        else:
            secret = hook.get("secret") or secret

    await websets_repo.create(
        session,
        webset_id=created["webset_id"],
        query=request.query,
        user_id=user_id,
        campaign_id=campaign.id if campaign else None,
        webhook_secret=secret,
    )
    if campaign is not None:
        await campaigns_repo.set_status(session, campaign.id, "searching")

    logger.info("Started webset %s for user %s (count=%d)", created["webset_id"], user_id, count)
    return WebsetSearchResponse(
        webset_id=created["webset_id"],
        message=f"Searching for up to {count} candidates; results arrive when the search completes",
    )
