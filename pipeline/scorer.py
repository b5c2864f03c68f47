"""Qualification scorer: batch LLM scoring of candidates against a requirement.

One request per batch. The model must answer through the submit_scores tool,
echoing each candidate's index; results are mapped back to lead ids by that
index, never by name.

Scoring is optional enrichment: score_leads_against_requirements() never
raises and returns {} on any failure.
"""
import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Lead
from db.repositories import leads as leads_repo
from schemas.lead import LeadSummary, ProfileData, ScoreResult
from tools import llm_tools

logger = logging.getLogger(__name__)

EXCERPT_CHARS = 400

SUBMIT_SCORES_TOOL = {
    "type": "function",
    "function": {
        "name": "submit_scores",
        "description": "Submit a qualification score for every candidate.",
        "parameters": {
            "type": "object",
            "properties": {
                "scores": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "index": {"type": "integer", "description": "Candidate index as given"},
                            "match_score": {"type": "integer", "minimum": 0, "maximum": 100},
                            "license_match": {"type": "boolean"},
                            "cert_match": {"type": "boolean"},
                            "experience_match": {"type": "boolean"},
                            "location_match": {"type": "boolean"},
                            "notes": {"type": "string", "description": "One or two sentences"},
                        },
                        "required": [
                            "index", "match_score", "license_match", "cert_match",
                            "experience_match", "location_match", "notes",
                        ],
                    },
                },
            },
            "required": ["scores"],
        },
    },
}

SCORING_PROMPT = """
You are a healthcare recruiting analyst. Score how well each candidate matches
the job requirements below, from 0 to 100.

RUBRIC:
- License match (30 pts): candidate holds the required license (RN, NP, MD...)
- Certification match (20 pts): candidate holds the required certifications (BLS, ACLS...)
- Specialty experience (30 pts): experience in the required specialty/unit
- Location match (20 pts): candidate is in or near the required location

When data for a criterion is missing from the profile, give partial credit
rather than zero. Score every candidate exactly once and echo its index.

JOB REQUIREMENTS:
{requirements}
"""


def candidate_index(value: Any) -> Optional[int]:
    """The candidate index the model echoed, or None if it is not an integer.

    Integral floats and digit strings are accepted; booleans are not.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def clamp_score(value: Any) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, score))


def summarize(lead: Lead) -> LeadSummary:
    profile = ProfileData.from_storage(lead.profile_data)
    excerpt = (profile.snippet or "")[:EXCERPT_CHARS] or None
    return LeadSummary(
        id=lead.id,
        name=lead.name,
        title=lead.title,
        location=lead.location,
        certifications=profile.certifications,
        licenses=profile.licenses,
        specialty=profile.specialty,
        excerpt=excerpt,
    )


def _format_candidates(leads: Sequence[LeadSummary]) -> str:
    blocks = []
    for idx, lead in enumerate(leads):
        lines = [f"[{idx}] {lead.name}"]
        for label, value in (
            ("Title", lead.title),
            ("Location", lead.location),
            ("Certifications", lead.certifications),
            ("Licenses", lead.licenses),
            ("Specialty", lead.specialty),
            ("Profile", lead.excerpt),
        ):
            if value:
                lines.append(f"    {label}: {value}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def _tool_arguments(response) -> Optional[Dict[str, Any]]:
    tool_calls = getattr(response.choices[0].message, "tool_calls", None) or []
    for call in tool_calls:
        if call.function.name == "submit_scores":
            args = call.function.arguments or "{}"
            return json.loads(args) if isinstance(args, str) else args
    return None


def score_leads_against_requirements(
    leads: Sequence[LeadSummary], requirement_text: str
) -> Dict[UUID, ScoreResult]:
    """Score every lead against requirement_text in one LLM call.

    Returns a map of lead id -> ScoreResult; empty on any failure.
    """
    if not leads or not requirement_text.strip():
        return {}
    if not llm_tools.llm_available():
        logger.info("No LLM credentials configured, skipping scoring")
        return {}

    try:
        response = llm_tools.chat_completion(
            messages=[
                {"role": "system", "content": SCORING_PROMPT.format(requirements=requirement_text).strip()},
                {"role": "user", "content": f"CANDIDATES:\n\n{_format_candidates(leads)}"},
            ],
            tools=[SUBMIT_SCORES_TOOL],
            tool_choice={"type": "function", "function": {"name": "submit_scores"}},
            temperature=0.1,
        )
        args = _tool_arguments(response)
    except Exception as exc:
        logger.warning("Lead scoring failed: %s", exc)
        return {}

    if not args or not isinstance(args.get("scores"), list):
        logger.warning("Scorer returned no submit_scores call")
        return {}

    results: Dict[UUID, ScoreResult] = {}
    for entry in args["scores"]:
        if not isinstance(entry, dict):
            continue
        idx = candidate_index(entry.get("index"))
        if idx is None or not 0 <= idx < len(leads):
            logger.debug("Ignoring score with invalid index %r", entry.get("index"))
            continue
        results[leads[idx].id] = ScoreResult(
            match_score=clamp_score(entry.get("match_score")),
            license_match=bool(entry.get("license_match")),
            cert_match=bool(entry.get("cert_match")),
            experience_match=bool(entry.get("experience_match")),
            location_match=bool(entry.get("location_match")),
            scoring_notes=str(entry.get("notes") or ""),
        )
    logger.info("Scored %d of %d leads", len(results), len(leads))
    return results


async def apply_scores(
    session: AsyncSession, leads: Sequence[Lead], scores: Dict[UUID, ScoreResult]
) -> int:
    """Merge scores into each lead's profile_data. Returns leads updated."""
    updated = 0
    for lead in leads:
        score = scores.get(lead.id)
        if score is None:
            continue
        profile = ProfileData.from_storage(lead.profile_data).with_score(score)
        await leads_repo.merge_profile_data(session, lead, profile.to_storage())
        updated += 1
    return updated


async def score_and_store(
    session: AsyncSession, leads: List[Lead], requirement_text: str
) -> int:
    """Score leads and persist the results; the step both search paths share."""
    leads = list({lead.id: lead for lead in leads}.values())
    summaries = [summarize(lead) for lead in leads]
    scores = await asyncio.to_thread(score_leads_against_requirements, summaries, requirement_text)
    return await apply_scores(session, leads, scores)


async def score_campaign(session: AsyncSession, campaign_id: UUID, requirement_text: str) -> int:
    """Re-score every lead already stored in a campaign. Returns leads updated."""
    leads = await leads_repo.list_for_campaign(session, campaign_id)
    if not leads:
        return 0
    return await score_and_store(session, leads, requirement_text)
