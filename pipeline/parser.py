"""Profile parser: one raw people-search hit -> ParsedLead, or None for noise.

Hits may carry a structured summary and typed person properties; when they
do not, the title is split. Search titles usually look like
"Name | Title at Company | LinkedIn" or "Name - Title at Company"; the text is
a free-form snippet that may carry a location and an email.
"""
import json
import logging
import re
from typing import Any, Dict, Mapping, Optional
from urllib.parse import unquote

from schemas.lead import ParsedLead

logger = logging.getLogger(__name__)

PROFILE_MARKER = "/in/"
MAX_NAME_LENGTH = 60
MAX_COMPANY_LENGTH = 60
MAX_LOCATION_LENGTH = 50

_BRAND_SUFFIX = re.compile(r"\s*[|\-–—]\s*LinkedIn\s*$", re.IGNORECASE)
_PIPE_SPLIT = re.compile(r"\s*\|\s*")
_DASH_SPLIT = re.compile(r"\s+[-–—]\s+")
_TITLE_AT_COMPANY = re.compile(r"^(.+?)\s+(?:at|@)\s+(.+)$", re.IGNORECASE)

_SLUG = re.compile(r"/in/([^/?#]+)", re.IGNORECASE)
_SLUG_HEX_SUFFIX = re.compile(r"-[a-f0-9]{6,}$", re.IGNORECASE)
_SLUG_SEPARATORS = re.compile(r"[-_]+")

_NOT_A_PERSON = re.compile(
    r"\b(?:jobs?|search|results?|linkedin|hiring)\b|not\s+found",
    re.IGNORECASE,
)

_EMAIL = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")

_PLACE = r"[A-Z][\w.'-]*(?:\s+[A-Z][\w.'-]*)*"
_LABELED_LOCATION_PATTERNS = [
    re.compile(rf"\b(?:based|located|living|residing)\s+in\s+({_PLACE}(?:,\s*{_PLACE})?)"),
    re.compile(r"\bLocation:\s*([^\n|•]+)", re.IGNORECASE),
]
_CITY_STATE = re.compile(rf"\b({_PLACE},\s*([A-Z]{{2}}))\b")

US_STATES = frozenset({
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "DC", "FL", "GA", "HI", "ID",
    "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO",
    "MT", "NE", "NV", "NH", "NJ", "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA",
    "RI", "SC", "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
})


def is_profile_url(url: Optional[str]) -> bool:
    return bool(url) and PROFILE_MARKER in url


def normalize_profile_url(url: str) -> str:
    """Drop query string, fragment and trailing slash so the dedup key is stable."""
    return re.split(r"[?#]", url, maxsplit=1)[0].rstrip("/")


def capitalize_words(text: str) -> str:
    return " ".join(w[:1].upper() + w[1:].lower() for w in text.split())


def name_from_slug(url: str) -> str:
    """Derive a display name from a profile URL slug ("jane-doe-4f9a2b" -> "Jane Doe")."""
    match = _SLUG.search(url or "")
    if not match:
        return ""
    slug = unquote(match.group(1))
    slug = _SLUG_HEX_SUFFIX.sub("", slug)
    return capitalize_words(_SLUG_SEPARATORS.sub(" ", slug))


def split_title(raw_title: str) -> tuple[str, Optional[str], Optional[str]]:
    """Split a result title into (name, title, company)."""
    cleaned = _BRAND_SUFFIX.sub("", raw_title or "").strip()
    if not cleaned:
        return "", None, None

    parts = [p for p in _PIPE_SPLIT.split(cleaned) if p]
    if len(parts) < 2:
        parts = [p for p in _DASH_SPLIT.split(cleaned) if p]
    if len(parts) < 2:
        return cleaned, None, None

    name = parts[0].strip()
    headline = parts[1].strip()
    match = _TITLE_AT_COMPANY.match(headline)
    if match:
        return name, match.group(1).strip(), match.group(2).strip()
    company = parts[2].strip() if len(parts) > 2 else None
    return name, headline or None, company or None


def extract_location(text: str) -> Optional[str]:
    """First labeled location in the text; overlong matches are treated as noise."""
    if not text:
        return None
    for pattern in _LABELED_LOCATION_PATTERNS:
        match = pattern.search(text)
        if match:
            candidate = match.group(1).strip(" .,;")
            if candidate and len(candidate) <= MAX_LOCATION_LENGTH:
                return candidate
    for match in _CITY_STATE.finditer(text):
        if match.group(2) in US_STATES:
            candidate = match.group(1).strip()
            if len(candidate) <= MAX_LOCATION_LENGTH:
                return candidate
    return None


def extract_email(text: str) -> Optional[str]:
    if not text:
        return None
    match = _EMAIL.search(text)
    return match.group(0).lower() if match else None


def looks_like_person(name: str) -> bool:
    return len(name.strip()) >= 2 and not _NOT_A_PERSON.search(name)


def _text_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def summary_fields(result: Mapping[str, Any]) -> Dict[str, Optional[str]]:
    """Fields from the structured summary (a JSON string or an object)."""
    raw = result.get("summary")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.debug("Unparseable result summary for %s", result.get("url"))
            return {}
    if not isinstance(raw, dict):
        return {}
    return {
        "name": _text_or_none(raw.get("name")) or _text_or_none(raw.get("fullName")),
        "title": (
            _text_or_none(raw.get("jobTitle"))
            or _text_or_none(raw.get("title"))
            or _text_or_none(raw.get("position"))
        ),
        "company": _text_or_none(raw.get("company")) or _text_or_none(raw.get("companyName")),
        "location": _text_or_none(raw.get("location")),
    }


def person_fields(result: Mapping[str, Any]) -> Dict[str, Optional[str]]:
    """Fields from typed person properties, when the provider returns them."""
    properties = result.get("properties") or {}
    if not isinstance(properties, dict) or properties.get("type") != "person":
        return {}
    person = properties.get("person")
    if not isinstance(person, dict):
        return {}
    company = person.get("company")
    if isinstance(company, dict):
        company = company.get("name")
    return {
        "name": _text_or_none(person.get("name")),
        "title": _text_or_none(person.get("position")),
        "company": _text_or_none(company),
        "location": _text_or_none(person.get("location")),
    }


def _first(field: str, *sources: Mapping[str, Optional[str]]) -> Optional[str]:
    for source in sources:
        value = source.get(field)
        if value:
            return value
    return None


def parse_search_result(result: Mapping[str, Any]) -> Optional[ParsedLead]:
    """Turn one people-search hit into a ParsedLead.

    Each field comes from the first source that has it: structured summary,
    person properties, the split result title, and for the name finally the
    URL slug. Location falls back to the text snippet instead of the title.

    Returns None for non-profile URLs and for names that are empty, too short,
    or clearly not a person (job boards, search pages, not-found pages).
    """
    url = result.get("url") or ""
    if not is_profile_url(url):
        logger.debug("Skipping non-profile URL: %s", url)
        return None

    summary = summary_fields(result)
    person = person_fields(result)
    title_name, title_role, title_company = split_title(result.get("title") or "")
    from_title = {"name": title_name, "title": title_role, "company": title_company}

    name = _first("name", summary, person, from_title) or name_from_slug(url)
    if not looks_like_person(name):
        logger.debug("Skipping non-person result %r (%s)", name, url)
        return None

    text = result.get("text") or ""
    company = _first("company", summary, person, from_title)
    location = _first("location", summary, person) or extract_location(text)
    return ParsedLead(
        name=name[:MAX_NAME_LENGTH],
        title=_first("title", summary, person, from_title),
        company=company[:MAX_COMPANY_LENGTH] if company else None,
        location=location[:MAX_LOCATION_LENGTH] if location else None,
        email=extract_email(text),
        linkedin_url=normalize_profile_url(url),
        text=text,
        exa_id=result.get("id"),
        exa_score=result.get("score"),
    )
