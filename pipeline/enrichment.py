"""Field resolution for webset items.

A webset item carries typed `properties` when the provider recognised a
person, plus a list of free-form enrichments whose meaning is only given by
their description/prompt text. An ItemStrategy turns one item into a
WebsetLead; adding a provider payload shape means adding a strategy, not
touching the dedup/upsert code.
"""
import logging
from typing import Any, Dict, Optional, Protocol

from pipeline.parser import capitalize_words, name_from_slug, normalize_profile_url
from schemas.lead import WebsetLead

logger = logging.getLogger(__name__)

LINKEDIN_PROFILE = "linkedin.com/in/"

# Checked in order; the first category whose keywords match and whose field
# is still empty takes the value.
FIELD_KEYWORDS = (
    ("title", ("title", "job", "role", "position")),
    ("company", ("company", "employer", "organization")),
    ("location", ("location", "city", "country", "based")),
)


class ItemStrategy(Protocol):
    def parse(self, item: Dict[str, Any]) -> WebsetLead: ...


def enrichment_value(enrichment: Optional[Dict[str, Any]]) -> str:
    """The enrichment's answer as a string (first element when it is a list)."""
    if not enrichment:
        return ""
    result = enrichment.get("result") or enrichment.get("value") or enrichment.get("answer")
    if not result:
        return ""
    if isinstance(result, list):
        return str(result[0]) if result and result[0] else ""
    return str(result)


def _looks_like_email(value: str) -> bool:
    return "@" in value and "." in value and " " not in value


def _reference_name(enrichments: list) -> str:
    for enrichment in enrichments:
        references = enrichment.get("references") or []
        if references:
            ref_title = (references[0].get("title") or "").strip()
            if ref_title and "linkedin.com" not in ref_title and 2 < len(ref_title) < 50:
                return ref_title
    return ""


class ExaWebsetStrategy:
    """Exa websets payload: person properties first, then enrichments."""

    def parse(self, item: Dict[str, Any]) -> WebsetLead:
        properties = item.get("properties") or {}
        enrichments = item.get("enrichments") or []
        fields: Dict[str, str] = {
            "name": "", "title": "", "company": "", "location": "",
            "email": "", "linkedin_url": "",
        }

        person = properties.get("person") if properties.get("type") == "person" else None
        if person:
            fields["name"] = person.get("name") or ""
            fields["location"] = person.get("location") or ""
            fields["title"] = person.get("position") or ""
            fields["company"] = (person.get("company") or {}).get("name") or ""

        prop_url = properties.get("url") or ""
        if LINKEDIN_PROFILE in prop_url:
            fields["linkedin_url"] = prop_url

        for enrichment in enrichments:
            value = enrichment_value(enrichment).strip()
            if not value:
                continue
            if LINKEDIN_PROFILE in value:
                if not fields["linkedin_url"]:
                    fields["linkedin_url"] = value
                continue
            if _looks_like_email(value):
                if not fields["email"]:
                    fields["email"] = value
                continue
            desc = enrichment.get("description") or enrichment.get("prompt") or ""
            self._assign_by_description(fields, desc, value)

        item_url = item.get("url") or ""
        if not fields["linkedin_url"] and LINKEDIN_PROFILE in item_url:
            fields["linkedin_url"] = item_url

        name = fields["name"] or _reference_name(enrichments)
        if not name and fields["linkedin_url"]:
            name = name_from_slug(fields["linkedin_url"])
        name = capitalize_words(name.strip())

        lead = WebsetLead(
            name=name or "Unknown",
            title=fields["title"] or None,
            company=fields["company"] or None,
            location=fields["location"] or None,
            email=fields["email"].lower() or None,
            linkedin_url=normalize_profile_url(fields["linkedin_url"]) if fields["linkedin_url"] else None,
            item_id=item.get("id"),
            enrichments=enrichments,
        )
        logger.debug(
            "Parsed webset item %s: name=%s title=%s company=%s linkedin=%s",
            lead.item_id, lead.name, lead.title, lead.company, lead.linkedin_url,
        )
        return lead

    @staticmethod
    def _assign_by_description(fields: Dict[str, str], description: str, value: str) -> None:
        desc = description.lower()
        for field, keywords in FIELD_KEYWORDS:
            if any(k in desc for k in keywords) and not fields[field]:
                fields[field] = value
                return


DEFAULT_STRATEGY: ItemStrategy = ExaWebsetStrategy()
