"""Exa people search and websets tools.

Synchronous search goes through the exa_py SDK; the websets endpoints are
called over REST directly, the same way the rest of the provider tools talk
to HTTP APIs without an SDK.
"""
import os
from typing import Any, Dict, List, Optional

import requests
from exa_py import Exa


EXA_WEBSETS_BASE = "https://api.exa.ai/websets/v0"

# Enrichments requested for every webset; their descriptions are what the
# webhook's field classifier keys off.
WEBSET_ENRICHMENTS = [
    {"description": "LinkedIn profile URL of the person", "format": "url"},
    {"description": "Work email address of the person", "format": "email"},
    {"description": "Current job title of the person", "format": "text"},
    {"description": "Current employer company name", "format": "text"},
    {"description": "Location: city and country where the person is based", "format": "text"},
]


def _client() -> Exa:
    return Exa(api_key=os.environ["EXA_API_KEY"])


def _websets_headers() -> Dict[str, str]:
    return {
        "x-api-key": os.environ["EXA_API_KEY"],
        "Accept": "application/json",
    }


# Structured per-result summary; the parser prefers it over the title string.
PERSON_SUMMARY = {
    "query": "Extract the person's professional information",
    "schema": {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "title": "Person Profile",
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Full name of the person"},
            "jobTitle": {"type": "string", "description": "Current job title or role"},
            "company": {"type": "string", "description": "Current company or employer"},
            "location": {"type": "string", "description": "City and/or country"},
        },
        "required": ["name"],
    },
}


def _plain(value: Any) -> Optional[Any]:
    return value if isinstance(value, (str, dict)) else None


def exa_search_people(
    query: str,
    num_results: int = 20,
    max_characters: int = 1000,
) -> Dict[str, Any]:
    """Search for people profiles using Exa neural search.

    Args:
        query: Natural language search query.
        num_results: Number of results to return.
        max_characters: Cap on the text excerpt returned per result.

    Returns:
        Dict with 'results' list (id, url, title, text, score, summary,
        properties) and 'query'; on failure 'results' is empty and 'error'
        holds the upstream message.
    """
    try:
        client = _client()
        response = client.search(
            query,
            num_results=num_results,
            type="neural",
            category="people",
            contents={
                "text": {
                    "maxCharacters": max_characters,
                },
                "summary": PERSON_SUMMARY,
            },
        )
        results = [
            {
                "id": getattr(r, "id", None),
                "url": r.url,
                "title": r.title or "",
                "text": getattr(r, "text", None) or "",
                "score": getattr(r, "score", None),
                "summary": _plain(getattr(r, "summary", None)),
                "properties": _plain(getattr(r, "properties", None)),
            }
            for r in response.results
        ]
        return {"results": results, "query": query}
    except Exception as exc:
        return {"results": [], "query": query, "error": str(exc)}


def exa_fetch_webset(webset_id: str) -> Dict[str, Any]:
    """Fetch a webset with all of its items and enrichments in one call.

    Returns:
        Dict with 'webset_id' and 'items'; on failure 'items' is empty and
        'error' holds the upstream status/message.
    """
    try:
        resp = requests.get(
            f"{EXA_WEBSETS_BASE}/websets/{webset_id}",
            params={"expand": "items"},
            headers=_websets_headers(),
            timeout=30,
        )
        resp.raise_for_status()
        data = resp.json()
        return {"webset_id": webset_id, "items": data.get("items") or []}
    except Exception as exc:
        return {"webset_id": webset_id, "items": [], "error": str(exc)}


def exa_create_webset(
    query: str,
    count: int,
    external_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Start an asynchronous person webset.

    Returns:
        Dict with 'webset_id' and 'status', or 'error'.
    """
    payload: Dict[str, Any] = {
        "search": {
            "query": query,
            "count": count,
            "entity": {"type": "person"},
        },
        "enrichments": WEBSET_ENRICHMENTS,
    }
    if external_id is not None:
        payload["externalId"] = external_id
    try:
        resp = requests.post(
            f"{EXA_WEBSETS_BASE}/websets",
            json=payload,
            headers=_websets_headers(),
            timeout=30,
        )
        resp.raise_for_status()
        data = resp.json()
        return {"webset_id": data.get("id"), "status": data.get("status", "running")}
    except Exception as exc:
        return {"webset_id": None, "error": str(exc)}


def exa_create_webhook(url: str, events: Optional[List[str]] = None) -> Dict[str, Any]:
    """Register a webhook for webset events. The returned secret signs deliveries.

    Returns:
        Dict with 'webhook_id' and 'secret', or 'error'.
    """
    try:
        resp = requests.post(
            f"{EXA_WEBSETS_BASE}/webhooks",
            json={"url": url, "events": events or ["webset.idle"]},
            headers=_websets_headers(),
            timeout=30,
        )
        resp.raise_for_status()
        data = resp.json()
        return {"webhook_id": data.get("id"), "secret": data.get("secret")}
    except Exception as exc:
        return {"webhook_id": None, "secret": None, "error": str(exc)}
