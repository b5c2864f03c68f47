"""Query expander: rewrite a recruiter's request into a search-optimized query.

Never blocks a search. Any failure (no key, transport error, odd output)
returns the original query unchanged.
"""
import logging

from tools import llm_tools

logger = logging.getLogger(__name__)

MIN_EXPANDED_LENGTH = 5
MAX_EXPANDED_LENGTH = 300

EXPANSION_PROMPT = """
You rewrite healthcare recruiting requests into search queries for a semantic
people-search engine that indexes LinkedIn profiles.

Rewrite the request so that it:
- adds common synonyms for the specialty and role (e.g. ICU / Intensive Care / Critical Care)
- adds license and certification variants (e.g. RN / Registered Nurse, BLS / ACLS)
- adds nearby location variants (city, metro area, state abbreviation)

Keep it under 200 characters. Return ONLY the rewritten query: no quotes,
no explanation, no prefix.
"""


def expand_query(raw_query: str) -> str:
    """Return an LLM-expanded version of raw_query, or raw_query on any failure."""
    if not llm_tools.llm_available():
        return raw_query
    try:
        response = llm_tools.chat_completion(
            messages=[
                {"role": "system", "content": EXPANSION_PROMPT.strip()},
                {"role": "user", "content": raw_query},
            ],
            temperature=0.3,
            max_tokens=150,
            timeout=15,
        )
        content = response.choices[0].message.content or ""
        expanded = content.strip().strip('"').strip()
    except Exception as exc:
        logger.warning("Query expansion failed, using original query: %s", exc)
        return raw_query

    if not MIN_EXPANDED_LENGTH <= len(expanded) <= MAX_EXPANDED_LENGTH:
        logger.info("Discarding expanded query of length %d", len(expanded))
        return raw_query
    logger.info("Expanded query %r -> %r", raw_query, expanded)
    return expanded
