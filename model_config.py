"""Model provider selection.

Priority:
  1. LLM_MODEL set → use it verbatim (any litellm model id)
  2. ANTHROPIC_API_KEY set → Anthropic API
  3. OPENAI_API_KEY / LLM_API_KEY set → OpenAI-compatible chat completions
  4. Otherwise → Vertex AI (requires GOOGLE_CLOUD_PROJECT + service account)

Usage:
    from model_config import get_llm_model
    model = get_llm_model()
"""
import os
from typing import Optional

# Model identifiers
ANTHROPIC_MODEL = "anthropic/claude-sonnet-4-6"
OPENAI_MODEL = "openai/gpt-4o-mini"
VERTEX_MODEL = "vertex_ai/claude-sonnet-4-5@20250929"


def active_provider() -> str:
    """Return 'anthropic', 'openai' or 'vertex_ai' depending on which is active."""
    if os.environ.get("ANTHROPIC_API_KEY"):
        return "anthropic"
    if os.environ.get("OPENAI_API_KEY") or os.environ.get("LLM_API_KEY"):
        return "openai"
    return "vertex_ai"


def get_llm_model() -> str:
    """Return the litellm model id for the active provider."""
    override = os.environ.get("LLM_MODEL")
    if override:
        return override
    return {
        "anthropic": ANTHROPIC_MODEL,
        "openai": OPENAI_MODEL,
        "vertex_ai": VERTEX_MODEL,
    }[active_provider()]


def get_llm_api_key() -> Optional[str]:
    """Return the API key for the active provider (None for Vertex AI)."""
    return (
        os.environ.get("LLM_API_KEY")
        or os.environ.get("ANTHROPIC_API_KEY")
        or os.environ.get("OPENAI_API_KEY")
    )


def llm_configured() -> bool:
    """True when some provider has credentials; callers degrade otherwise."""
    return bool(get_llm_api_key() or os.environ.get("GOOGLE_CLOUD_PROJECT"))
