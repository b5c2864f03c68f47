"""Initialize the LLM backend from environment variables.

Provider selection follows model_config.active_provider():
  - ANTHROPIC_API_KEY / OPENAI_API_KEY / LLM_API_KEY set → hosted API, no init
  - Otherwise → Vertex AI, only when GOOGLE_CLOUD_PROJECT is set

With no provider configured, query expansion and scoring degrade to no-ops.
"""
import logging
import os

from model_config import active_provider, get_llm_model, llm_configured

logger = logging.getLogger(__name__)


def init_llm() -> None:
    """Initialize the active LLM provider."""
    if not llm_configured():
        logger.info("LLM provider: none configured (query expansion and scoring disabled)")
        return

    provider = active_provider()
    if provider == "vertex_ai":
        import vertexai

        project = os.environ["GOOGLE_CLOUD_PROJECT"]
        location = os.environ.get("GOOGLE_CLOUD_LOCATION", "us-east5")
        vertexai.init(project=project, location=location)
        logger.info("LLM provider: Vertex AI (project=%s, location=%s)", project, location)
    else:
        logger.info("LLM provider: %s (model=%s)", provider, get_llm_model())

    if os.environ.get("LANGFUSE_PUBLIC_KEY"):
        import litellm
        litellm.success_callback = ["langfuse"]
        litellm.failure_callback = ["langfuse"]
