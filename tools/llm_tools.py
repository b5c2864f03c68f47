"""LLM chat-completion tool (OpenAI-compatible, routed through litellm)."""
from typing import Any, Dict, List, Optional

import litellm

from model_config import get_llm_api_key, get_llm_model, llm_configured


def llm_available() -> bool:
    return llm_configured()


def chat_completion(
    messages: List[Dict[str, Any]],
    tools: Optional[List[Dict[str, Any]]] = None,
    tool_choice: Optional[Any] = None,
    temperature: float = 0.2,
    max_tokens: Optional[int] = None,
    timeout: float = 60,
):
    """Run one chat completion and return the raw litellm response.

    Raises whatever the provider raises; callers decide whether that is fatal.
    """
    kwargs: Dict[str, Any] = {
        "model": get_llm_model(),
        "messages": messages,
        "temperature": temperature,
        "timeout": timeout,
    }
    api_key = get_llm_api_key()
    if api_key:
        kwargs["api_key"] = api_key
    if tools:
        kwargs["tools"] = tools
    if tool_choice is not None:
        kwargs["tool_choice"] = tool_choice
    if max_tokens is not None:
        kwargs["max_tokens"] = max_tokens
    return litellm.completion(**kwargs)
