from .exa_tools import (
    exa_search_people, exa_fetch_webset, exa_create_webset, exa_create_webhook,
)
from .llm_tools import chat_completion, llm_available
from .supabase_tools import get_user_from_token, send_notification

__all__ = [
    "exa_search_people", "exa_fetch_webset", "exa_create_webset", "exa_create_webhook",
    "chat_completion", "llm_available",
    "get_user_from_token", "send_notification",
]
