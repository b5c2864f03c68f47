"""Supabase platform calls: auth user lookup and the notification function.

Calls the Supabase REST endpoints directly (no Python SDK).
"""
import logging
from typing import Any, Dict, Optional

import requests

import config

logger = logging.getLogger(__name__)


def get_user_from_token(access_token: str) -> Optional[Dict[str, Any]]:
    """Resolve a bearer token to its Supabase auth user.

    Returns:
        The user dict (with 'id'), or None if the token is invalid or the
        auth service could not be reached.
    """
    try:
        resp = requests.get(
            f"{config.SUPABASE_URL}/auth/v1/user",
            headers={
                "apikey": config.SUPABASE_SERVICE_ROLE_KEY,
                "Authorization": f"Bearer {access_token}",
            },
            timeout=10,
        )
        if resp.status_code != 200:
            return None
        user = resp.json()
        return user if user.get("id") else None
    except Exception as exc:
        logger.warning("Auth lookup failed: %s", exc)
        return None


def send_notification(
    event_type: str,
    user_id: str,
    data: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Trigger the send-automated-email function for one event.

    Args:
        event_type: 'leads_found' or 'low_credits'.
        user_id: Recipient user id.
        data: Optional template variables.

    Returns:
        Dict with 'event_type' and 'status' (HTTP status), or 'error'.
    """
    body: Dict[str, Any] = {"event_type": event_type, "user_id": user_id}
    if data is not None:
        body["data"] = data
    try:
        resp = requests.post(
            f"{config.SUPABASE_URL}/functions/v1/send-automated-email",
            json=body,
            headers={"Authorization": f"Bearer {config.SUPABASE_SERVICE_ROLE_KEY}"},
            timeout=10,
        )
        return {"event_type": event_type, "status": resp.status_code}
    except Exception as exc:
        return {"event_type": event_type, "status": None, "error": str(exc)}
