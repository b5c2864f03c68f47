"""Best-effort event emission (leads_found, low_credits).

The pipeline emits events to a sink and never looks at the outcome. The
NotificationSink buffers events and delivers them on flush(), which the HTTP
layer schedules after the response is sent; delivery failures are logged and
dropped.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from tools import supabase_tools

logger = logging.getLogger(__name__)

LEADS_FOUND = "leads_found"
LOW_CREDITS = "low_credits"


class EventSink:
    """Base sink: records nothing, delivers nothing."""

    def emit(self, event_type: str, user_id: str, data: Optional[Dict[str, Any]] = None) -> None:
        logger.debug("Event %s for user %s dropped (no sink configured)", event_type, user_id)

    def flush(self) -> None:
        pass


class NotificationSink(EventSink):
    """Delivers events to the send-automated-email function."""

    def __init__(self) -> None:
        self.pending: List[Tuple[str, str, Optional[Dict[str, Any]]]] = []

    def emit(self, event_type: str, user_id: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.pending.append((event_type, str(user_id), data))

    def flush(self) -> None:
        pending, self.pending = self.pending, []
        for event_type, user_id, data in pending:
            try:
                result = supabase_tools.send_notification(event_type, user_id, data)
            except Exception:
                logger.exception("Notification %s for user %s failed", event_type, user_id)
                continue
            if result.get("error"):
                logger.warning(
                    "Notification %s for user %s failed: %s", event_type, user_id, result["error"]
                )
            else:
                logger.info(
                    "Notification %s for user %s sent (status %s)",
                    event_type, user_id, result.get("status"),
                )
