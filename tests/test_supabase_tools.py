"""Unit tests for supabase_tools: auth lookup and notification delivery."""
from unittest.mock import MagicMock, patch


SUPABASE_MODULE = "tools.supabase_tools"


class TestGetUserFromToken:
    @patch(f"{SUPABASE_MODULE}.requests.get")
    def test_returns_user_for_valid_token(self, mock_get):
        mock_resp = MagicMock(status_code=200)
        mock_resp.json.return_value = {"id": "6f1c3c7e-6b7a-4a53-9d1e-1c6f1c3c7e6b", "email": "r@x.com"}
        mock_get.return_value = mock_resp

        from tools.supabase_tools import get_user_from_token
        user = get_user_from_token("tok")

        assert user["email"] == "r@x.com"
        assert mock_get.call_args.kwargs["headers"]["Authorization"] == "Bearer tok"

    @patch(f"{SUPABASE_MODULE}.requests.get")
    def test_rejected_token_returns_none(self, mock_get):
        mock_get.return_value = MagicMock(status_code=401)

        from tools.supabase_tools import get_user_from_token
        assert get_user_from_token("expired") is None

    @patch(f"{SUPABASE_MODULE}.requests.get", side_effect=RuntimeError("connection refused"))
    def test_network_error_returns_none(self, _get):
        from tools.supabase_tools import get_user_from_token
        assert get_user_from_token("tok") is None


class TestSendNotification:
    @patch(f"{SUPABASE_MODULE}.requests.post")
    def test_posts_event_with_data(self, mock_post):
        mock_post.return_value = MagicMock(status_code=200)

        from tools.supabase_tools import send_notification
        result = send_notification("leads_found", "user-1", {"lead_count": 3})

        assert result == {"event_type": "leads_found", "status": 200}
        assert mock_post.call_args.args[0].endswith("/functions/v1/send-automated-email")
        assert mock_post.call_args.kwargs["json"] == {
            "event_type": "leads_found",
            "user_id": "user-1",
            "data": {"lead_count": 3},
        }

    @patch(f"{SUPABASE_MODULE}.requests.post")
    def test_data_is_optional(self, mock_post):
        mock_post.return_value = MagicMock(status_code=202)

        from tools.supabase_tools import send_notification
        send_notification("low_credits", "user-1")

        assert "data" not in mock_post.call_args.kwargs["json"]

    @patch(f"{SUPABASE_MODULE}.requests.post", side_effect=RuntimeError("timeout"))
    def test_failure_is_returned_not_raised(self, _post):
        from tools.supabase_tools import send_notification
        result = send_notification("low_credits", "user-1")
        assert result["status"] is None
        assert "timeout" in result["error"]
