"""Unit tests for query expansion (LLM mocked)."""
from types import SimpleNamespace
from unittest.mock import patch

from pipeline.query_expander import expand_query


def _response(content):
    message = SimpleNamespace(content=content, tool_calls=None)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class TestExpandQuery:
    @patch("tools.llm_tools.chat_completion")
    @patch("tools.llm_tools.llm_available", return_value=False)
    def test_no_credentials_returns_raw_query(self, _available, mock_completion):
        assert expand_query("ICU nurse Texas") == "ICU nurse Texas"
        mock_completion.assert_not_called()

    @patch("tools.llm_tools.chat_completion")
    @patch("tools.llm_tools.llm_available", return_value=True)
    def test_returns_expanded_query_stripped_of_quotes(self, _available, mock_completion):
        mock_completion.return_value = _response(
            '"ICU OR Intensive Care OR Critical Care Registered Nurse RN Houston TX"'
        )
        result = expand_query("ICU nurse Houston")
        assert result == "ICU OR Intensive Care OR Critical Care Registered Nurse RN Houston TX"

    @patch("tools.llm_tools.chat_completion")
    @patch("tools.llm_tools.llm_available", return_value=True)
    def test_sends_raw_query_as_user_message(self, _available, mock_completion):
        mock_completion.return_value = _response("ICU Registered Nurse Houston")
        expand_query("ICU nurse Houston")
        messages = mock_completion.call_args.kwargs["messages"]
        assert messages[0]["role"] == "system"
        assert "ONLY the rewritten query" in messages[0]["content"]
        assert messages[1] == {"role": "user", "content": "ICU nurse Houston"}

    @patch("tools.llm_tools.chat_completion", side_effect=TimeoutError("upstream timeout"))
    @patch("tools.llm_tools.llm_available", return_value=True)
    def test_transport_error_falls_back(self, _available, _completion):
        assert expand_query("ER nurse") == "ER nurse"

    @patch("tools.llm_tools.chat_completion")
    @patch("tools.llm_tools.llm_available", return_value=True)
    def test_too_short_output_falls_back(self, _available, mock_completion):
        mock_completion.return_value = _response("RN")
        assert expand_query("ER nurse Dallas") == "ER nurse Dallas"

    @patch("tools.llm_tools.chat_completion")
    @patch("tools.llm_tools.llm_available", return_value=True)
    def test_too_long_output_falls_back(self, _available, mock_completion):
        mock_completion.return_value = _response("x" * 301)
        assert expand_query("ER nurse Dallas") == "ER nurse Dallas"

    @patch("tools.llm_tools.chat_completion")
    @patch("tools.llm_tools.llm_available", return_value=True)
    def test_empty_content_falls_back(self, _available, mock_completion):
        mock_completion.return_value = _response(None)
        assert expand_query("ER nurse Dallas") == "ER nurse Dallas"
