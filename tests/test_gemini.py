"""
Tests for the Gemini REST client
"""
from unittest.mock import MagicMock, patch

import requests

from toolhub.llm import gemini


def _reply(payload):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = payload
    return response


class TestGenerateText:
    """Test the request/response handling"""

    def test_no_key_skips_request(self):
        with patch("toolhub.llm.gemini.requests.post") as post:
            assert gemini.generate_text("hi") is None
            post.assert_not_called()
        assert gemini.is_configured() is False

    def test_returns_candidate_text(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "k")
        monkeypatch.setenv("GEMINI_MODEL", "gemini-test")
        payload = {"candidates": [{"content": {"parts": [{"text": "  hello  "}]}}]}
        with patch("toolhub.llm.gemini.requests.post", return_value=_reply(payload)) as post:
            assert gemini.generate_text("hi", temperature=0.2) == "hello"
        url = post.call_args[0][0]
        assert "gemini-test:generateContent?key=k" in url
        assert post.call_args[1]["json"]["generationConfig"] == {"temperature": 0.2}

    def test_network_error_returns_none(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "k")
        with patch("toolhub.llm.gemini.requests.post", side_effect=requests.ConnectionError("down")):
            assert gemini.generate_text("hi") is None

    def test_unexpected_shape_returns_none(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "k")
        with patch("toolhub.llm.gemini.requests.post", return_value=_reply({"candidates": []})):
            assert gemini.generate_text("hi") is None


class TestSanitize:
    """Test preamble stripping"""

    def test_drops_here_is_line(self):
        assert gemini.sanitize_llm_markdown("Here are your quotes:\n1. A\n2. B") == "1. A\n2. B"
        assert gemini.sanitize_llm_markdown("1. A") == "1. A"
        assert gemini.sanitize_llm_markdown("") == ""


class TestRoutesUseModel:
    """Test that routes call the model when a key is configured"""

    def test_quote_route_with_model(self, client, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "k")
        text = '1. "Where there is love there is life." — Mahatma Gandhi'
        payload = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
        with patch("toolhub.llm.gemini.requests.post", return_value=_reply(payload)):
            body = client.post("/api/quote", json={"topic": "love"}).get_json()
        assert body["quotes"] == [{"quote": "Where there is love there is life.", "author": "Mahatma Gandhi"}]
        assert body["message"] == ""
