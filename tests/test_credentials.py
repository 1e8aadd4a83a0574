"""
Tests for credential issuing and fetching.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from voicebot.services.credentials import (
    CredentialError,
    ElevenLabsCredentials,
    default_server_url,
    fetch_signed_url,
)


def mock_response(status=200, json_data=None, text="", reason="OK"):
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.reason = reason
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def creds():
    return ElevenLabsCredentials("test-key", "agent_123")


class TestElevenLabsCredentials:

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ELEVENLABS_API_KEY", "k")
        monkeypatch.setenv("ELEVENLABS_AGENT_ID", "a")
        creds = ElevenLabsCredentials.from_env()
        assert creds.configured
        assert creds.agent_id == "a"

    def test_not_configured(self, monkeypatch):
        monkeypatch.delenv("ELEVENLABS_API_KEY", raising=False)
        monkeypatch.delenv("ELEVENLABS_AGENT_ID", raising=False)
        creds = ElevenLabsCredentials.from_env()

        assert not creds.configured
        with pytest.raises(CredentialError):
            creds.get_signed_url()

    def test_get_signed_url(self, creds):
        with patch("voicebot.services.credentials.requests.get") as mock_get:
            mock_get.return_value = mock_response(json_data={"signed_url": "wss://signed"})
            assert creds.get_signed_url() == "wss://signed"

        args, kwargs = mock_get.call_args
        assert args[0].endswith("/v1/convai/conversation/get-signed-url")
        assert kwargs["params"] == {"agent_id": "agent_123"}
        assert kwargs["headers"] == {"xi-api-key": "test-key"}

    def test_get_conversation_token(self, creds):
        with patch("voicebot.services.credentials.requests.get") as mock_get:
            mock_get.return_value = mock_response(json_data={"token": "tok"})
            assert creds.get_conversation_token() == "tok"

        assert mock_get.call_args[0][0].endswith("/v1/convai/conversation/token")

    def test_http_error(self, creds):
        with patch("voicebot.services.credentials.requests.get") as mock_get:
            mock_get.return_value = mock_response(status=401, reason="Unauthorized")
            with pytest.raises(CredentialError, match="401"):
                creds.get_signed_url()

    def test_network_error(self, creds):
        with patch("voicebot.services.credentials.requests.get",
                   side_effect=requests.ConnectionError("refused")):
            with pytest.raises(CredentialError):
                creds.get_conversation_token()

    def test_invalid_json(self, creds):
        with patch("voicebot.services.credentials.requests.get") as mock_get:
            mock_get.return_value = mock_response(json_data=ValueError("no json"))
            with pytest.raises(CredentialError):
                creds.get_signed_url()

    def test_missing_field(self, creds):
        with patch("voicebot.services.credentials.requests.get") as mock_get:
            mock_get.return_value = mock_response(json_data={"other": 1})
            with pytest.raises(CredentialError, match="signed_url"):
                creds.get_signed_url()


class TestClientFetch:

    def test_default_server_url(self, monkeypatch):
        monkeypatch.delenv("SERVER_HOST", raising=False)
        monkeypatch.delenv("SERVER_PORT", raising=False)
        assert default_server_url() == "http://localhost:3000"

        monkeypatch.setenv("SERVER_HOST", "example.com")
        monkeypatch.setenv("SERVER_PORT", "8080")
        assert default_server_url() == "http://example.com:8080"

    def test_fetch_signed_url(self):
        with patch("voicebot.services.credentials.requests.get") as mock_get:
            mock_get.return_value = mock_response(text="wss://signed\n")
            assert fetch_signed_url("http://localhost:3000/") == "wss://signed"

        assert mock_get.call_args[0][0] == "http://localhost:3000/signed_url"

    def test_fetch_server_error(self):
        with patch("voicebot.services.credentials.requests.get") as mock_get:
            mock_get.return_value = mock_response(status=500, reason="Internal Server Error")
            with pytest.raises(CredentialError):
                fetch_signed_url("http://localhost:3000")

    def test_fetch_unreachable(self):
        with patch("voicebot.services.credentials.requests.get",
                   side_effect=requests.ConnectionError("refused")):
            with pytest.raises(CredentialError, match="unreachable"):
                fetch_signed_url("http://localhost:3000")

    def test_fetch_empty_body(self):
        with patch("voicebot.services.credentials.requests.get") as mock_get:
            mock_get.return_value = mock_response(text="  ")
            with pytest.raises(CredentialError):
                fetch_signed_url("http://localhost:3000")
