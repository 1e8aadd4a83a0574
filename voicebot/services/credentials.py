"""
Short-lived connection credentials for the hosted conversational agent.

ElevenLabsCredentials runs on the credential server: it holds the API key and
agent id and exchanges them for a signed WebSocket URL or a WebRTC conversation
token. The key never leaves the server. fetch_signed_url is the client-side
counterpart that asks the credential server for a signed URL; the WebSocket
client has no use for the WebRTC token.
"""

import logging
import os
from typing import Optional

import requests

from voicebot.config.constants import (
    DEFAULT_SERVER_PORT,
    ELEVENLABS_SIGNED_URL_ENDPOINT,
    ELEVENLABS_TOKEN_ENDPOINT,
    LOGGER_NAME,
)

logger = logging.getLogger(LOGGER_NAME)

REQUEST_TIMEOUT = 10  # seconds


class CredentialError(Exception):
    """Raised when a credential cannot be obtained."""


class ElevenLabsCredentials:
    """
    Issues conversation credentials for one ElevenLabs agent.

    Args:
        api_key: ElevenLabs API key, sent as the xi-api-key header
        agent_id: The conversational agent to connect to
        timeout: Per-request timeout in seconds
    """

    def __init__(self, api_key: Optional[str], agent_id: Optional[str],
                 timeout: float = REQUEST_TIMEOUT):
        self.api_key = api_key
        self.agent_id = agent_id
        self.timeout = timeout

    @classmethod
    def from_env(cls) -> "ElevenLabsCredentials":
        return cls(os.getenv("ELEVENLABS_API_KEY"), os.getenv("ELEVENLABS_AGENT_ID"))

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.agent_id)

    def get_signed_url(self) -> str:
        """Signed WebSocket URL for a new conversation."""
        data = self._get(ELEVENLABS_SIGNED_URL_ENDPOINT, "signed URL")
        return self._field(data, "signed_url")

    def get_conversation_token(self) -> str:
        """WebRTC conversation token for a new conversation."""
        data = self._get(ELEVENLABS_TOKEN_ENDPOINT, "conversation token")
        return self._field(data, "token")

    def _get(self, endpoint: str, what: str) -> dict:
        if not self.configured:
            raise CredentialError("ELEVENLABS_API_KEY and ELEVENLABS_AGENT_ID must be set")

        try:
            response = requests.get(
                endpoint,
                params={"agent_id": self.agent_id},
                headers={"xi-api-key": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Failed to get {what}: {e}")
            raise CredentialError(f"Failed to get {what}: {e}") from e

        if not response.ok:
            logger.error(f"Failed to get {what}: {response.status_code} {response.reason}")
            raise CredentialError(
                f"Failed to get {what}: {response.status_code} {response.reason}"
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON while getting {what}: {e}")
            raise CredentialError(f"Invalid response while getting {what}") from e

    @staticmethod
    def _field(data: dict, name: str) -> str:
        value = data.get(name) if isinstance(data, dict) else None
        if not value:
            raise CredentialError(f"Response did not contain '{name}'")
        return value


def default_server_url() -> str:
    host = os.getenv("SERVER_HOST", "localhost")
    port = os.getenv("SERVER_PORT", str(DEFAULT_SERVER_PORT))
    return f"http://{host}:{port}"


def _fetch_text(server_url: str, path: str, timeout: float) -> str:
    url = f"{server_url.rstrip('/')}{path}"
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise CredentialError(f"Credential server unreachable at {url}: {e}") from e

    if not response.ok:
        logger.error(f"Failed to fetch {path}: {response.status_code} {response.reason}")
        raise CredentialError(f"Credential server returned {response.status_code} for {path}")

    text = response.text.strip()
    if not text:
        raise CredentialError(f"Credential server returned an empty body for {path}")
    return text


def fetch_signed_url(server_url: str, timeout: float = REQUEST_TIMEOUT) -> str:
    """Ask the credential server for a signed conversation URL."""
    return _fetch_text(server_url, "/signed_url", timeout)
