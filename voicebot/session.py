"""
Voice session: wires the conversational agent to playback and the microphone.

VoiceSession is the event layer around the playback pipeline. It fetches a signed
URL from the credential server, opens a ConversationClient, streams microphone
audio to the agent and routes the agent's events:

- agent audio re-checks activation and is submitted to the pipeline
- a switch to "listening" (the user barged in) stops playback and clears the queue
- transcripts and agent responses go to the on_message callback

It reports its progress through UI states so a front-end can enable and disable
its controls.
"""

import asyncio
import logging
import os
from enum import Enum
from typing import Callable, Optional

from voicebot.audio.playback import PlaybackPipeline
from voicebot.config.constants import LOGGER_NAME, MODE_LISTENING
from voicebot.services.conversation_client import ConversationClient
from voicebot.services.credentials import CredentialError, fetch_signed_url

logger = logging.getLogger(LOGGER_NAME)

DEFAULT_USERNAME = os.getenv("CONVERSATION_USERNAME", "Leonardo")


class UIState(str, Enum):
    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    STREAMING = "STREAMING"
    ERROR = "ERROR"


class VoiceSession:
    """
    One conversation between the local user and the agent.

    Args:
        pipeline: Playback pipeline for agent speech
        server_url: Base URL of the credential server
        microphone: Optional microphone stream exposing start(), stop() and an
            asyncio queue of PCM16 chunks named `chunks`
        on_state: Called with each new UIState
        on_message: Called with (text, source), source being "user", "ai" or "system"
        username: Dynamic variable passed to the agent
    """

    def __init__(
        self,
        pipeline: PlaybackPipeline,
        server_url: str,
        microphone=None,
        on_state: Optional[Callable[[UIState], None]] = None,
        on_message: Optional[Callable[[str, str], None]] = None,
        username: str = DEFAULT_USERNAME,
    ):
        self.pipeline = pipeline
        self.server_url = server_url
        self.microphone = microphone
        self.on_state = on_state
        self.on_message = on_message
        self.username = username
        self.state = UIState.IDLE
        self.client: Optional[ConversationClient] = None
        self._sender_task: Optional[asyncio.Task] = None

    def _set_state(self, state: UIState) -> None:
        self.state = state
        logger.debug(f"Session state: {state.value}")
        if self.on_state:
            self.on_state(state)

    def _log(self, message: str, source: str = "system") -> None:
        if source == "system":
            logger.info(message)
        if self.on_message:
            self.on_message(message, source)

    def create_client(self, signed_url: str) -> ConversationClient:
        client = ConversationClient(signed_url, {"username": self.username})
        client.on("on_connect", self.handle_connect)
        client.on("on_message", self.handle_message)
        client.on("on_audio", self.handle_audio)
        client.on("on_mode_change", self.handle_mode_change)
        client.on("on_error", self.handle_error)
        client.on("on_disconnect", self.handle_disconnect)
        return client

    async def start(self) -> bool:
        """
        Connect to the agent and start streaming.

        Returns:
            bool: True if the conversation was opened
        """
        if self.client is not None:
            logger.warning("Session already started")
            return False

        self._set_state(UIState.CONNECTING)
        self._log("Requesting conversation credentials...")

        # Activation happens on the user's start gesture
        self.pipeline.activate()

        try:
            loop = asyncio.get_running_loop()
            signed_url = await loop.run_in_executor(None, fetch_signed_url, self.server_url)
        except CredentialError as e:
            logger.error(f"Failed to start streaming: {e}")
            self._log("Could not start session. Check the credential server.")
            self._set_state(UIState.ERROR)
            return False

        self.client = self.create_client(signed_url)
        if not await self.client.connect():
            self.client = None
            self._log("Could not connect to the agent.")
            self._set_state(UIState.ERROR)
            return False

        if self.microphone is not None:
            try:
                self.microphone.start()
            except Exception as e:
                logger.error(f"Could not open microphone: {e}")
                self._log("Microphone unavailable; text input only.")
            else:
                self._sender_task = asyncio.create_task(self._send_microphone_audio())
        return True

    async def _send_microphone_audio(self) -> None:
        while self.client is not None and self.client.connected:
            chunk = await self.microphone.chunks.get()
            await self.client.send_user_audio(chunk)

    async def stop(self) -> None:
        """End the conversation and stop any agent speech still playing."""
        if self.client is None:
            return

        client, self.client = self.client, None
        if self._sender_task is not None:
            self._sender_task.cancel()
            try:
                await self._sender_task
            except asyncio.CancelledError:
                pass
            self._sender_task = None
        if self.microphone is not None:
            self.microphone.stop()

        await client.close()
        self.pipeline.stop_playback()
        self._set_state(UIState.IDLE)

    async def send_text(self, text: str) -> bool:
        """Send a typed message to the agent and echo it to the transcript."""
        text = text.strip()
        if not text or self.client is None:
            return False
        self._log(text, "user")
        return await self.client.send_user_message(text)

    # Agent event handlers

    def handle_connect(self, conversation_id: str) -> None:
        self._log(f"Conversation ID: {conversation_id}")
        self._set_state(UIState.STREAMING)

    def handle_message(self, text: str, source: str) -> None:
        self._log(text, source)

    def handle_audio(self, audio_base64: str) -> None:
        logger.debug("Received agent audio")
        self.pipeline.activate()
        self.pipeline.submit(audio_base64)

    def handle_mode_change(self, mode: str) -> None:
        if mode == MODE_LISTENING:
            self.pipeline.stop_playback()

    def handle_error(self, message: str) -> None:
        logger.error(f"Conversation error: {message}")
        self._log(message)
        self._set_state(UIState.ERROR)

    async def handle_disconnect(self) -> None:
        self._log("Disconnected from server.")
        await self.stop()
