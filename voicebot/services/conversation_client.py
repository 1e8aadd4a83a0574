"""
WebSocket client for the hosted ElevenLabs conversational agent.

ConversationClient connects to a signed conversation URL, announces the client's
dynamic variables, streams microphone audio and typed messages to the agent, and
dispatches the agent's events to registered handlers:

- on_connect(conversation_id)
- on_message(text, source) with source "user" or "ai"
- on_audio(audio_base64)
- on_mode_change(mode) with mode "speaking" or "listening"
- on_error(message)
- on_disconnect()

Pings are answered automatically. Handlers may be plain functions or coroutines.
"""

import asyncio
import base64
import inspect
import json
import logging
import time
import traceback
from typing import Any, Callable, Dict, Optional

import websockets
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, ConnectionClosedOK

from voicebot.config.constants import LOGGER_NAME, MODE_LISTENING, MODE_SPEAKING
from voicebot.models.agent_events import (
    AgentResponseEvent,
    AudioResponseEvent,
    ClientInitiationMessage,
    ConversationMetadataEvent,
    InterruptionEvent,
    PingEvent,
    PongMessage,
    UserAudioChunkMessage,
    UserTextMessage,
    UserTranscriptEvent,
    parse_agent_event,
)

logger = logging.getLogger(LOGGER_NAME)

CONNECTION_TIMEOUT = 30  # seconds
SEND_TIMEOUT = 5.0  # seconds
WS_MAX_SIZE = 16 * 1024 * 1024  # 16MB - large enough for audio chunks

Handler = Callable[..., Any]


class ConversationClient:
    """
    Client side of one conversation with the agent.

    Args:
        signed_url: Signed WebSocket URL issued by the credential server
        dynamic_variables: Values substituted into the agent's prompt
    """

    def __init__(self, signed_url: str, dynamic_variables: Optional[Dict[str, Any]] = None):
        self.signed_url = signed_url
        self.dynamic_variables = dynamic_variables or {}
        self.ws = None
        self.conversation_id: Optional[str] = None
        self.mode = MODE_LISTENING
        self.handlers: Dict[str, Optional[Handler]] = {
            "on_connect": None,
            "on_message": None,
            "on_audio": None,
            "on_mode_change": None,
            "on_error": None,
            "on_disconnect": None,
        }
        self._recv_task: Optional[asyncio.Task] = None
        self._connection_active = False
        self._is_closing = False
        self._last_interrupt_id = 0

    def on(self, event: str, handler: Handler) -> None:
        """Register a handler for one of the client events."""
        if event not in self.handlers:
            raise ValueError(f"Unknown conversation event: {event}")
        self.handlers[event] = handler

    @property
    def connected(self) -> bool:
        return self._connection_active

    async def connect(self) -> bool:
        """
        Open the conversation WebSocket and start the receive loop.

        Returns:
            bool: True if the connection was established, False otherwise
        """
        if self._is_closing:
            logger.warning("Cannot connect - client is closing")
            return False

        try:
            logger.info("Connecting to conversational agent")
            connection_start = time.time()
            self.ws = await asyncio.wait_for(
                websockets.connect(self.signed_url, max_size=WS_MAX_SIZE, compression=None),
                timeout=CONNECTION_TIMEOUT,
            )
            logger.debug(f"WebSocket connection established in {time.time() - connection_start:.2f} seconds")

            initiation = ClientInitiationMessage(dynamic_variables=self.dynamic_variables)
            await self.ws.send(initiation.model_dump_json())

            self._connection_active = True
            self._recv_task = asyncio.create_task(self._recv_loop())
            return True
        except asyncio.TimeoutError:
            logger.error(f"Timeout while connecting to the agent (after {CONNECTION_TIMEOUT}s)")
            self._connection_active = False
            return False
        except Exception as e:
            logger.error(f"Failed to connect to the agent: {e}")
            logger.debug(f"Connection error details: {traceback.format_exc()}")
            self._connection_active = False
            return False

    async def _recv_loop(self) -> None:
        """Receive agent events until the connection closes."""
        try:
            async for message in self.ws:
                if isinstance(message, bytes):
                    logger.debug(f"Ignoring binary frame of {len(message)} bytes")
                    continue
                try:
                    data = json.loads(message)
                except json.JSONDecodeError:
                    logger.warning(f"Received invalid JSON: {message[:100]}...")
                    continue
                try:
                    await self.handle_event(data)
                except Exception as e:
                    logger.error(f"Error handling agent event: {e}")
                    logger.debug(f"Event handling error details: {traceback.format_exc()}")
        except ConnectionClosedOK:
            logger.info("Agent connection closed normally")
        except ConnectionClosedError as e:
            logger.warning(f"Agent connection closed unexpectedly: {e}")
            await self._emit("on_error", f"Connection closed unexpectedly: {e}")
        except Exception as e:
            logger.error(f"Error in receive loop: {e}")
            logger.debug(f"Receive loop error details: {traceback.format_exc()}")
            await self._emit("on_error", str(e))

        self._connection_active = False
        logger.info("Receive loop exited, connection marked as inactive")
        if not self._is_closing:
            await self._emit("on_disconnect")

    async def handle_event(self, data: Dict[str, Any]) -> None:
        """Dispatch one decoded agent event."""
        event = parse_agent_event(data)
        if event is None:
            return

        if isinstance(event, ConversationMetadataEvent):
            self.conversation_id = event.conversation_initiation_metadata_event.conversation_id
            logger.info(f"Conversation started: {self.conversation_id}")
            await self._emit("on_connect", self.conversation_id)

        elif isinstance(event, UserTranscriptEvent):
            await self._emit("on_message", event.user_transcription_event.user_transcript, "user")

        elif isinstance(event, AgentResponseEvent):
            await self._emit("on_message", event.agent_response_event.agent_response, "ai")

        elif isinstance(event, AudioResponseEvent):
            if event.audio_event is None:
                return
            if event.audio_event.event_id < self._last_interrupt_id:
                logger.debug(
                    f"Dropping audio event {event.audio_event.event_id} from before "
                    f"interruption {self._last_interrupt_id}"
                )
                return
            await self._set_mode(MODE_SPEAKING)
            await self._emit("on_audio", event.audio_event.audio_base_64)

        elif isinstance(event, InterruptionEvent):
            interruption = event.interruption_event
            if interruption.event_id is not None:
                self._last_interrupt_id = interruption.event_id
            logger.info(f"Agent interrupted at event {interruption.event_id}")
            await self._set_mode(MODE_LISTENING)

        elif isinstance(event, PingEvent):
            await self._send(PongMessage(event_id=event.ping_event.event_id).model_dump_json())

    async def _set_mode(self, mode: str) -> None:
        if mode == self.mode:
            return
        self.mode = mode
        logger.debug(f"Conversation mode: {mode}")
        await self._emit("on_mode_change", mode)

    async def _emit(self, event: str, *args) -> None:
        handler = self.handlers.get(event)
        if handler is None:
            return
        try:
            result = handler(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Error in {event} handler: {e}")
            logger.debug(f"Handler error details: {traceback.format_exc()}")

    async def _send(self, payload: str) -> bool:
        if not self._connection_active or self.ws is None:
            logger.warning("Cannot send - connection not active")
            return False
        try:
            await asyncio.wait_for(self.ws.send(payload), timeout=SEND_TIMEOUT)
            return True
        except asyncio.TimeoutError:
            logger.warning("Timeout while sending to the agent")
            return False
        except ConnectionClosed as e:
            logger.warning(f"Connection closed while sending: {e}")
            self._connection_active = False
            return False

    async def send_user_audio(self, chunk: bytes) -> bool:
        """
        Send a chunk of PCM16 microphone audio.

        Returns:
            bool: True if the chunk was sent successfully, False otherwise
        """
        message = UserAudioChunkMessage(user_audio_chunk=base64.b64encode(chunk).decode("utf-8"))
        return await self._send(message.model_dump_json())

    async def send_user_message(self, text: str) -> bool:
        """Send a typed message to the agent."""
        try:
            message = UserTextMessage(text=text)
        except ValidationError as e:
            logger.warning(f"Not sending invalid user message: {e}")
            return False
        return await self._send(message.model_dump_json())

    async def close(self) -> None:
        """End the conversation and cancel the receive loop."""
        logger.info("Closing agent conversation")
        self._is_closing = True
        self._connection_active = False

        # close() may run inside the receive loop via the on_disconnect handler
        if self._recv_task and self._recv_task is not asyncio.current_task():
            self._recv_task.cancel()
            try:
                await self._recv_task
            except asyncio.CancelledError:
                pass

        if self.ws:
            try:
                await self.ws.close()
            except Exception as e:
                logger.warning(f"Error closing agent WebSocket: {e}")
            self.ws = None

        logger.info("Agent conversation closed")
