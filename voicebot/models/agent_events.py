"""
Pydantic models for the conversational agent WebSocket protocol.

This module defines structured data models for the inbound events emitted by the
hosted ElevenLabs conversational agent and the outbound messages sent by the voice
client, providing type validation and documentation.
"""

import logging
from typing import Any, Dict, Literal, Optional, Type

from pydantic import BaseModel, Field, ValidationError, field_validator

from voicebot.config.constants import (
    EVENT_TYPE_AGENT_RESPONSE,
    EVENT_TYPE_AUDIO,
    EVENT_TYPE_CONVERSATION_METADATA,
    EVENT_TYPE_INTERRUPTION,
    EVENT_TYPE_PING,
    EVENT_TYPE_USER_TRANSCRIPT,
    LOGGER_NAME,
)

logger = logging.getLogger(LOGGER_NAME)


# Base Models
class AgentEvent(BaseModel):
    """Base model for all events received from the agent."""

    type: str = Field(..., description="Event type identifier")


# Inbound payloads
class ConversationMetadata(BaseModel):
    conversation_id: str = Field(..., description="Identifier of the new conversation")
    agent_output_audio_format: Optional[str] = Field(
        None, description="Format of agent audio, e.g. pcm_16000"
    )
    user_input_audio_format: Optional[str] = Field(
        None, description="Format the agent expects for user audio"
    )


class UserTranscription(BaseModel):
    user_transcript: str


class AgentResponsePayload(BaseModel):
    agent_response: str


class AudioPayload(BaseModel):
    audio_base_64: str = Field(..., description="Base64 PCM16 little-endian audio")
    event_id: int

    @field_validator("audio_base_64")
    def validate_audio(cls, v):
        """Reject empty audio payloads."""
        if not v:
            raise ValueError("audio_base_64 cannot be empty")
        return v


class InterruptionPayload(BaseModel):
    event_id: Optional[int] = Field(
        None, description="Audio with a lower event_id belongs to the interrupted turn"
    )
    reason: Optional[str] = None


class PingPayload(BaseModel):
    event_id: int
    ping_ms: Optional[int] = None


# Inbound events
class ConversationMetadataEvent(AgentEvent):
    """Model for the conversation_initiation_metadata event."""

    type: Literal["conversation_initiation_metadata"]
    conversation_initiation_metadata_event: ConversationMetadata


class UserTranscriptEvent(AgentEvent):
    """Model for the user_transcript event."""

    type: Literal["user_transcript"]
    user_transcription_event: UserTranscription


class AgentResponseEvent(AgentEvent):
    """Model for the agent_response event."""

    type: Literal["agent_response"]
    agent_response_event: AgentResponsePayload


class AudioResponseEvent(AgentEvent):
    """Model for the audio event carrying a chunk of agent speech."""

    type: Literal["audio"]
    audio_event: Optional[AudioPayload] = None


class InterruptionEvent(AgentEvent):
    """Model for the interruption event (the user barged in)."""

    type: Literal["interruption"]
    interruption_event: InterruptionPayload


class PingEvent(AgentEvent):
    """Model for the ping event; the client must answer with a pong."""

    type: Literal["ping"]
    ping_event: PingPayload


# Outbound messages
class ClientInitiationMessage(BaseModel):
    """Model for conversation_initiation_client_data sent right after connecting."""

    type: Literal["conversation_initiation_client_data"] = "conversation_initiation_client_data"
    dynamic_variables: Dict[str, Any] = Field(default_factory=dict)


class PongMessage(BaseModel):
    """Model for the pong reply to a ping event."""

    type: Literal["pong"] = "pong"
    event_id: int


class UserAudioChunkMessage(BaseModel):
    """Model for a chunk of microphone audio (base64 PCM16)."""

    user_audio_chunk: str


class UserTextMessage(BaseModel):
    """Model for a typed user message."""

    type: Literal["user_message"] = "user_message"
    text: str

    @field_validator("text")
    def validate_text(cls, v):
        """Validate that the message is not blank."""
        if not v.strip():
            raise ValueError("User message cannot be empty")
        return v


EVENT_MODELS: Dict[str, Type[AgentEvent]] = {
    EVENT_TYPE_CONVERSATION_METADATA: ConversationMetadataEvent,
    EVENT_TYPE_USER_TRANSCRIPT: UserTranscriptEvent,
    EVENT_TYPE_AGENT_RESPONSE: AgentResponseEvent,
    EVENT_TYPE_AUDIO: AudioResponseEvent,
    EVENT_TYPE_INTERRUPTION: InterruptionEvent,
    EVENT_TYPE_PING: PingEvent,
}


def parse_agent_event(data: Dict[str, Any]) -> Optional[AgentEvent]:
    """
    Validate a decoded agent event against its model.

    Args:
        data: The decoded JSON event

    Returns:
        The typed event, or None if the type is unknown or the payload is invalid
    """
    event_type = data.get("type", "")
    model = EVENT_MODELS.get(event_type)
    if model is None:
        logger.debug(f"Ignoring agent event of type: {event_type or 'unknown'}")
        return None

    try:
        return model(**data)
    except ValidationError as e:
        logger.warning(f"Invalid {event_type} event: {e}")
        return None
