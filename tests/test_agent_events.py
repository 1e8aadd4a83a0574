"""
Tests for the agent protocol models.
"""

import pytest
from pydantic import ValidationError

from voicebot.models.agent_events import (
    AudioResponseEvent,
    ClientInitiationMessage,
    ConversationMetadataEvent,
    InterruptionEvent,
    PingEvent,
    PongMessage,
    UserAudioChunkMessage,
    UserTextMessage,
    parse_agent_event,
)


def test_parse_metadata_event():
    event = parse_agent_event({
        "type": "conversation_initiation_metadata",
        "conversation_initiation_metadata_event": {
            "conversation_id": "conv_123",
            "agent_output_audio_format": "pcm_16000",
        },
    })
    assert isinstance(event, ConversationMetadataEvent)
    assert event.conversation_initiation_metadata_event.conversation_id == "conv_123"


def test_parse_audio_event():
    event = parse_agent_event({
        "type": "audio",
        "audio_event": {"audio_base_64": "AAAA", "event_id": 3},
    })
    assert isinstance(event, AudioResponseEvent)
    assert event.audio_event.audio_base_64 == "AAAA"


def test_audio_event_rejects_empty_audio():
    with pytest.raises(ValidationError):
        AudioResponseEvent(type="audio", audio_event={"audio_base_64": "", "event_id": 1})


def test_parse_interruption_and_ping():
    interruption = parse_agent_event({"type": "interruption", "interruption_event": {"reason": "user"}})
    ping = parse_agent_event({"type": "ping", "ping_event": {"event_id": 9, "ping_ms": 40}})

    assert isinstance(interruption, InterruptionEvent)
    assert isinstance(ping, PingEvent)
    assert ping.ping_event.event_id == 9


def test_unknown_event_type_is_ignored():
    assert parse_agent_event({"type": "vad_score"}) is None
    assert parse_agent_event({}) is None


def test_invalid_event_is_ignored():
    assert parse_agent_event({"type": "ping", "ping_event": {}}) is None


def test_outbound_messages_serialize():
    init = ClientInitiationMessage(dynamic_variables={"username": "Leonardo"})
    assert init.model_dump() == {
        "type": "conversation_initiation_client_data",
        "dynamic_variables": {"username": "Leonardo"},
    }
    assert PongMessage(event_id=4).model_dump() == {"type": "pong", "event_id": 4}
    assert UserAudioChunkMessage(user_audio_chunk="AAAA").model_dump() == {"user_audio_chunk": "AAAA"}


def test_blank_user_message_rejected():
    with pytest.raises(ValidationError):
        UserTextMessage(text="   ")
    assert UserTextMessage(text="hi").type == "user_message"
