"""
Models module for data structures in the voice chatbot.

Key components:
- audio: PcmAudioBuffer, the decoded unit of agent speech held by the playback queue.
- agent_events: Pydantic models for the conversational agent WebSocket protocol,
  both the inbound events (audio, transcripts, interruptions, pings) and the
  outbound client messages (audio chunks, text messages, pongs).

Usage examples:
```python
from voicebot.models.agent_events import parse_agent_event, PongMessage

event = parse_agent_event({"type": "ping", "ping_event": {"event_id": 7}})
pong = PongMessage(event_id=event.ping_event.event_id)
await websocket.send(pong.model_dump_json())
```
"""

from voicebot.models.audio import PcmAudioBuffer
from voicebot.models.agent_events import (
    AgentEvent,
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
