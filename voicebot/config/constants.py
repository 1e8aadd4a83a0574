"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for configuration values and making it easier to
maintain consistent naming throughout the codebase.
"""

# Logger name used throughout the application
LOGGER_NAME = "voicebot"

# Agent audio format: mono little-endian 16-bit PCM
SAMPLE_RATE = 16000
CHANNELS = 1
SAMPLE_WIDTH = 2
PCM16_SCALE = 32768.0

# Frequency analysis
FFT_SIZE = 256
SMOOTHING_TIME_CONSTANT = 0.8
MIN_DECIBELS = -100.0
MAX_DECIBELS = -30.0

# Queue depth at which a capacity warning is logged (the queue is not capped)
QUEUE_DEPTH_WARNING = 64

# Output capability activation states
OUTPUT_STATE_SUSPENDED = "suspended"
OUTPUT_STATE_RUNNING = "running"
OUTPUT_STATE_CLOSED = "closed"

# Microphone capture
MIC_CHUNK = 1024

# Device output frames per callback; bounds the silence between queued buffers (16 ms)
OUTPUT_CHUNK = 256

# Particle avatar
PARTICLE_COUNT = 2500
SPHERE_RADIUS = 6.0
ROTATION_SPEED = 0.1  # radians per second around Y
PULSE_GAIN = 0.4
CAMERA_Z = 15.0
CAMERA_FOV = 75.0
FRAME_RATE = 60

# ElevenLabs Conversational AI endpoints
ELEVENLABS_API_BASE = "https://api.elevenlabs.io/v1/convai/conversation"
ELEVENLABS_SIGNED_URL_ENDPOINT = f"{ELEVENLABS_API_BASE}/get-signed-url"
ELEVENLABS_TOKEN_ENDPOINT = f"{ELEVENLABS_API_BASE}/token"
DEFAULT_SERVER_PORT = 3000

# Agent event types (inbound)
EVENT_TYPE_CONVERSATION_METADATA = "conversation_initiation_metadata"
EVENT_TYPE_USER_TRANSCRIPT = "user_transcript"
EVENT_TYPE_AGENT_RESPONSE = "agent_response"
EVENT_TYPE_AUDIO = "audio"
EVENT_TYPE_INTERRUPTION = "interruption"
EVENT_TYPE_PING = "ping"

# Conversation modes
MODE_SPEAKING = "speaking"
MODE_LISTENING = "listening"
