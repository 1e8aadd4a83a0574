"""
Decoding of agent audio payloads.

The agent streams speech as base64-encoded little-endian 16-bit signed PCM, mono,
at 16 kHz. decode_pcm16_base64 turns one payload into a PcmAudioBuffer of
len(payload_bytes) / 2 float samples, each sample s mapped to s / 32768.0.
"""

import base64
import binascii

import numpy as np

from voicebot.config.constants import PCM16_SCALE, SAMPLE_RATE, SAMPLE_WIDTH
from voicebot.models.audio import PcmAudioBuffer


class AudioDecodeError(ValueError):
    """Raised when an agent audio payload cannot be decoded."""


def pcm16le_to_float32(pcm_bytes: bytes) -> np.ndarray:
    """
    Convert PCM16 little-endian mono bytes to float32 in [-1.0, 1.0).

    Raises:
        AudioDecodeError: If the byte count is not a whole number of samples
    """
    if len(pcm_bytes) % SAMPLE_WIDTH != 0:
        raise AudioDecodeError(
            f"PCM16 payload has odd length ({len(pcm_bytes)} bytes)"
        )

    audio_i16 = np.frombuffer(pcm_bytes, dtype="<i2")
    return audio_i16.astype(np.float32) / PCM16_SCALE


def decode_pcm16_base64(payload: str, sample_rate: int = SAMPLE_RATE) -> PcmAudioBuffer:
    """
    Decode a base64 PCM16 payload into a PcmAudioBuffer.

    Whitespace inside the payload is ignored and missing "=" padding is restored,
    matching what browser atob() accepts. Any other non-alphabet character is
    rejected.

    Args:
        payload: Base64 text as emitted by the agent
        sample_rate: Sample rate of the payload

    Returns:
        The decoded buffer

    Raises:
        AudioDecodeError: On malformed base64, truncated samples or an empty payload
    """
    if not isinstance(payload, str):
        raise AudioDecodeError(f"Audio payload must be text, got {type(payload).__name__}")

    payload = "".join(payload.split())
    payload += "=" * (-len(payload) % 4)
    try:
        pcm_bytes = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise AudioDecodeError(f"Malformed base64 audio payload: {e}") from e

    if not pcm_bytes:
        # A zero-length buffer cannot be scheduled for playback
        raise AudioDecodeError("Audio payload is empty")

    return PcmAudioBuffer(pcm16le_to_float32(pcm_bytes), sample_rate)
