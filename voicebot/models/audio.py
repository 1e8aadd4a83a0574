"""
Decoded agent audio.

A PcmAudioBuffer holds one decoded chunk of agent speech: mono float32 samples
in [-1.0, 1.0] at a fixed sample rate. Buffers are owned by the playback queue
until they are handed to a playback unit, and are discarded once that unit ends.
"""

import numpy as np

from voicebot.config.constants import SAMPLE_RATE


class PcmAudioBuffer:
    """A mono sequence of normalized float samples at a fixed sample rate."""

    def __init__(self, samples: np.ndarray, sample_rate: int = SAMPLE_RATE):
        if samples.ndim != 1:
            raise ValueError("PcmAudioBuffer holds mono audio only")
        if sample_rate <= 0:
            raise ValueError("sample_rate must be > 0")
        self.samples = samples.astype(np.float32, copy=False)
        self.sample_rate = sample_rate

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def duration(self) -> float:
        """Playback length in seconds."""
        return len(self.samples) / self.sample_rate

    def __repr__(self) -> str:
        return f"PcmAudioBuffer(samples={len(self)}, sample_rate={self.sample_rate})"
