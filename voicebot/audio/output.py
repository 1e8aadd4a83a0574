"""
Audio output capability.

The playback pipeline does not talk to a sound device directly. It drives an
AudioOutput, which creates buffers, creates one playback unit per buffer, reports
whether it has been activated and can be resumed asynchronously. A PlaybackUnit
plays a single buffer once and signals natural completion through on_ended,
always on the event loop thread that started it.

Two implementations are provided: SimulatedAudioOutput, which plays against the
event loop clock without any hardware, and PyAudioOutput in voicebot.audio.device.
"""

import asyncio
import logging
from typing import Callable, Optional

import numpy as np

from voicebot.audio.analyser import FrequencyAnalyser
from voicebot.config.constants import (
    LOGGER_NAME,
    OUTPUT_STATE_CLOSED,
    OUTPUT_STATE_RUNNING,
    OUTPUT_STATE_SUSPENDED,
    SAMPLE_RATE,
)
from voicebot.models.audio import PcmAudioBuffer

logger = logging.getLogger(LOGGER_NAME)


class PlaybackUnit:
    """
    Plays one PcmAudioBuffer exactly once.

    Subclasses implement start(), stop() and position. A unit may be started once;
    stopping a unit that was never started raises RuntimeError.
    """

    def __init__(self, buffer: PcmAudioBuffer):
        self.buffer = buffer
        self.on_ended: Optional[Callable[[], None]] = None
        self.started = False
        self.stopped = False
        self.ended = False
        self._analyser: Optional[FrequencyAnalyser] = None

    def connect(self, analyser: FrequencyAnalyser) -> None:
        self._analyser = analyser
        analyser.attach(self)

    def disconnect(self) -> None:
        if self._analyser is not None:
            self._analyser.detach(self)
            self._analyser = None

    @property
    def connected(self) -> bool:
        return self._analyser is not None

    def start(self, when: float = 0.0) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError

    @property
    def position(self) -> int:
        """Index of the next sample to be played."""
        raise NotImplementedError

    def window(self, size: int) -> np.ndarray:
        """The last `size` samples played, zero-padded at the start of the buffer."""
        end = min(self.position, len(self.buffer))
        start = max(0, end - size)
        chunk = self.buffer.samples[start:end]
        if len(chunk) < size:
            chunk = np.concatenate([np.zeros(size - len(chunk), dtype=np.float32), chunk])
        return chunk

    def _check_startable(self) -> None:
        if self.started:
            raise RuntimeError("Playback unit can only be started once")

    def _check_stoppable(self) -> None:
        if not self.started:
            raise RuntimeError("Playback unit stopped before it was started")

    def _complete(self) -> None:
        """Deliver the natural completion signal."""
        if self.ended or self.stopped:
            return
        self.ended = True
        if self.on_ended is not None:
            self.on_ended()


class AudioOutput:
    """
    Base class of the audio output capability.

    Outputs start suspended, mirroring browser audio contexts that only become
    audible after a user gesture; resume() activates them.
    """

    def __init__(self, analyser: Optional[FrequencyAnalyser] = None,
                 sample_rate: int = SAMPLE_RATE):
        self.analyser = analyser or FrequencyAnalyser()
        self.sample_rate = sample_rate
        self.state = OUTPUT_STATE_SUSPENDED

    def create_buffer(self, samples: np.ndarray, sample_rate: Optional[int] = None) -> PcmAudioBuffer:
        return PcmAudioBuffer(samples, sample_rate or self.sample_rate)

    def create_playback_unit(self, buffer: PcmAudioBuffer) -> PlaybackUnit:
        raise NotImplementedError

    async def resume(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        self.state = OUTPUT_STATE_CLOSED


class SimulatedPlaybackUnit(PlaybackUnit):
    """Plays a buffer against the event loop clock."""

    def __init__(self, buffer: PcmAudioBuffer):
        super().__init__(buffer)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._started_at = 0.0
        self._stopped_at: Optional[float] = None
        self._handle: Optional[asyncio.TimerHandle] = None

    def start(self, when: float = 0.0) -> None:
        self._check_startable()
        self._loop = asyncio.get_running_loop()
        self._started_at = self._loop.time() + max(0.0, when)
        self._handle = self._loop.call_later(
            max(0.0, when) + self.buffer.duration, self._complete
        )
        self.started = True

    def stop(self) -> None:
        self._check_stoppable()
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._stopped_at is None:
            self._stopped_at = self._loop.time()
        self.stopped = True

    @property
    def position(self) -> int:
        if not self.started:
            return 0
        if self.ended:
            return len(self.buffer)
        now = self._stopped_at if self._stopped_at is not None else self._loop.time()
        elapsed = max(0.0, now - self._started_at)
        return min(int(elapsed * self.buffer.sample_rate), len(self.buffer))


class SimulatedAudioOutput(AudioOutput):
    """
    Device-free output capability.

    Buffers "play" for their real duration and then complete, which keeps the
    queue timing and the frequency snapshots realistic in headless runs.
    """

    def __init__(self, analyser: Optional[FrequencyAnalyser] = None,
                 sample_rate: int = SAMPLE_RATE, start_suspended: bool = True):
        super().__init__(analyser, sample_rate)
        if not start_suspended:
            self.state = OUTPUT_STATE_RUNNING

    def create_playback_unit(self, buffer: PcmAudioBuffer) -> PlaybackUnit:
        if self.state == OUTPUT_STATE_CLOSED:
            raise RuntimeError("Audio output is closed")
        return SimulatedPlaybackUnit(buffer)

    async def resume(self) -> None:
        if self.state == OUTPUT_STATE_CLOSED:
            raise RuntimeError("Cannot resume a closed audio output")
        await asyncio.sleep(0)
        self.state = OUTPUT_STATE_RUNNING
        logger.debug("Simulated audio output running")
