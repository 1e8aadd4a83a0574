"""
PyAudio-backed audio devices.

PyAudioOutput implements the audio output capability on top of a PortAudio
callback stream, and MicrophoneStream captures PCM16 microphone audio for the
agent. PortAudio invokes both callbacks on its own thread; anything that touches
pipeline state is handed back to the asyncio event loop with call_soon_threadsafe.
"""

import asyncio
import logging
from typing import Optional

import numpy as np
import pyaudio

from voicebot.audio.analyser import FrequencyAnalyser
from voicebot.audio.output import AudioOutput, PlaybackUnit
from voicebot.config.constants import (
    CHANNELS,
    LOGGER_NAME,
    MIC_CHUNK,
    OUTPUT_CHUNK,
    OUTPUT_STATE_CLOSED,
    OUTPUT_STATE_RUNNING,
    SAMPLE_RATE,
)
from voicebot.models.audio import PcmAudioBuffer

logger = logging.getLogger(LOGGER_NAME)


class DevicePlaybackUnit(PlaybackUnit):
    """A buffer read out incrementally by the PortAudio callback."""

    def __init__(self, buffer: PcmAudioBuffer, output: "PyAudioOutput"):
        super().__init__(buffer)
        self._output = output
        self._position = 0
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def start(self, when: float = 0.0) -> None:
        self._check_startable()
        self._loop = asyncio.get_running_loop()
        self.started = True
        if when > 0:
            self._loop.call_later(when, self._output._activate_unit, self)
        else:
            self._output._activate_unit(self)

    def stop(self) -> None:
        self._check_stoppable()
        self.stopped = True
        self._output._release_unit(self)

    @property
    def position(self) -> int:
        return self._position

    def read(self, frame_count: int) -> np.ndarray:
        """Return the next frames; called from the PortAudio thread."""
        start = self._position
        chunk = self.buffer.samples[start:start + frame_count]
        self._position = start + len(chunk)
        if self._position >= len(self.buffer) and not self.ended and not self.stopped:
            self._output._release_unit(self)
            self._loop.call_soon_threadsafe(self._complete)
        return chunk


class PyAudioOutput(AudioOutput):
    """
    Output capability playing float32 mono audio through the default device.

    The stream is only opened by resume(), so playback stays suspended until the
    client explicitly activates audio.

    Completion travels through the event loop before the pipeline starts the next
    unit, so the next buffer begins on a later callback. The short default
    frames_per_buffer keeps that silence within one OUTPUT_CHUNK.
    """

    def __init__(self, analyser: Optional[FrequencyAnalyser] = None,
                 sample_rate: int = SAMPLE_RATE, frames_per_buffer: int = OUTPUT_CHUNK):
        super().__init__(analyser, sample_rate)
        self.frames_per_buffer = frames_per_buffer
        self._pa = pyaudio.PyAudio()
        self._stream = None
        self._active: Optional[DevicePlaybackUnit] = None

    def create_playback_unit(self, buffer: PcmAudioBuffer) -> PlaybackUnit:
        if self.state == OUTPUT_STATE_CLOSED:
            raise RuntimeError("Audio output is closed")
        return DevicePlaybackUnit(buffer, self)

    async def resume(self) -> None:
        if self.state == OUTPUT_STATE_CLOSED:
            raise RuntimeError("Cannot resume a closed audio output")
        if self._stream is None:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._open_stream)
        self.state = OUTPUT_STATE_RUNNING

    def _open_stream(self) -> None:
        self._stream = self._pa.open(
            format=pyaudio.paFloat32,
            channels=CHANNELS,
            rate=self.sample_rate,
            output=True,
            frames_per_buffer=self.frames_per_buffer,
            stream_callback=self._callback,
        )
        self._stream.start_stream()
        logger.info(f"Audio output stream opened at {self.sample_rate} Hz")

    def _activate_unit(self, unit: DevicePlaybackUnit) -> None:
        if not unit.stopped:
            self._active = unit

    def _release_unit(self, unit: DevicePlaybackUnit) -> None:
        if self._active is unit:
            self._active = None

    def _callback(self, in_data, frame_count, time_info, status):
        """Fill the device buffer from the active unit, padding with silence."""
        out = np.zeros(frame_count, dtype=np.float32)
        unit = self._active
        if unit is not None:
            chunk = unit.read(frame_count)
            out[:len(chunk)] = chunk
        return (out.tobytes(), pyaudio.paContinue)

    def close(self) -> None:
        if self._stream is not None:
            try:
                self._stream.stop_stream()
                self._stream.close()
            except Exception as e:
                logger.warning(f"Error closing audio output stream: {e}")
            self._stream = None
        self._pa.terminate()
        super().close()


class MicrophoneStream:
    """
    Captures PCM16 mono microphone audio into an asyncio queue.

    Chunks are raw little-endian bytes ready to be base64-encoded for the agent.
    """

    def __init__(self, sample_rate: int = SAMPLE_RATE, frames_per_buffer: int = MIC_CHUNK):
        self.sample_rate = sample_rate
        self.frames_per_buffer = frames_per_buffer
        self.chunks: asyncio.Queue = asyncio.Queue()
        self._pa: Optional[pyaudio.PyAudio] = None
        self._stream = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.running = False

    def start(self) -> None:
        """Open the input stream; must be called from the event loop thread."""
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        self._pa = pyaudio.PyAudio()
        self._stream = self._pa.open(
            format=pyaudio.paInt16,
            channels=CHANNELS,
            rate=self.sample_rate,
            input=True,
            frames_per_buffer=self.frames_per_buffer,
            stream_callback=self._callback,
        )
        self._stream.start_stream()
        self.running = True
        logger.info("Microphone capture started")

    def _callback(self, in_data, frame_count, time_info, status):
        if self.running and self._loop is not None:
            self._loop.call_soon_threadsafe(self.chunks.put_nowait, in_data)
        return (None, pyaudio.paContinue)

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        try:
            self._stream.stop_stream()
            self._stream.close()
        except Exception as e:
            logger.warning(f"Error closing microphone stream: {e}")
        finally:
            self._stream = None
            self._pa.terminate()
            self._pa = None
        logger.info("Microphone capture stopped")
