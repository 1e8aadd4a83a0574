"""
Buffered playback of agent speech with frequency analysis.

PlaybackPipeline owns the queue of decoded agent audio and plays it strictly in
arrival order, one buffer at a time, through an audio output capability. The
buffer being played is connected to the output's frequency analyser, and the
renderer reads one Frequency Snapshot per animation frame through
frequency_snapshot().

The pipeline is a push-driven state machine with two states, IDLE and PLAYING.
Only two things can advance it: submit() (a new buffer arrives, or readiness was
just signalled through activate()) and the completion callback of the unit that
is currently playing. All methods must be called from the event loop thread;
completion callbacks are delivered there by the output capability.

Nothing in this module raises to its caller: decode failures are logged and the
payload dropped, stop failures are logged and the state forced to IDLE, and a
missing output capability turns every operation into a no-op or deferred queueing.

The queue is unbounded. A producer that outpaces playback grows it without limit;
a warning is logged when the depth reaches QUEUE_DEPTH_WARNING, but nothing is
dropped.
"""

import asyncio
import logging
from collections import deque
from enum import Enum
from typing import Deque, Dict, Optional, Union

import numpy as np

from voicebot.audio.analyser import FrequencyAnalyser
from voicebot.audio.decoder import AudioDecodeError, decode_pcm16_base64
from voicebot.audio.output import AudioOutput, PlaybackUnit
from voicebot.config.constants import (
    LOGGER_NAME,
    OUTPUT_STATE_CLOSED,
    OUTPUT_STATE_RUNNING,
    OUTPUT_STATE_SUSPENDED,
    QUEUE_DEPTH_WARNING,
)
from voicebot.models.audio import PcmAudioBuffer

logger = logging.getLogger(LOGGER_NAME)


class PlaybackState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"


class PlaybackPipeline:
    """
    Sequential, gapless playback of queued agent audio.

    At most one buffer is audible at any time. Buffers may be submitted before the
    output capability is ready; they wait in the queue until activate() completes.
    """

    def __init__(self, output: Optional[AudioOutput] = None,
                 analyser: Optional[FrequencyAnalyser] = None,
                 queue_depth_warning: int = QUEUE_DEPTH_WARNING):
        self.output = output
        if analyser is None and output is not None:
            analyser = output.analyser
        self.analyser = analyser
        self.queue_depth_warning = queue_depth_warning

        self.queue: Deque[PcmAudioBuffer] = deque()
        self.state = PlaybackState.IDLE
        self.ready = False
        self.current_unit: Optional[PlaybackUnit] = None
        self._resume_task: Optional[asyncio.Task] = None

        logger.debug(f"PlaybackPipeline initialized with output: {type(output).__name__}")

    @property
    def queue_length(self) -> int:
        return len(self.queue)

    @property
    def is_playing(self) -> bool:
        return self.state is PlaybackState.PLAYING

    def submit(self, payload: Union[str, PcmAudioBuffer]) -> bool:
        """
        Decode and enqueue one chunk of agent audio.

        Enqueueing happens whether or not the output is ready. When it is ready,
        playback is advanced immediately afterwards.

        Args:
            payload: Base64 PCM16 audio from the agent, or an already decoded buffer

        Returns:
            bool: True if a buffer was enqueued, False if the payload was dropped
        """
        if isinstance(payload, PcmAudioBuffer):
            buffer = payload
        else:
            try:
                buffer = decode_pcm16_base64(payload)
            except AudioDecodeError as e:
                logger.error(f"Error processing PCM audio from base64: {e}")
                return False

        self.queue.append(buffer)
        if len(self.queue) == self.queue_depth_warning:
            logger.warning(
                f"Playback queue reached {len(self.queue)} buffers; "
                "the producer is outpacing playback"
            )

        if self.ready:
            self.advance()
        else:
            logger.debug(
                f"Audio output not ready; queued buffer waits (queue length {len(self.queue)})"
            )
        return True

    def advance(self) -> None:
        """
        Start the next queued buffer if the pipeline is idle and ready.

        A no-op while playing, with an empty queue, without a usable output capability
        or before readiness has been signalled.
        """
        while True:
            if (
                self.state is PlaybackState.PLAYING
                or not self.queue
                or self.output is None
                or self.output.state == OUTPUT_STATE_CLOSED
                or self.analyser is None
                or not self.ready
            ):
                return

            buffer = self.queue.popleft()
            unit = None
            try:
                unit = self.output.create_playback_unit(buffer)
                unit.connect(self.analyser)
                unit.on_ended = lambda unit=unit: self._on_unit_ended(unit)
                self.state = PlaybackState.PLAYING
                self.current_unit = unit
                unit.start(0)
            except Exception as e:
                logger.error(f"Failed to start playback of {buffer!r}: {e}", exc_info=True)
                if unit is not None:
                    unit.disconnect()
                self.current_unit = None
                self.state = PlaybackState.IDLE
                continue

            logger.debug(f"Playing {buffer!r} ({len(self.queue)} queued)")
            return

    def _on_unit_ended(self, unit: PlaybackUnit) -> None:
        """Completion callback: return to IDLE and play the next buffer."""
        if unit is not self.current_unit:
            # A unit cancelled by stop_playback() may still report completion
            logger.debug("Ignoring completion of a unit that is no longer active")
            unit.disconnect()
            return

        self.state = PlaybackState.IDLE
        unit.disconnect()
        self.current_unit = None
        self.advance()

    def stop_playback(self) -> None:
        """
        Stop the current buffer and discard everything queued.

        This is a hard interrupt for barge-in: the state is IDLE afterwards even if
        the underlying stop fails. Safe to call with nothing playing.
        """
        unit = self.current_unit
        if unit is not None:
            try:
                unit.stop()
                unit.disconnect()
                logger.info("Audio playback stopped.")
            except Exception as e:
                logger.warning(f"Error stopping current audio source: {e}")
                unit.disconnect()
            finally:
                self.current_unit = None
                self.state = PlaybackState.IDLE

        dropped = len(self.queue)
        self.queue.clear()
        logger.info(f"Audio queue cleared ({dropped} pending buffers discarded).")

    def activate(self) -> Optional[asyncio.Task]:
        """
        Make sure the output capability is running and set the readiness flag.

        A suspended output is resumed asynchronously; when the resume completes the
        flag is set and queued buffers start playing. A running output sets the
        flag immediately. Redundant calls are harmless, and only one resume is ever
        in flight.

        Returns:
            The pending resume task when one is in flight, otherwise None
        """
        if self.output is None:
            logger.debug("activate() called without an audio output")
            return None

        state = self.output.state
        if state == OUTPUT_STATE_RUNNING:
            self.ready = True
            return None

        if state == OUTPUT_STATE_SUSPENDED:
            if self._resume_task is not None and not self._resume_task.done():
                return self._resume_task
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.warning("Cannot resume audio output outside of a running event loop")
                return None
            self._resume_task = loop.create_task(self._resume())
            return self._resume_task

        logger.warning(f"Audio output is {state}; playback cannot be activated")
        return None

    async def _resume(self) -> None:
        try:
            await self.output.resume()
        except Exception as e:
            logger.error(f"Failed to resume audio output: {e}", exc_info=True)
            return

        logger.info("Audio output resumed.")
        self.ready = True
        self.advance()

    def frequency_snapshot(self) -> np.ndarray:
        """
        Current per-band intensities of the playing buffer.

        Returns:
            np.ndarray: uint8 values in [0, 255], one per analysed band; all zeros
            while nothing is playing
        """
        if self.analyser is None:
            return np.zeros(0, dtype=np.uint8)
        if self.state is not PlaybackState.PLAYING:
            return self.analyser.silence()
        return self.analyser.get_byte_frequency_data()

    def snapshot(self) -> Dict[str, Union[int, bool, str]]:
        """Lightweight view of the pipeline for logging and health reporting."""
        return {
            "state": self.state.value,
            "ready": self.ready,
            "queued": len(self.queue),
            "output_state": self.output.state if self.output is not None else "unavailable",
        }
