"""
Frequency analysis of the audio currently being played.

FrequencyAnalyser follows the behaviour of a browser AnalyserNode: a Blackman
windowed FFT over the most recent fft_size samples of the connected source,
smoothed over time and mapped from decibels onto byte intensities [0, 255].
With no source connected the snapshot is all zeros.
"""

import logging
import threading
from typing import Optional

import numpy as np

from voicebot.config.constants import (
    FFT_SIZE,
    LOGGER_NAME,
    MAX_DECIBELS,
    MIN_DECIBELS,
    SMOOTHING_TIME_CONSTANT,
)

logger = logging.getLogger(LOGGER_NAME)


class FrequencyAnalyser:
    """
    Produces Frequency Snapshots for the renderer.

    A playback unit connects itself with attach() when it is bound to the analyser
    and detaches on disconnect. get_byte_frequency_data() pulls the unit's current
    time-domain window on demand, so each call yields one fresh snapshot.
    """

    def __init__(
        self,
        fft_size: int = FFT_SIZE,
        smoothing_time_constant: float = SMOOTHING_TIME_CONSTANT,
        min_decibels: float = MIN_DECIBELS,
        max_decibels: float = MAX_DECIBELS,
    ):
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError("fft_size must be a power of two >= 32")
        if not 0.0 <= smoothing_time_constant <= 1.0:
            raise ValueError("smoothing_time_constant must be within [0, 1]")
        if min_decibels >= max_decibels:
            raise ValueError("min_decibels must be lower than max_decibels")

        self.fft_size = fft_size
        self.smoothing_time_constant = smoothing_time_constant
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels

        self._window = np.blackman(fft_size).astype(np.float32)
        self._smoothed = np.zeros(self.frequency_bin_count, dtype=np.float64)
        self._source = None
        self._lock = threading.Lock()

    @property
    def frequency_bin_count(self) -> int:
        return self.fft_size // 2

    @property
    def source(self):
        return self._source

    def attach(self, source) -> None:
        """Connect a playback unit as the analysed source."""
        with self._lock:
            if self._source is not None and self._source is not source:
                logger.debug("Analyser source replaced while another unit was connected")
            self._source = source

    def detach(self, source) -> None:
        """Disconnect a playback unit; a unit that is not attached is ignored."""
        with self._lock:
            if self._source is source:
                self._source = None
                self._smoothed.fill(0.0)

    def silence(self) -> np.ndarray:
        return np.zeros(self.frequency_bin_count, dtype=np.uint8)

    def get_byte_frequency_data(self) -> np.ndarray:
        """
        Compute the current Frequency Snapshot.

        Returns:
            np.ndarray: frequency_bin_count uint8 intensities in [0, 255]
        """
        with self._lock:
            source = self._source
            if source is None:
                return self.silence()
            samples = source.window(self.fft_size)
            return self._analyse(samples)

    def _analyse(self, samples: np.ndarray) -> np.ndarray:
        spectrum = np.fft.rfft(samples * self._window)[: self.frequency_bin_count]
        magnitude = np.abs(spectrum) / self.fft_size

        tau = self.smoothing_time_constant
        self._smoothed = tau * self._smoothed + (1.0 - tau) * magnitude

        with np.errstate(divide="ignore"):
            decibels = 20.0 * np.log10(self._smoothed)

        scale = 255.0 / (self.max_decibels - self.min_decibels)
        scaled = np.floor(scale * (decibels - self.min_decibels))
        return np.clip(scaled, 0, 255).astype(np.uint8)

    def __repr__(self) -> str:
        return (
            f"FrequencyAnalyser(fft_size={self.fft_size}, "
            f"bins={self.frequency_bin_count}, connected={self._source is not None})"
        )
