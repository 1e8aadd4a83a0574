import base64
import logging

import numpy as np
import pytest

from voicebot.audio.output import AudioOutput, PlaybackUnit
from voicebot.config.constants import LOGGER_NAME, OUTPUT_STATE_RUNNING, OUTPUT_STATE_SUSPENDED


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    # configure_logging() detaches the app logger from root, which hides it from caplog
    app_logger = logging.getLogger(LOGGER_NAME)
    for handler in app_logger.handlers[:]:
        app_logger.removeHandler(handler)
    app_logger.propagate = True
    app_logger.setLevel(logging.NOTSET)
    yield


class FakePlaybackUnit(PlaybackUnit):
    """Playback unit whose completion is triggered by the test."""

    def __init__(self, buffer, output):
        super().__init__(buffer)
        self.output = output
        self.fail_on_stop = False
        self._position = 0

    def start(self, when=0.0):
        self._check_startable()
        self.started = True
        self.output.started.append(self)

    def stop(self):
        if self.fail_on_stop:
            raise RuntimeError("device stop failed")
        self._check_stoppable()
        self.stopped = True

    @property
    def position(self):
        return self._position

    def advance_to(self, position):
        self._position = position

    def finish(self):
        """Simulate natural completion."""
        self._position = len(self.buffer)
        self._complete()


class FakeAudioOutput(AudioOutput):
    """Output capability driven by hand from the tests."""

    def __init__(self, state=OUTPUT_STATE_SUSPENDED):
        super().__init__()
        self.state = state
        self.units = []
        self.started = []
        self.resume_calls = 0
        self.fail_resume = False

    def create_playback_unit(self, buffer):
        unit = FakePlaybackUnit(buffer, self)
        self.units.append(unit)
        return unit

    async def resume(self):
        self.resume_calls += 1
        if self.fail_resume:
            raise RuntimeError("resume rejected")
        self.state = OUTPUT_STATE_RUNNING

    def playing(self):
        """Units that were started and have neither ended nor been stopped."""
        return [u for u in self.started if not u.ended and not u.stopped]


def encode_pcm16(samples):
    """Base64 little-endian PCM16 for a list of int16 sample values."""
    return base64.b64encode(np.asarray(samples, dtype="<i2").tobytes()).decode("utf-8")


@pytest.fixture
def fake_output():
    return FakeAudioOutput()


@pytest.fixture
def running_output():
    return FakeAudioOutput(state=OUTPUT_STATE_RUNNING)


@pytest.fixture
def make_payload():
    """Distinct payloads; the first sample tags the buffer."""
    def _make(tag, length=160):
        samples = [tag] + [0] * (length - 1)
        return encode_pcm16(samples)
    return _make
