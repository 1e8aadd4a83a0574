import asyncio
from unittest.mock import patch

import numpy as np
import pytest

pytest.importorskip("pyaudio")

from voicebot.audio import device  # noqa: E402
from voicebot.models.audio import PcmAudioBuffer  # noqa: E402


@pytest.fixture
def output():
    with patch.object(device.pyaudio, "PyAudio"):
        out = device.PyAudioOutput()
    yield out
    out.close()


def test_output_callback_is_short(output):
    # Bounds the silence between consecutive buffers
    assert output.frames_per_buffer / output.sample_rate <= 0.016


def test_idle_callback_plays_silence(output):
    data, flag = output._callback(None, 64, None, 0)

    assert flag == device.pyaudio.paContinue
    assert not np.frombuffer(data, dtype=np.float32).any()


@pytest.mark.asyncio
async def test_callback_reads_unit_and_signals_completion(output):
    samples = np.full(100, 0.25, dtype=np.float32)
    unit = output.create_playback_unit(PcmAudioBuffer(samples))
    ended = asyncio.Event()
    unit.on_ended = ended.set
    unit.start(0)

    data, _ = output._callback(None, 128, None, 0)
    played = np.frombuffer(data, dtype=np.float32)

    assert np.all(played[:100] == 0.25)
    assert not played[100:].any()
    await asyncio.wait_for(ended.wait(), timeout=1.0)
    assert unit.position == 100
    assert output._active is None


@pytest.mark.asyncio
async def test_stopped_unit_is_released(output):
    unit = output.create_playback_unit(PcmAudioBuffer(np.ones(1000, dtype=np.float32)))
    unit.start(0)
    unit.stop()

    data, _ = output._callback(None, 64, None, 0)
    assert not np.frombuffer(data, dtype=np.float32).any()
