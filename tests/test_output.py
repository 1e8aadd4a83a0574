import asyncio

import numpy as np
import pytest

from voicebot.audio.analyser import FrequencyAnalyser
from voicebot.audio.output import SimulatedAudioOutput, SimulatedPlaybackUnit
from voicebot.config.constants import (
    OUTPUT_STATE_CLOSED,
    OUTPUT_STATE_RUNNING,
    OUTPUT_STATE_SUSPENDED,
)
from voicebot.models.audio import PcmAudioBuffer


def make_buffer(n=160):
    return PcmAudioBuffer(np.arange(n, dtype=np.float32) / n)


def test_output_starts_suspended():
    output = SimulatedAudioOutput()
    assert output.state == OUTPUT_STATE_SUSPENDED
    assert isinstance(output.analyser, FrequencyAnalyser)


def test_output_can_start_running():
    assert SimulatedAudioOutput(start_suspended=False).state == OUTPUT_STATE_RUNNING


def test_create_buffer_uses_output_rate():
    output = SimulatedAudioOutput(sample_rate=24000)
    buffer = output.create_buffer(np.zeros(240, dtype=np.float32))
    assert buffer.sample_rate == 24000
    assert buffer.duration == pytest.approx(0.01)


@pytest.mark.asyncio
async def test_resume():
    output = SimulatedAudioOutput()
    await output.resume()
    assert output.state == OUTPUT_STATE_RUNNING


@pytest.mark.asyncio
async def test_closed_output_rejects_resume_and_units():
    output = SimulatedAudioOutput()
    output.close()
    assert output.state == OUTPUT_STATE_CLOSED

    with pytest.raises(RuntimeError):
        await output.resume()
    with pytest.raises(RuntimeError):
        output.create_playback_unit(make_buffer())


@pytest.mark.asyncio
async def test_unit_completes_after_its_duration():
    unit = SimulatedPlaybackUnit(make_buffer())
    ended = asyncio.Event()
    unit.on_ended = ended.set

    unit.start(0)
    assert unit.started
    await asyncio.wait_for(ended.wait(), timeout=1.0)

    assert unit.ended
    assert unit.position == len(unit.buffer)


@pytest.mark.asyncio
async def test_stopped_unit_never_signals_completion():
    unit = SimulatedPlaybackUnit(make_buffer())
    calls = []
    unit.on_ended = lambda: calls.append(1)

    unit.start(0)
    unit.stop()
    await asyncio.sleep(0.05)

    assert calls == []
    assert unit.stopped
    assert not unit.ended


@pytest.mark.asyncio
async def test_unit_starts_only_once():
    unit = SimulatedPlaybackUnit(make_buffer())
    unit.start(0)
    with pytest.raises(RuntimeError):
        unit.start(0)
    unit.stop()


def test_stop_before_start_raises():
    with pytest.raises(RuntimeError):
        SimulatedPlaybackUnit(make_buffer()).stop()


def test_window_is_zero_padded():
    unit = SimulatedPlaybackUnit(make_buffer())
    assert unit.position == 0
    window = unit.window(16)
    assert len(window) == 16
    assert not window.any()


def test_connect_attaches_analyser():
    analyser = FrequencyAnalyser()
    unit = SimulatedPlaybackUnit(make_buffer())

    unit.connect(analyser)
    assert unit.connected
    assert analyser.source is unit

    unit.disconnect()
    assert not unit.connected
    assert analyser.source is None
    # Disconnecting twice is harmless
    unit.disconnect()
