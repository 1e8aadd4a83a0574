import asyncio

import numpy as np
import pytest

from voicebot.visual.particles import AnimationLoop, ParticleAvatar, audio_intensity


@pytest.fixture
def avatar():
    return ParticleAvatar(particle_count=100, rng=np.random.default_rng(7))


def test_audio_intensity():
    assert audio_intensity(np.zeros(128, dtype=np.uint8)) == 0.0
    assert audio_intensity(np.full(128, 255, dtype=np.uint8)) == 1.0
    assert audio_intensity(np.array([], dtype=np.uint8)) == 0.0


def test_particles_lie_on_sphere(avatar):
    radii = np.linalg.norm(avatar.original_positions, axis=1)
    np.testing.assert_allclose(radii, 6.0, rtol=1e-4)
    assert avatar.particle_count == 100


def test_silence_keeps_rest_positions(avatar):
    avatar.update(0.0, elapsed=2.0)
    np.testing.assert_allclose(avatar.positions, avatar.original_positions)
    assert avatar.rotation_y == pytest.approx(0.2)


def test_full_intensity_scales_particles(avatar):
    avatar.update(1.0, elapsed=0.0)

    # Particle 0 has pulse weight 1 + sin(0) = 1
    np.testing.assert_allclose(
        avatar.positions[0], avatar.original_positions[0] * 1.4, rtol=1e-5
    )
    scales = np.linalg.norm(avatar.positions, axis=1) / 6.0
    assert scales.min() >= 1.0 - 1e-4
    assert scales.max() <= 1.8 + 1e-4


def test_intensity_is_clamped(avatar):
    avatar.update(5.0, elapsed=0.0)
    assert avatar.intensity == 1.0
    avatar.update(-1.0, elapsed=0.0)
    assert avatar.intensity == 0.0


def test_project_centres_the_cloud(avatar):
    points = avatar.project(800, 600)
    assert points.shape == (100, 2)
    assert abs(points[:, 0].mean() - 400) < 100
    assert abs(points[:, 1].mean() - 300) < 100


def test_tick_samples_once_per_frame(avatar):
    calls = []

    def sample():
        calls.append(1)
        return np.full(128, 51, dtype=np.uint8)

    loop = AnimationLoop(avatar, sample)
    assert loop.tick(0.5) == pytest.approx(0.2)
    assert loop.tick(1.0) == pytest.approx(0.2)

    assert len(calls) == 2
    assert loop.frames == 2
    assert avatar.intensity == pytest.approx(0.2)


def test_invalid_fps(avatar):
    with pytest.raises(ValueError):
        AnimationLoop(avatar, lambda: np.zeros(128, dtype=np.uint8), fps=0)


@pytest.mark.asyncio
async def test_run_until_stopped(avatar):
    loop = AnimationLoop(avatar, lambda: np.zeros(128, dtype=np.uint8), fps=100)
    task = asyncio.create_task(loop.run())

    await asyncio.sleep(0.05)
    loop.stop()
    await asyncio.wait_for(task, timeout=1.0)

    assert loop.frames > 0
