"""
Particle avatar driven by the agent's voice.

The avatar is a cloud of particles spread over a sphere. Every animation frame
the renderer samples one Frequency Snapshot, reduces it to a scalar intensity in
[0, 1] and pushes each particle outward by an amount that depends on that
intensity and on the particle's index, while the cloud slowly spins about Y.
"""

import asyncio
import logging
import math
from typing import Callable, Optional

import numpy as np

from voicebot.config.constants import (
    CAMERA_FOV,
    CAMERA_Z,
    FRAME_RATE,
    LOGGER_NAME,
    PARTICLE_COUNT,
    PULSE_GAIN,
    ROTATION_SPEED,
    SPHERE_RADIUS,
)

logger = logging.getLogger(LOGGER_NAME)


def audio_intensity(snapshot: np.ndarray) -> float:
    """Mean band intensity of a Frequency Snapshot, normalized to [0, 1]."""
    if len(snapshot) == 0:
        return 0.0
    return float(np.mean(snapshot)) / 255.0


class ParticleAvatar:
    """Particle positions and rotation for one avatar."""

    def __init__(self, particle_count: int = PARTICLE_COUNT, radius: float = SPHERE_RADIUS,
                 rng: Optional[np.random.Generator] = None):
        rng = rng or np.random.default_rng()
        theta = rng.uniform(-180.0, 180.0, particle_count)
        phi = rng.uniform(-180.0, 180.0, particle_count)

        self.original_positions = np.column_stack([
            radius * np.sin(theta) * np.cos(phi),
            radius * np.sin(theta) * np.sin(phi),
            radius * np.cos(theta),
        ]).astype(np.float32)
        self.positions = self.original_positions.copy()
        self.rotation_y = 0.0
        self.intensity = 0.0

        # Per-particle pulse weight, in [0, 2]
        self._pulse = (1.0 + np.sin(np.arange(particle_count) * 0.1)).astype(np.float32)

    @property
    def particle_count(self) -> int:
        return len(self.original_positions)

    def update(self, intensity: float, elapsed: float) -> None:
        """
        Apply one frame.

        Args:
            intensity: Normalized audio intensity in [0, 1]
            elapsed: Seconds since the animation started
        """
        self.intensity = min(max(intensity, 0.0), 1.0)
        scale = 1.0 + self.intensity * PULSE_GAIN * self._pulse
        # Rebinding keeps readers on other threads on a consistent frame
        self.positions = self.original_positions * scale[:, np.newaxis]
        self.rotation_y = elapsed * ROTATION_SPEED

    def project(self, width: int, height: int, camera_z: float = CAMERA_Z,
                fov: float = CAMERA_FOV) -> np.ndarray:
        """
        Perspective-project the rotated particles onto a width x height viewport.

        Returns:
            np.ndarray: (particle_count, 2) screen coordinates, origin top-left
        """
        positions = self.positions
        cos_y, sin_y = math.cos(self.rotation_y), math.sin(self.rotation_y)
        x = positions[:, 0] * cos_y + positions[:, 2] * sin_y
        y = positions[:, 1]
        z = -positions[:, 0] * sin_y + positions[:, 2] * cos_y

        focal = (height / 2.0) / math.tan(math.radians(fov) / 2.0)
        depth = np.maximum(camera_z - z, 1e-3)
        screen_x = width / 2.0 + x * focal / depth
        screen_y = height / 2.0 - y * focal / depth
        return np.column_stack([screen_x, screen_y])


class AnimationLoop:
    """
    Drives a ParticleAvatar at a fixed frame rate.

    sample is called exactly once per frame and must return the current Frequency
    Snapshot, typically PlaybackPipeline.frequency_snapshot.
    """

    def __init__(self, avatar: ParticleAvatar, sample: Callable[[], np.ndarray],
                 fps: int = FRAME_RATE):
        if fps <= 0:
            raise ValueError("fps must be > 0")
        self.avatar = avatar
        self.sample = sample
        self.fps = fps
        self.frames = 0
        self._running = False

    def tick(self, elapsed: float) -> float:
        """Render one frame and return the intensity used."""
        intensity = audio_intensity(self.sample())
        self.avatar.update(intensity, elapsed)
        self.frames += 1
        return intensity

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        frame_interval = 1.0 / self.fps
        self._running = True
        logger.debug(f"Animation loop started at {self.fps} fps")
        try:
            while self._running:
                self.tick(loop.time() - started)
                await asyncio.sleep(frame_interval)
        finally:
            self._running = False
            logger.debug(f"Animation loop exited after {self.frames} frames")

    def stop(self) -> None:
        self._running = False
