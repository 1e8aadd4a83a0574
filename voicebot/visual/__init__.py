"""
Visual module: the particle avatar that reacts to the agent's voice.

Key components:
- particles: ParticleAvatar (positions, pulse and rotation of the particle cloud),
  audio_intensity (Frequency Snapshot to [0, 1]) and AnimationLoop, which samples
  one snapshot per frame and updates the avatar.
"""

from voicebot.visual.particles import AnimationLoop, ParticleAvatar, audio_intensity

__all__ = ["AnimationLoop", "ParticleAvatar", "audio_intensity"]
