"""
Audio module for agent speech playback and analysis.

Key components:
- decoder: Turns base64 PCM16 agent payloads into PcmAudioBuffers.
- analyser: FrequencyAnalyser, producing byte-range Frequency Snapshots of the
  audio currently being played.
- output: The audio output capability interface and a device-free
  SimulatedAudioOutput.
- device: PyAudioOutput and MicrophoneStream, backed by PortAudio.
- playback: PlaybackPipeline, the FIFO queue and IDLE/PLAYING state machine that
  plays agent audio strictly in order and feeds the analyser.

Usage examples:
```python
from voicebot.audio import PlaybackPipeline, SimulatedAudioOutput

output = SimulatedAudioOutput()
pipeline = PlaybackPipeline(output)

pipeline.activate()                 # resumes the output asynchronously
pipeline.submit(audio_base64)       # queued, played once the output is running
bands = pipeline.frequency_snapshot()
pipeline.stop_playback()            # barge-in: stop and drop everything queued
```
"""

from voicebot.audio.analyser import FrequencyAnalyser
from voicebot.audio.decoder import AudioDecodeError, decode_pcm16_base64
from voicebot.audio.output import AudioOutput, PlaybackUnit, SimulatedAudioOutput
from voicebot.audio.playback import PlaybackPipeline, PlaybackState

__all__ = [
    "AudioDecodeError",
    "AudioOutput",
    "FrequencyAnalyser",
    "PlaybackPipeline",
    "PlaybackState",
    "PlaybackUnit",
    "SimulatedAudioOutput",
    "decode_pcm16_base64",
]
