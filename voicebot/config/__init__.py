"""
Configuration module for the voice chatbot.

This module provides centralized configuration for both halves of the application,
the credential server and the voice client, including constants and logging setup.

Key components:
- constants: Application-wide constants, including the agent audio format
  (16 kHz mono PCM16), frequency analysis parameters, particle avatar settings,
  ElevenLabs endpoints and agent event type names.
- logging_config: Console and rotating-file logging shared by every module.

Usage examples:
```python
from voicebot.config.constants import LOGGER_NAME, SAMPLE_RATE
from voicebot.config.logging_config import configure_logging

logger = configure_logging()
logger.info(f"Agent audio arrives at {SAMPLE_RATE} Hz")
```
"""
