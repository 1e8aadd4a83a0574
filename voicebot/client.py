"""
Voice client entry point.

Usage:
    python -m voicebot.client [--server-url URL] [--output device|simulated]
                              [--headless] [--no-mic] [--log-level LEVEL]

By default the client opens the tkinter window. --headless runs the conversation
from the terminal until Ctrl+C, logging the transcript and the avatar intensity.
"""

import argparse
import asyncio
import os
from pathlib import Path

import dotenv

from voicebot.audio.output import SimulatedAudioOutput
from voicebot.audio.playback import PlaybackPipeline
from voicebot.config.logging_config import configure_logging
from voicebot.services.credentials import default_server_url
from voicebot.session import VoiceSession
from voicebot.visual.particles import AnimationLoop, ParticleAvatar

env_path = Path(".") / ".env"
if env_path.exists():
    dotenv.load_dotenv(env_path)

HEADLESS_REPORT_INTERVAL = 1.0  # seconds


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Talk to the voice chatbot agent")
    parser.add_argument(
        "--server-url",
        default=default_server_url(),
        help="Credential server base URL (default: from SERVER_HOST/SERVER_PORT)",
    )
    parser.add_argument(
        "--output",
        default=os.getenv("AUDIO_OUTPUT", "device"),
        choices=["device", "simulated"],
        help="Play agent audio on the sound device or simulate playback",
    )
    parser.add_argument("--headless", action="store_true", help="Run without the window")
    parser.add_argument("--no-mic", action="store_true", help="Do not capture the microphone")
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    return parser.parse_args()


def build_output(kind: str):
    if kind == "simulated":
        return SimulatedAudioOutput()
    from voicebot.audio.device import PyAudioOutput

    return PyAudioOutput()


def build_microphone(enabled: bool):
    if not enabled:
        return None
    from voicebot.audio.device import MicrophoneStream

    return MicrophoneStream()


async def run_headless(session: VoiceSession, animation: AnimationLoop, logger) -> None:
    session.on_message = lambda text, source: logger.info(f"[{source}] {text}")
    animation_task = asyncio.create_task(animation.run())
    try:
        if not await session.start():
            return
        while session.client is not None:
            await asyncio.sleep(HEADLESS_REPORT_INTERVAL)
            logger.debug(
                f"Avatar intensity {animation.avatar.intensity:.3f}, "
                f"pipeline {session.pipeline.snapshot()}"
            )
    finally:
        animation.stop()
        await session.stop()
        await animation_task


def main():
    args = parse_args()
    logger = configure_logging(args.log_level)

    output = build_output(args.output)
    pipeline = PlaybackPipeline(output)
    session = VoiceSession(pipeline, args.server_url, microphone=build_microphone(not args.no_mic))
    avatar = ParticleAvatar()
    animation = AnimationLoop(avatar, pipeline.frequency_snapshot)

    logger.info(f"Using credential server at {args.server_url}")
    try:
        if args.headless:
            asyncio.run(run_headless(session, animation, logger))
        else:
            from voicebot.ui.window import run_window

            run_window(session, avatar, animation)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        output.close()


if __name__ == "__main__":
    main()
