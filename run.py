"""
Run script for starting the voice chatbot credential server.

Usage:
    python run.py [--port PORT] [--host HOST] [--log-level LEVEL]
"""

import argparse
import os
import sys

import uvicorn

from voicebot.config.constants import DEFAULT_SERVER_PORT
from voicebot.config.logging_config import configure_logging


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Start the voice chatbot credential server"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", str(DEFAULT_SERVER_PORT))),
        help=f"Port to run the server on (default: {DEFAULT_SERVER_PORT} or PORT env var)",
    )
    parser.add_argument(
        "--host",
        default=os.getenv("HOST", "0.0.0.0"),
        help="Host to bind the server to (default: 0.0.0.0 or HOST env var)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO or LOG_LEVEL env var)",
    )
    return parser.parse_args()


def main():
    """Main entry point for starting the server."""
    args = parse_args()

    # Importing the app also loads the .env file
    from voicebot.main import credentials

    logger = configure_logging(args.log_level)

    if not credentials.configured:
        logger.error("ELEVENLABS_API_KEY and ELEVENLABS_AGENT_ID must be set")
        print("Error: ELEVENLABS_API_KEY and ELEVENLABS_AGENT_ID are required")
        print("Set them in the environment or in a .env file")
        sys.exit(1)

    logger.info(f"Starting server on http://{args.host}:{args.port}")
    logger.info(f"Log level: {args.log_level}")

    uvicorn.run(
        "voicebot.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        http="h11",
        access_log=False,
        reload=os.getenv("ENV", "production").lower() == "development",
    )


if __name__ == "__main__":
    main()
