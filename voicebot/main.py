"""
FastAPI credential server for the voice chatbot.

The browser-style voice client never sees the ElevenLabs API key. Before opening a
conversation it asks this server for a short-lived credential, and the server
exchanges its key for one:

- GET /signed_url: signed WebSocket URL for a new conversation
- GET /conversation_token: WebRTC conversation token

Both are returned as plain text.
"""

import os
from pathlib import Path

import dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from voicebot.config.constants import DEFAULT_SERVER_PORT
from voicebot.config.logging_config import configure_logging
from voicebot.services.credentials import CredentialError, ElevenLabsCredentials

# Load environment variables from .env file if it exists
env_path = Path(".") / ".env"
if env_path.exists():
    dotenv.load_dotenv(env_path)

logger = configure_logging()

PORT = int(os.getenv("PORT", str(DEFAULT_SERVER_PORT)))
HOST = os.getenv("HOST", "0.0.0.0")

app = FastAPI(
    title="Voice Chatbot Credential Server",
    description="Issues short-lived ElevenLabs conversation credentials to the voice client",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

credentials = ElevenLabsCredentials.from_env()


def _issue(fetch, what: str) -> str:
    if not credentials.configured:
        logger.error(f"Cannot issue {what}: ElevenLabs credentials are not configured")
        raise HTTPException(status_code=500, detail="Server credentials are not configured")
    try:
        return fetch()
    except CredentialError as e:
        logger.error(f"Cannot issue {what}: {e}")
        raise HTTPException(status_code=502, detail=f"Could not obtain {what}")


@app.get("/signed_url", response_class=PlainTextResponse)
def signed_url():
    """Signed WebSocket URL for a new agent conversation."""
    return _issue(credentials.get_signed_url, "signed URL")


@app.get("/conversation_token", response_class=PlainTextResponse)
def conversation_token():
    """WebRTC conversation token for a new agent conversation."""
    return _issue(credentials.get_conversation_token, "conversation token")


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring system status.

    Returns:
        dict: Status information indicating the server is operational.
    """
    return {
        "status": "healthy",
        "elevenlabs_configured": credentials.configured,
    }


@app.get("/")
async def root():
    """Root endpoint to display basic information about the API."""
    return {
        "name": "Voice Chatbot Credential Server",
        "description": app.description,
        "version": app.version,
        "endpoints": {
            "/signed_url": "Signed WebSocket URL for a new conversation",
            "/conversation_token": "WebRTC conversation token",
            "/health": "Health check endpoint",
        },
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Server is running on http://{HOST}:{PORT}")
    uvicorn.run(app, host=HOST, port=PORT, http="h11")
