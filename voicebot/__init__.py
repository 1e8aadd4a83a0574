"""
Voice Chatbot - talk to a hosted conversational agent through a reactive particle avatar

The application has two halves:

- A credential server (FastAPI) that exchanges the ElevenLabs API key for
  short-lived conversation credentials, so the key never reaches the client.
- A voice client that streams microphone audio to the agent, plays the agent's
  speech strictly in order, and animates a particle avatar from the frequency
  content of that speech.

Key Components:
- audio: Agent audio decoding, the playback pipeline, frequency analysis and the
  audio output capability (PyAudio device or simulated)
- config: Application-wide constants and logging setup
- models: The decoded audio buffer and the agent protocol models
- services: Credential issuance and the conversational agent WebSocket client
- session: Glue between agent events, playback and the microphone
- visual: The particle avatar and its animation loop
- ui: tkinter front-end
- main: The FastAPI credential server

Getting Started:
1. Set up environment variables (or a .env file):
   - ELEVENLABS_API_KEY: Your ElevenLabs API key
   - ELEVENLABS_AGENT_ID: The conversational agent to talk to
   - PORT: Port of the credential server (default 3000)
   - LOG_LEVEL: Logging level (default INFO)

2. Start the credential server:
   ```bash
   python run.py
   ```

3. Start the voice client:
   ```bash
   python -m voicebot.client            # window
   python -m voicebot.client --headless # terminal only
   ```
"""
