"""
Services module for external API integrations in the voice chatbot.

Key components:
- credentials: ElevenLabsCredentials, used by the credential server to exchange its
  API key for short-lived signed URLs and conversation tokens, plus the client-side
  helpers that fetch those credentials from the server.
- conversation_client: ConversationClient, the WebSocket event layer between the
  voice client and the hosted conversational agent.

Usage examples:
```python
from voicebot.services.conversation_client import ConversationClient
from voicebot.services.credentials import fetch_signed_url

client = ConversationClient(fetch_signed_url("http://localhost:3000"))
client.on("on_audio", pipeline.submit)
if await client.connect():
    await client.send_user_message("Hello!")
```
"""
