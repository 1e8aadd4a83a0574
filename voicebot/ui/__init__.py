"""
User interface for the voice chatbot.

Key components:
- window: VoiceChatbotWindow, a tkinter front-end with the particle avatar, status,
  start/stop controls, text input and transcript, and run_window to launch it.
"""
