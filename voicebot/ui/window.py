"""
tkinter front-end for the voice chatbot.

The window shows the particle avatar, the connection status, start/stop buttons,
a text box for typed messages and the conversation transcript. The asyncio event
loop that owns the session, the playback pipeline and the animation loop runs on
a background thread; the window only schedules coroutines on it and redraws the
avatar from the positions the animation loop publishes.
"""

import asyncio
import logging
import threading
import tkinter as tk
from tkinter import scrolledtext, ttk

from voicebot.config.constants import LOGGER_NAME
from voicebot.session import UIState, VoiceSession
from voicebot.visual.particles import AnimationLoop, ParticleAvatar

logger = logging.getLogger(LOGGER_NAME)

CANVAS_WIDTH = 700
CANVAS_HEIGHT = 500
REDRAW_INTERVAL_MS = 33
PARTICLE_COLOR = "#00bfff"
WAITING_TEXT = "Waiting for connection..."

STATUS_TEXT = {
    UIState.IDLE: "Disconnected",
    UIState.CONNECTING: "Connecting...",
    UIState.STREAMING: "Streaming...",
    UIState.ERROR: "Error!",
}


class VoiceChatbotWindow:
    def __init__(self, root: tk.Tk, session: VoiceSession, avatar: ParticleAvatar,
                 animation: AnimationLoop, loop: asyncio.AbstractEventLoop):
        self.root = root
        self.session = session
        self.avatar = avatar
        self.animation = animation
        self.loop = loop

        self.session.on_state = lambda state: self.root.after(0, self.set_ui_state, state)
        self.session.on_message = lambda text, source: self.root.after(0, self.log_message, text, source)

        self.root.title("Voice Chatbot")
        self.root.geometry("1100x620")

        # Avatar
        self.canvas = tk.Canvas(self.root, width=CANVAS_WIDTH, height=CANVAS_HEIGHT,
                                bg="black", highlightthickness=0)
        self.canvas.pack(side=tk.LEFT, padx=10, pady=10, fill=tk.BOTH, expand=True)

        panel = ttk.Frame(self.root)
        panel.pack(side=tk.RIGHT, padx=10, pady=10, fill=tk.Y)

        ttk.Label(panel, text="Voice Chatbot", font=("TkDefaultFont", 16, "bold")).pack(pady=5)
        ttk.Label(panel, text="Use your voice or type a message.").pack(pady=(0, 10))

        self.status_label = ttk.Label(panel, text=STATUS_TEXT[UIState.IDLE])
        self.status_label.pack(pady=5)

        buttons = ttk.Frame(panel)
        buttons.pack(pady=10)
        self.start_button = ttk.Button(buttons, text="Start Voice", command=self.start_streaming)
        self.start_button.pack(side=tk.LEFT, padx=5)
        self.stop_button = ttk.Button(buttons, text="Stop Voice", command=self.stop_streaming,
                                      state=tk.DISABLED)
        self.stop_button.pack(side=tk.LEFT, padx=5)

        entry_row = ttk.Frame(panel)
        entry_row.pack(fill=tk.X, pady=5)
        self.text_input = ttk.Entry(entry_row)
        self.text_input.pack(side=tk.LEFT, fill=tk.X, expand=True)
        self.text_input.bind("<Return>", lambda event: self.send_text_message())
        self.send_button = ttk.Button(entry_row, text=">", width=3, command=self.send_text_message)
        self.send_button.pack(side=tk.LEFT, padx=(5, 0))

        ttk.Label(panel, text="Conversation").pack(anchor=tk.W, pady=(10, 0))
        self.transcript = scrolledtext.ScrolledText(panel, wrap=tk.WORD, height=18, width=40)
        self.transcript.pack(fill=tk.BOTH, expand=True)
        self.transcript.insert(tk.END, WAITING_TEXT)
        self._waiting = True

        self.set_ui_state(UIState.IDLE)
        self.root.protocol("WM_DELETE_WINDOW", self.close)
        self.redraw()

    def set_ui_state(self, state: UIState) -> None:
        streaming = state == UIState.STREAMING
        idle = state in (UIState.IDLE, UIState.ERROR)
        self.start_button.config(state=tk.NORMAL if idle else tk.DISABLED)
        self.stop_button.config(state=tk.NORMAL if streaming else tk.DISABLED)
        self.send_button.config(state=tk.NORMAL if streaming else tk.DISABLED)
        self.text_input.config(state=tk.NORMAL if streaming else tk.DISABLED)
        self.status_label.config(
            text=STATUS_TEXT[state],
            foreground="red" if state == UIState.ERROR else "",
        )

    def log_message(self, message: str, source: str = "system") -> None:
        if self._waiting:
            self.transcript.delete("1.0", tk.END)
            self._waiting = False

        prefix = {"user": "You: ", "ai": "Agent: ", "agent": "Agent: "}.get(source, "")
        self.transcript.insert(tk.END, f"{prefix}{message}\n")
        self.transcript.see(tk.END)

    def _submit(self, coro):
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def start_streaming(self) -> None:
        self._submit(self.session.start())

    def stop_streaming(self) -> None:
        self._submit(self.session.stop())

    def send_text_message(self) -> None:
        message = self.text_input.get().strip()
        if not message:
            return
        self._submit(self.session.send_text(message))
        self.text_input.delete(0, tk.END)

    def redraw(self) -> None:
        width = self.canvas.winfo_width() or CANVAS_WIDTH
        height = self.canvas.winfo_height() or CANVAS_HEIGHT
        points = self.avatar.project(width, height)

        self.canvas.delete("particle")
        for x, y in points:
            self.canvas.create_rectangle(x, y, x + 1, y + 1, outline=PARTICLE_COLOR,
                                         tags="particle")
        self.root.after(REDRAW_INTERVAL_MS, self.redraw)

    def close(self) -> None:
        self.animation.stop()
        future = self._submit(self.session.stop())
        try:
            future.result(timeout=5)
        except Exception as e:
            logger.warning(f"Error while ending session: {e}")
        self.loop.call_soon_threadsafe(self.loop.stop)
        self.root.destroy()


def run_window(session: VoiceSession, avatar: ParticleAvatar, animation: AnimationLoop) -> None:
    """Run the window on this thread and the asyncio loop on a background thread."""
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    asyncio.run_coroutine_threadsafe(animation.run(), loop)

    root = tk.Tk()
    VoiceChatbotWindow(root, session, avatar, animation, loop)
    root.mainloop()
