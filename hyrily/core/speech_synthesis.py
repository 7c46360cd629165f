"""
Text-to-speech for the AI interviewer.

The orchestrator only needs "speak this and tell me when you're done".
Synthesis failure or absence never blocks an interview: callers treat both
as immediate completion.
"""

import logging
from typing import Protocol

import edge_tts

logger = logging.getLogger(__name__)


# Map voice names to Edge TTS voices
EDGE_VOICES = {
    "male": "en-US-GuyNeural",
    "female": "en-US-JennyNeural",
    "professional": "en-US-AriaNeural",
    "default": "en-US-JennyNeural",
}


def estimate_speech_seconds(text: str) -> float:
    """Rough spoken duration at 150 words per minute."""
    return len(text.split()) / 150 * 60


class SpeechSynthesizer(Protocol):
    """Callback-free view of a text-to-speech engine."""

    is_supported: bool

    async def speak(self, text: str) -> None:
        """Return once playback of `text` has finished (or failed by raising)."""
        ...

    def cancel(self) -> None:
        """Abort any in-flight synthesis."""
        ...


class NullSynthesizer:
    """Used when no speech synthesis is available; completes immediately."""

    is_supported = False

    async def speak(self, text: str) -> None:
        return None

    def cancel(self) -> None:
        return None


class EdgeTTSSynthesizer:
    """
    Speech synthesis using Edge TTS (Microsoft).

    Rendering happens server-side; the audio of the most recent question is
    kept in `last_audio` for delivery to the client.
    """

    is_supported = True

    def __init__(self, voice: str = "default"):
        self.voice = EDGE_VOICES.get(voice, voice)
        self.last_audio: bytes | None = None
        self.last_duration_seconds: float = 0.0
        self._cancelled = False

    async def speak(self, text: str) -> None:
        self._cancelled = False
        self.last_audio = None

        communicate = edge_tts.Communicate(text, self.voice)

        # Collect audio chunks
        audio_chunks = []
        async for chunk in communicate.stream():
            if self._cancelled:
                logger.info("Speech synthesis cancelled")
                return
            if chunk["type"] == "audio":
                audio_chunks.append(chunk["data"])

        self.last_audio = b"".join(audio_chunks)
        self.last_duration_seconds = estimate_speech_seconds(text)

    def cancel(self) -> None:
        self._cancelled = True
