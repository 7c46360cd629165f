"""
Server-side speech recognition over a Whisper HTTP endpoint.

Voice clients stream short audio segments (one utterance each) to the API;
each segment is transcribed and surfaced through the same event hooks a
platform recognizer would use, as a final result.
"""

import logging
from typing import Callable

import httpx

from hyrily.models.transcript import RecognitionErrorCode, RecognitionResult

logger = logging.getLogger(__name__)


class WhisperApiRecognizer:
    """
    SpeechRecognizer backed by a Whisper transcription API.

    The recognizer is "running" between start() and stop(); segments pushed
    while stopped are dropped. HTTP failures are reported as `network`
    errors so the capture engine treats them as transient.
    """

    def __init__(
        self,
        api_url: str,
        language: str = "en",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url
        self.language = language
        self.client = httpx.AsyncClient(timeout=60.0, transport=transport)

        self.on_start: Callable[[], None] | None = None
        self.on_result: Callable[[list[RecognitionResult], int], None] | None = None
        self.on_error: Callable[[str], None] | None = None
        self.on_end: Callable[[], None] | None = None

        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    def start(self) -> None:
        self._active = True
        if self.on_start:
            self.on_start()

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        if self.on_end:
            self.on_end()

    async def close(self):
        """Clean up resources."""
        self._active = False
        await self.client.aclose()

    async def transcribe_segment(self, audio_data: bytes) -> str | None:
        """
        Transcribe one audio segment and emit it as a final result.

        Args:
            audio_data: WAV audio bytes

        Returns:
            The transcribed text, or None if nothing was recognized
        """
        if not self._active:
            logger.debug("Dropping audio segment, recognizer is not running")
            return None

        try:
            files = {
                "file": ("audio.wav", audio_data, "audio/wav"),
            }
            data = {
                "language": self.language,
            }

            response = await self.client.post(self.api_url, files=files, data=data)
            response.raise_for_status()

            text = response.json().get("text", "").strip()

        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Whisper API error: {e}")
            if self.on_error:
                self.on_error(RecognitionErrorCode.NETWORK.value)
            return None

        # stop() may have been called while the request was in flight
        if not text or not self._active:
            return None

        if self.on_result:
            self.on_result([RecognitionResult(transcript=text, is_final=True)], 0)
        return text
