"""
Speech Capture Engine - continuous, resilient speech-to-text.

Wraps an event-driven speech recognizer and normalizes its quirks into a
small contract: stable interim/final transcript state, automatic restart
when the recognizer ends on its own, and an explicit error taxonomy instead
of exceptions.
"""

import asyncio
import logging
from typing import Callable, Protocol

from hyrily.models.transcript import (
    ERROR_MESSAGES,
    IGNORED_ERROR_CODES,
    TRANSIENT_ERROR_CODES,
    CaptureError,
    RecognitionErrorCode,
    RecognitionResult,
    TranscriptState,
)

logger = logging.getLogger(__name__)


class SpeechRecognizer(Protocol):
    """
    Platform speech-to-text primitive.

    The engine assigns the four event hooks; the recognizer calls them from
    the event loop thread.
    """

    on_start: Callable[[], None] | None
    on_result: Callable[[list[RecognitionResult], int], None] | None
    on_error: Callable[[str], None] | None
    on_end: Callable[[], None] | None

    def start(self) -> None: ...

    def stop(self) -> None: ...


class SpeechCaptureEngine:
    """
    Continuous listening over an unreliable recognizer.

    Listening survives recognizer end-of-stream and transient faults by
    restarting after `restart_delay` seconds. Only `stop_listening()` or a
    fatal error ends it. Must be used from a running event loop.
    """

    def __init__(
        self,
        recognizer: SpeechRecognizer | None = None,
        restart_delay: float = 0.5,
    ):
        """
        Initialize the engine.

        Args:
            recognizer: Platform recognizer, or None when speech-to-text is unavailable
            restart_delay: Seconds to wait before restarting an ended recognizer
        """
        self._recognizer = recognizer
        self.restart_delay = restart_delay
        self.is_supported = recognizer is not None

        self.is_listening = False
        self.error: CaptureError | None = None
        self._transcript = TranscriptState()

        # True between start_listening() and stop_listening()/fatal error
        self._should_listen = False
        self._restart_handle: asyncio.TimerHandle | None = None

        self._transcript_listeners: list[Callable[[TranscriptState], None]] = []
        self._error_listeners: list[Callable[[CaptureError], None]] = []

        if recognizer is not None:
            recognizer.on_start = self._handle_start
            recognizer.on_result = self._handle_result
            recognizer.on_error = self._handle_error
            recognizer.on_end = self._handle_end

    # =========================================================================
    # OBSERVABLE STATE
    # =========================================================================

    @property
    def transcript(self) -> str:
        return self._transcript.combined

    @property
    def interim_transcript(self) -> str:
        return self._transcript.interim

    @property
    def final_transcript(self) -> str:
        return self._transcript.final

    @property
    def transcript_state(self) -> TranscriptState:
        return self._transcript.model_copy()

    @property
    def restart_pending(self) -> bool:
        return self._restart_handle is not None

    # =========================================================================
    # CONTROL
    # =========================================================================

    def start_listening(self) -> None:
        """Begin continuous capture. No-op if unsupported, listening or about to restart."""
        if not self.is_supported or self.is_listening or self.restart_pending:
            return

        self.error = None
        self._should_listen = True
        logger.info("Starting continuous speech recognition")
        try:
            self._recognizer.start()
        except Exception as e:
            logger.error(f"Error starting speech recognition: {e}")
            self._fail(RecognitionErrorCode.START_FAILED.value)

    def stop_listening(self) -> None:
        """Halt capture and cancel any pending restart."""
        if not self.is_supported:
            return

        self._should_listen = False
        self._cancel_restart()
        self.is_listening = False
        try:
            self._recognizer.stop()
        except Exception as e:
            logger.error(f"Error stopping speech recognition: {e}")

    def reset_transcript(self) -> None:
        """Clear interim, final and combined transcript. Listening state is untouched."""
        self._transcript = TranscriptState()
        self._notify_transcript()

    def close(self) -> None:
        """Stop listening and detach from the recognizer."""
        self.stop_listening()
        if self._recognizer is not None:
            self._recognizer.on_start = None
            self._recognizer.on_result = None
            self._recognizer.on_error = None
            self._recognizer.on_end = None
        self._transcript_listeners.clear()
        self._error_listeners.clear()

    # =========================================================================
    # LISTENERS
    # =========================================================================

    def on_transcript(self, callback: Callable[[TranscriptState], None]) -> None:
        """Register a callback for transcript changes."""
        self._transcript_listeners.append(callback)

    def remove_transcript_listener(self, callback: Callable[[TranscriptState], None]) -> None:
        if callback in self._transcript_listeners:
            self._transcript_listeners.remove(callback)

    def on_error(self, callback: Callable[[CaptureError], None]) -> None:
        """Register a callback for fatal capture errors."""
        self._error_listeners.append(callback)

    # =========================================================================
    # RECOGNIZER EVENTS
    # =========================================================================

    def _handle_start(self) -> None:
        logger.debug("Speech recognition started")
        self.is_listening = True
        self.error = None

    def _handle_result(self, results: list[RecognitionResult], result_index: int = 0) -> None:
        interim_text = ""
        final_text = ""

        for result in results[result_index:]:
            if result.is_final:
                final_text += result.transcript + " "
            else:
                interim_text += result.transcript

        # Interim replaces, final accumulates
        accumulated = self._transcript.final + final_text
        self._transcript = TranscriptState(
            interim=interim_text,
            final=accumulated,
            combined=accumulated + interim_text,
        )
        if final_text:
            logger.debug(f"New final transcript: {final_text.strip()}")
        self._notify_transcript()

    def _handle_error(self, code: str) -> None:
        if code in IGNORED_ERROR_CODES:
            logger.debug("No speech detected, continuing to listen")
            return

        if code in TRANSIENT_ERROR_CODES:
            logger.info(f"Transient recognition error '{code}', will restart listening")
            # The recognizer has stopped; its end event may or may not follow
            self.is_listening = False
            if self._should_listen:
                self._schedule_restart()
            return

        logger.error(f"Speech recognition error: {code}")
        self._fail(code)

    def _handle_end(self) -> None:
        logger.debug("Speech recognition ended")
        self.is_listening = False
        if self._should_listen and self.error is None:
            self._schedule_restart()

    # =========================================================================
    # RESTART AND FAILURE
    # =========================================================================

    def _schedule_restart(self) -> None:
        # One pending restart at most; an error followed by end must start once
        if self._restart_handle is not None:
            return
        loop = asyncio.get_running_loop()
        self._restart_handle = loop.call_later(self.restart_delay, self._restart)

    def _cancel_restart(self) -> None:
        if self._restart_handle is not None:
            self._restart_handle.cancel()
            self._restart_handle = None

    def _restart(self) -> None:
        self._restart_handle = None
        if not self._should_listen or self.is_listening:
            return
        logger.info("Auto-restarting speech recognition")
        try:
            self._recognizer.start()
        except Exception as e:
            logger.error(f"Failed to restart recognition: {e}")
            self._fail(RecognitionErrorCode.START_FAILED.value)

    def _fail(self, code: str) -> None:
        message = ERROR_MESSAGES.get(code, f"Speech recognition error: {code}")
        self.error = CaptureError(code=code, message=message, fatal=True)
        self._should_listen = False
        self.is_listening = False
        self._cancel_restart()

        for callback in list(self._error_listeners):
            try:
                callback(self.error)
            except Exception as e:
                logger.error(f"Capture error callback failed: {e}")

    def _notify_transcript(self) -> None:
        state = self.transcript_state
        for callback in list(self._transcript_listeners):
            try:
                callback(state)
            except Exception as e:
                logger.error(f"Transcript callback failed: {e}")
