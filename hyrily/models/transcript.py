"""
Speech capture models for Hyrily

Transcript state, recognizer results and the recognizer error taxonomy.
"""

from enum import Enum

from pydantic import BaseModel


class RecognitionErrorCode(str, Enum):
    """Error codes reported by a speech recognizer."""

    NO_SPEECH = "no-speech"
    AUDIO_CAPTURE = "audio-capture"
    NOT_ALLOWED = "not-allowed"
    NETWORK = "network"
    ABORTED = "aborted"
    START_FAILED = "start-failed"


# Codes that are retried through the delayed restart
TRANSIENT_ERROR_CODES = {RecognitionErrorCode.NETWORK.value, RecognitionErrorCode.ABORTED.value}

# Codes that are not errors at all
IGNORED_ERROR_CODES = {RecognitionErrorCode.NO_SPEECH.value}

ERROR_MESSAGES = {
    RecognitionErrorCode.AUDIO_CAPTURE.value: "Microphone access denied or not available",
    RecognitionErrorCode.NOT_ALLOWED.value: "Microphone permission denied",
    RecognitionErrorCode.START_FAILED.value: "Failed to start speech recognition",
}


class RecognitionResult(BaseModel):
    """One recognized segment. Final segments are confirmed, interim ones provisional."""

    transcript: str
    is_final: bool = False


class TranscriptState(BaseModel):
    """Transcript accumulated during the current turn."""

    interim: str = ""
    final: str = ""
    combined: str = ""


class CaptureError(BaseModel):
    """A fatal speech capture condition surfaced to the user."""

    code: str
    message: str
    fatal: bool = True

    @property
    def is_permission_error(self) -> bool:
        return self.code in (
            RecognitionErrorCode.AUDIO_CAPTURE.value,
            RecognitionErrorCode.NOT_ALLOWED.value,
        )
