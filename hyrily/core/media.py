"""
Camera and microphone acquisition.

A session that acquires a media stream owns it exclusively and must stop
every track when it ends, otherwise the device stays busy.
"""

import logging
from typing import Protocol

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class MediaPermissionError(Exception):
    """Raised when the user denies camera/microphone access."""
    pass


class MediaUnavailableError(Exception):
    """Raised when no capture device exists."""
    pass


class VideoConstraints(BaseModel):
    width: int = 1280
    height: int = 720
    facing_mode: str = "user"


class AudioConstraints(BaseModel):
    sample_rate: int = 24000
    channel_count: int = 1
    echo_cancellation: bool = True
    noise_suppression: bool = True
    auto_gain_control: bool = True


class MediaConstraints(BaseModel):
    """Requested capture settings. `video=None` asks for audio only."""

    video: VideoConstraints | None = Field(default_factory=VideoConstraints)
    audio: AudioConstraints = Field(default_factory=AudioConstraints)


class MediaTrack(Protocol):
    kind: str  # "audio" or "video"

    def stop(self) -> None: ...


class MediaStream(Protocol):
    def get_tracks(self) -> list[MediaTrack]: ...


class MediaDevices(Protocol):
    async def acquire(self, constraints: MediaConstraints) -> MediaStream:
        """Acquire camera and microphone, raising MediaPermissionError or MediaUnavailableError."""
        ...


def release_stream(stream: MediaStream | None) -> None:
    """Stop every track of a stream."""
    if stream is None:
        return
    for track in stream.get_tracks():
        try:
            track.stop()
        except Exception as e:
            logger.error(f"Failed to stop {track.kind} track: {e}")
