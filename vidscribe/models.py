"""Data passed between pipeline stages and the backend wire models."""

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel

DEFAULT_VIDEO_MIME_TYPE = "video/mp4"
AUDIO_MIME_TYPE = "audio/mpeg"
AUDIO_FILE_NAME = "audio.mp3"


@dataclass(frozen=True)
class VideoAsset:
    """A user-selected video, held in memory."""

    data: bytes
    mime_type: str
    name: str

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "VideoAsset":
        """Read a video file from disk.

        The MIME type is guessed from the file name; unknown types are
        recorded as video/mp4, since callers filter by type beforehand.
        """
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            data=path.read_bytes(),
            mime_type=mime_type or DEFAULT_VIDEO_MIME_TYPE,
            name=path.name,
        )

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class AudioArtifact:
    """Audio-only MP3 extracted from a VideoAsset."""

    data: bytes
    mime_type: str = AUDIO_MIME_TYPE
    name: str = AUDIO_FILE_NAME

    @property
    def size(self) -> int:
        return len(self.data)


class RemoteVideo(BaseModel):
    """Server-side video record; only the id is read."""

    id: str


class UploadResponse(BaseModel):
    """Response body of POST /videos."""

    video: RemoteVideo


class TranscriptionRequest(BaseModel):
    """Request body of POST /videos/{id}/transcription."""

    prompt: Optional[str] = None


class TranscriptionAck(BaseModel):
    """Acknowledgment that the backend accepted a transcription request."""

    video_id: str
    status: int
