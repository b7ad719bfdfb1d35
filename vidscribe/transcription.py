"""Transcription job requests."""

import asyncio
import logging
from typing import Optional
from urllib.parse import quote

import aiohttp

from .api_client import ApiClient
from .exceptions import TranscriptionError
from .models import TranscriptionAck, TranscriptionRequest

logger = logging.getLogger(__name__)


class TranscriptionRequester:
    """Asks the backend to start transcribing an uploaded video."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def request_transcription(
        self, video_id: str, prompt: Optional[str] = None
    ) -> TranscriptionAck:
        """Submit a transcription job without waiting for it to finish.

        Args:
            video_id: Identifier returned by the upload.
            prompt: Optional hint text, forwarded unmodified.

        Returns:
            Acknowledgment carrying the response status.

        Raises:
            TranscriptionError: On transport failure or a non-success status.
        """
        url = self.client.url(f"/videos/{quote(video_id, safe='')}/transcription")
        payload = TranscriptionRequest(prompt=prompt).model_dump(exclude_none=True)
        logger.info(f"Requesting transcription for video {video_id}")

        try:
            session = await self.client.get_session()
            async with session.post(url, json=payload) as response:
                response.raise_for_status()
                status = response.status
        except aiohttp.ClientResponseError as e:
            raise TranscriptionError(
                f"Transcription request rejected with status {e.status}: {e.message}"
            ) from e
        except aiohttp.ClientError as e:
            raise TranscriptionError(f"Transcription request failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise TranscriptionError("Transcription request timed out") from e

        logger.info(f"Transcription request accepted for video {video_id}")
        return TranscriptionAck(video_id=video_id, status=status)
