"""Upload of extracted audio to the backend."""

import asyncio
import logging

import aiohttp
from pydantic import ValidationError

from .api_client import ApiClient
from .exceptions import UploadError
from .models import AudioArtifact, UploadResponse

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/videos"
UPLOAD_FIELD = "file"


class UploadCoordinator:
    """Sends an AudioArtifact to the storage endpoint."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def upload(self, artifact: AudioArtifact) -> str:
        """Upload the artifact as a single multipart field.

        Args:
            artifact: Audio produced by the converter.

        Returns:
            The identifier the backend assigned to the uploaded video.

        Raises:
            UploadError: On transport failure, a non-success status or a
                response without video.id.
        """
        form = aiohttp.FormData()
        form.add_field(
            UPLOAD_FIELD,
            artifact.data,
            filename=artifact.name,
            content_type=artifact.mime_type,
        )

        url = self.client.url(UPLOAD_PATH)
        logger.info(f"Uploading {artifact.size} bytes to {url}")

        try:
            session = await self.client.get_session()
            async with session.post(url, data=form) as response:
                response.raise_for_status()
                body = await response.read()
        except aiohttp.ClientResponseError as e:
            raise UploadError(f"Upload rejected with status {e.status}: {e.message}") from e
        except aiohttp.ClientError as e:
            raise UploadError(f"Upload failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise UploadError("Upload timed out") from e

        try:
            result = UploadResponse.model_validate_json(body)
        except ValidationError as e:
            raise UploadError(f"Upload response has no video id: {e}") from e

        video_id = result.video.id
        logger.info(f"Upload complete, video id: {video_id}")
        return video_id
