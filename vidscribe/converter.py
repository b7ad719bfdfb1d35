"""Audio extraction from video assets."""

import logging
from typing import Optional

from .engine import EngineManager, get_engine_manager
from .exceptions import ConversionError
from .models import AudioArtifact, VideoAsset

logger = logging.getLogger(__name__)

INPUT_NAME = "input.mp4"
OUTPUT_NAME = "output.mp3"

# Audio stream only, 20 kbps MP3
CONVERSION_ARGS = (
    "-i",
    INPUT_NAME,
    "-map",
    "0:a",
    "-b:a",
    "20k",
    "-acodec",
    "libmp3lame",
    OUTPUT_NAME,
)


class MediaConverter:
    """Extracts an MP3 audio track from a video using the shared engine."""

    def __init__(self, engine_manager: Optional[EngineManager] = None):
        """Initialize the converter.

        Args:
            engine_manager: Manager to take the engine from. Defaults to the
                process-wide manager.
        """
        self.engine_manager = engine_manager or get_engine_manager()

    async def convert(self, asset: VideoAsset) -> AudioArtifact:
        """Convert a video asset into an audio artifact.

        Args:
            asset: The video to extract audio from.

        Returns:
            The extracted audio as audio/mpeg named audio.mp3.

        Raises:
            ConversionError: If the engine is unavailable, the input has no
                audio stream or cannot be decoded, or the output is missing.
        """
        logger.info(f"Converting '{asset.name}' ({asset.size} bytes) to audio")

        async with self.engine_manager.acquire() as engine:
            try:
                await engine.write_file(INPUT_NAME, asset.data)
                await engine.exec(list(CONVERSION_ARGS))
                data = await engine.read_file(OUTPUT_NAME)
            except ConversionError as e:
                logger.error(f"Conversion of '{asset.name}' failed: {e}")
                raise
            finally:
                engine.delete_file(INPUT_NAME)
                engine.delete_file(OUTPUT_NAME)

        if not data:
            raise ConversionError(f"Conversion of '{asset.name}' produced no audio")

        artifact = AudioArtifact(data=data)
        logger.info(f"Extracted {artifact.size} bytes of audio from '{asset.name}'")
        return artifact
