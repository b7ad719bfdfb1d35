"""Submission pipeline: convert, upload, request transcription."""

import logging
from typing import Any, Callable, Optional

from .converter import MediaConverter
from .exceptions import SubmissionRejectedError
from .source import SourceAssetHolder
from .state import PipelineStage, PipelineStateManager
from .transcription import TranscriptionRequester
from .uploader import UploadCoordinator

logger = logging.getLogger(__name__)


class SubmissionPipeline:
    """Runs one submission of the selected video through all stages.

    An instance tracks a single submission. Once it leaves WAITING it never
    returns there: a failed stage leaves the pipeline where it stopped, and
    SUCCESS is final. Selecting another video on the holder does not reset
    the stage.
    """

    def __init__(
        self,
        holder: SourceAssetHolder,
        converter: MediaConverter,
        uploader: UploadCoordinator,
        requester: TranscriptionRequester,
        on_completed: Optional[Callable[[str], Any]] = None,
        state_manager: Optional[PipelineStateManager] = None,
    ):
        """Initialize the pipeline.

        Args:
            holder: Source of the video to submit.
            converter: Extracts the audio track.
            uploader: Ships the audio to the backend.
            requester: Starts the transcription job.
            on_completed: Called once with the video id on success.
            state_manager: Stage tracker; a new one is created if omitted.
        """
        self.holder = holder
        self.converter = converter
        self.uploader = uploader
        self.requester = requester
        self.on_completed = on_completed
        self.state_manager = state_manager or PipelineStateManager()
        self.video_id: Optional[str] = None

    @property
    def stage(self) -> PipelineStage:
        return self.state_manager.current_stage

    @property
    def can_submit(self) -> bool:
        """Whether submit() would start a run."""
        return self.stage is PipelineStage.WAITING and self.holder.asset is not None

    async def submit(self, prompt: Optional[str] = None) -> Optional[str]:
        """Run the selected video through the pipeline.

        Stage failures are not caught: the error reaches the caller and the
        pipeline stays in the stage that failed.

        Args:
            prompt: Optional transcription hint, forwarded unmodified.

        Returns:
            The backend video id, or None if no video is selected.

        Raises:
            SubmissionRejectedError: If a submission already started.
            ConversionError: If audio extraction fails.
            UploadError: If the upload fails.
            TranscriptionError: If the transcription request is refused.
        """
        if self.stage is not PipelineStage.WAITING:
            raise SubmissionRejectedError(
                f"Cannot submit while pipeline is '{self.stage.value}'"
            )

        asset = self.holder.asset
        if asset is None:
            logger.debug("Submit ignored: no video selected")
            return None

        logger.info(f"Submitting '{asset.name}'")

        self.state_manager.advance()  # converting
        artifact = await self.converter.convert(asset)

        self.state_manager.advance()  # uploading
        video_id = await self.uploader.upload(artifact)

        self.state_manager.advance()  # generating
        await self.requester.request_transcription(video_id, prompt)

        self.video_id = video_id
        self.state_manager.advance()  # success
        logger.info(f"Submission of '{asset.name}' complete (video id: {video_id})")

        if self.on_completed is not None:
            self.on_completed(video_id)

        return video_id
