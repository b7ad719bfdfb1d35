"""Exception classes for vidscribe.

All vidscribe-specific exceptions inherit from VidscribeError.
"""


class VidscribeError(Exception):
    """Base exception for all vidscribe errors."""


class ConversionError(VidscribeError):
    """Audio extraction failed or the transcoding engine is unavailable."""


class UploadError(VidscribeError):
    """Uploading the audio artifact to the backend failed."""


class TranscriptionError(VidscribeError):
    """The backend did not accept the transcription request."""


class InvalidTransitionError(VidscribeError):
    """A pipeline stage has no successor."""


class SubmissionRejectedError(VidscribeError):
    """A submission was attempted while the pipeline is not waiting."""


class PreviewRevokedError(VidscribeError):
    """A preview handle was used after it was released."""
