"""Extract audio from a video, upload it and request a transcription job."""

__version__ = "0.1.0"
