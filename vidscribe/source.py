"""Holder for the currently selected video and its preview handle."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from .exceptions import PreviewRevokedError
from .models import VideoAsset

logger = logging.getLogger(__name__)


class PreviewHandle:
    """Revocable local reference to a VideoAsset for display.

    The asset bytes are materialized into a temporary file that lives until
    release() is called.
    """

    def __init__(self, asset: VideoAsset, directory: Optional[Path] = None):
        suffix = Path(asset.name).suffix or ".mp4"
        fd, name = tempfile.mkstemp(
            prefix="vidscribe-preview-", suffix=suffix, dir=directory
        )
        with os.fdopen(fd, "wb") as f:
            f.write(asset.data)

        self.asset = asset
        self._path: Optional[Path] = Path(name)
        logger.debug(f"Created preview for '{asset.name}' at {self._path}")

    @property
    def revoked(self) -> bool:
        return self._path is None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise PreviewRevokedError(f"Preview of '{self.asset.name}' was released")
        return self._path

    @property
    def uri(self) -> str:
        return self.path.as_uri()

    def release(self) -> None:
        """Revoke the handle and remove its backing file. Idempotent."""
        if self._path is None:
            return

        path, self._path = self._path, None
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        logger.debug(f"Released preview {path}")

    def __enter__(self) -> "PreviewHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class SourceAssetHolder:
    """Holds the selected VideoAsset and at most one live PreviewHandle."""

    def __init__(self, preview_dir: Optional[Path] = None):
        self._asset: Optional[VideoAsset] = None
        self._preview: Optional[PreviewHandle] = None
        self._preview_dir = preview_dir

    @property
    def asset(self) -> Optional[VideoAsset]:
        """The currently selected video, if any."""
        return self._asset

    def select(self, file: Union[VideoAsset, str, Path, None]) -> None:
        """Replace the held asset.

        Passing None is a no-op. The MIME type is not checked here; a
        non-video file fails later, during conversion.

        Args:
            file: A VideoAsset or a path to a video file.
        """
        if file is None:
            return

        asset = file if isinstance(file, VideoAsset) else VideoAsset.from_path(file)

        # Release the superseded preview before the new asset can derive one
        self._release_preview()
        self._asset = asset
        logger.info(f"Selected video '{asset.name}' ({asset.size} bytes)")

    def preview_handle(self) -> Optional[PreviewHandle]:
        """Get the preview for the current asset, deriving it on first use."""
        if self._asset is None:
            return None

        if self._preview is None or self._preview.revoked:
            self._preview = PreviewHandle(self._asset, self._preview_dir)
        return self._preview

    def close(self) -> None:
        """Release the live preview handle, if any."""
        self._release_preview()

    def _release_preview(self) -> None:
        if self._preview is not None:
            self._preview.release()
            self._preview = None

    def __enter__(self) -> "SourceAssetHolder":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
