"""Process-wide ffmpeg transcoding engine.

The engine owns a private working directory that acts as its file
namespace: callers write input files into it, run ffmpeg against those
names and read the output back. Conversions use fixed file names, so the
engine is handed out through EngineManager, which initializes it once and
grants exclusive access for a whole write/exec/read sequence.
"""

import asyncio
import logging
import shutil
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable, Optional, Sequence

from .config import ConverterConfig
from .exceptions import ConversionError

logger = logging.getLogger(__name__)

# Always run non-interactively and overwrite output slots in place
ENGINE_GLOBAL_ARGS = ("-hide_banner", "-nostdin", "-y")

# Only the tail of ffmpeg's stderr is useful in error messages
MAX_STDERR_CHARS = 2000


class FFmpegEngine:
    """Runs ffmpeg against files in a private working namespace."""

    def __init__(self, config: ConverterConfig):
        """Initialize the engine.

        Args:
            config: Converter configuration (binary and work dir parent).
        """
        self.config = config
        self._work_dir: Optional[Path] = None

    @property
    def loaded(self) -> bool:
        return self._work_dir is not None

    @property
    def work_dir(self) -> Optional[Path]:
        return self._work_dir

    async def load(self) -> None:
        """Check the ffmpeg binary and create the working namespace.

        Raises:
            ConversionError: If ffmpeg cannot be run.
        """
        if self.loaded:
            logger.warning("Engine already loaded")
            return

        binary = self.config.ffmpeg_binary
        logger.info(f"Loading transcoding engine ({binary})")

        try:
            process = await asyncio.create_subprocess_exec(
                binary,
                "-version",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await process.communicate()
        except FileNotFoundError as e:
            raise ConversionError(f"ffmpeg not found: {binary}") from e
        except PermissionError as e:
            raise ConversionError(f"Permission denied executing: {binary}") from e

        if process.returncode != 0:
            raise ConversionError(
                f"ffmpeg -version failed with code {process.returncode}: "
                f"{stderr.decode('utf-8', errors='replace')}"
            )

        version_line = stdout.decode("utf-8", errors="replace").splitlines()
        if version_line:
            logger.debug(version_line[0])

        try:
            self._work_dir = Path(
                tempfile.mkdtemp(prefix="vidscribe-engine-", dir=self.config.work_dir)
            )
        except OSError as e:
            raise ConversionError(f"Cannot create engine working directory: {e}") from e

        logger.info(f"Transcoding engine ready (namespace: {self._work_dir})")

    def _resolve(self, name: str) -> Path:
        if self._work_dir is None:
            raise ConversionError("Transcoding engine not loaded")
        if not name or name != Path(name).name or name in (".", ".."):
            raise ValueError(f"Invalid file name in engine namespace: {name!r}")
        return self._work_dir / name

    async def write_file(self, name: str, data: bytes) -> None:
        """Store data in the namespace under name."""
        path = self._resolve(name)
        try:
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as e:
            raise ConversionError(f"Cannot write '{name}': {e}") from e
        logger.debug(f"Wrote {len(data)} bytes to '{name}'")

    async def read_file(self, name: str) -> bytes:
        """Read a file back from the namespace."""
        path = self._resolve(name)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ConversionError(f"Cannot read '{name}': {e}") from e

    def delete_file(self, name: str) -> None:
        """Remove a file from the namespace if present."""
        self._resolve(name).unlink(missing_ok=True)

    async def exec(self, argv: Sequence[str]) -> None:
        """Run ffmpeg with argv inside the namespace.

        Raises:
            ConversionError: If ffmpeg exits with a non-zero code.
        """
        if self._work_dir is None:
            raise ConversionError("Transcoding engine not loaded")

        binary = self.config.ffmpeg_binary
        logger.debug(f"Executing: {binary} {' '.join(argv)}")

        try:
            process = await asyncio.create_subprocess_exec(
                binary,
                *ENGINE_GLOBAL_ARGS,
                *argv,
                cwd=str(self._work_dir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await process.communicate()
        except OSError as e:
            raise ConversionError(f"Error executing {binary}: {e}") from e

        if process.returncode != 0:
            error_output = stderr.decode("utf-8", errors="replace").strip()
            raise ConversionError(
                f"ffmpeg failed with code {process.returncode}: "
                f"{error_output[-MAX_STDERR_CHARS:]}"
            )

    def dispose(self) -> None:
        """Remove the working namespace."""
        if self._work_dir is None:
            return
        shutil.rmtree(self._work_dir, ignore_errors=True)
        logger.debug(f"Removed engine namespace {self._work_dir}")
        self._work_dir = None


class EngineManager:
    """Initializes the engine once and serializes access to it."""

    def __init__(
        self,
        config: Optional[ConverterConfig] = None,
        engine_factory: Callable[[ConverterConfig], FFmpegEngine] = FFmpegEngine,
    ):
        self.config = config or ConverterConfig()
        self._engine_factory = engine_factory
        self._engine: Optional[FFmpegEngine] = None
        self._init_lock = asyncio.Lock()
        self._lock = asyncio.Lock()

    @property
    def in_use(self) -> bool:
        """Whether a caller currently holds the engine."""
        return self._lock.locked()

    async def get_engine(self) -> FFmpegEngine:
        """Return the engine, loading it on first use.

        A failed load leaves no engine behind, so the next call tries again.

        Raises:
            ConversionError: If the engine cannot be initialized.
        """
        if self._engine is not None:
            return self._engine

        async with self._init_lock:
            if self._engine is None:
                engine = self._engine_factory(self.config)
                try:
                    await engine.load()
                except ConversionError:
                    logger.error("Failed to initialize transcoding engine")
                    raise
                except Exception as e:
                    logger.exception("Failed to initialize transcoding engine")
                    raise ConversionError(f"Engine initialization failed: {e}") from e
                self._engine = engine

        return self._engine

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[FFmpegEngine]:
        """Hold the engine exclusively for the duration of the block."""
        async with self._lock:
            yield await self.get_engine()

    async def shutdown(self) -> None:
        """Dispose the engine once no caller holds it."""
        async with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None


_default_manager: Optional[EngineManager] = None


def get_engine_manager(config: Optional[ConverterConfig] = None) -> EngineManager:
    """Get the process-wide EngineManager, creating it on first call.

    The config is only used by the call that creates the manager.
    """
    global _default_manager
    if _default_manager is None:
        _default_manager = EngineManager(config)
    elif config is not None and config != _default_manager.config:
        logger.warning("Engine manager already exists; ignoring new converter config")
    return _default_manager


async def shutdown_engine_manager() -> None:
    """Dispose the process-wide engine and forget the manager."""
    global _default_manager
    if _default_manager is not None:
        await _default_manager.shutdown()
        _default_manager = None
