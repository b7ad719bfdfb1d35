"""Command line entry point for vidscribe."""

import asyncio
import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer

from . import __version__
from .api_client import ApiClient
from .config import ApiConfig, AppConfig, load_config
from .converter import MediaConverter
from .engine import get_engine_manager, shutdown_engine_manager
from .exceptions import VidscribeError
from .logging_setup import setup_logging
from .pipeline import SubmissionPipeline
from .source import SourceAssetHolder
from .state import STAGE_ORDER, PipelineStage
from .transcription import TranscriptionRequester
from .uploader import UploadCoordinator

logger = logging.getLogger(__name__)

__all__ = ["app", "run"]

app = typer.Typer(
    name="vidscribe",
    help="Extract the audio of a video, upload it and request a transcription.",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"vidscribe {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """vidscribe - video to transcription job submitter."""


def _print_stage(stage: PipelineStage) -> None:
    typer.echo(stage.label)


async def submit_video(config: AppConfig, video: Path, prompt: Optional[str]) -> int:
    """Run one submission.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    engine_manager = get_engine_manager(config.converter)

    try:
        async with ApiClient(config.api) as client:
            with SourceAssetHolder() as holder:
                holder.select(video)

                pipeline = SubmissionPipeline(
                    holder,
                    MediaConverter(engine_manager),
                    UploadCoordinator(client),
                    TranscriptionRequester(client),
                    on_completed=lambda video_id: typer.echo(f"Video id: {video_id}"),
                )
                pipeline.state_manager.add_observer(_print_stage)

                await pipeline.submit(prompt)

    except VidscribeError as e:
        logger.error(f"Submission failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        return 1

    finally:
        await shutdown_engine_manager()

    return 0


@app.command("submit")
def submit(
    video: Path = typer.Argument(..., help="Video file (mp4) to submit"),
    prompt: Optional[str] = typer.Option(
        None,
        "--prompt",
        "-p",
        help="Key words mentioned in the video, separated by comma (,)",
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Backend base URL (overrides config)"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to config.toml"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """Convert VIDEO to audio, upload it and request its transcription."""
    try:
        config = load_config(config_path)
        if base_url:
            api = ApiConfig(
                base_url=base_url, request_timeout_s=config.api.request_timeout_s
            )
            config = config.model_copy(update={"api": api})
    except (ValueError, OSError) as e:
        typer.echo(f"Error loading configuration: {e}", err=True)
        raise typer.Exit(1)

    log_level = "DEBUG" if verbose else config.client.log_level
    setup_logging(log_level, config.client.log_file)

    if not video.is_file():
        typer.echo(f"Error: video not found: {video}", err=True)
        raise typer.Exit(1)

    exit_code = asyncio.run(submit_video(config, video, prompt))
    raise typer.Exit(exit_code)


@app.command("stages")
def list_stages() -> None:
    """List the submission stages in order."""
    for stage in STAGE_ORDER:
        typer.echo(f"{stage.value:<12}{stage.label}")


def run() -> NoReturn:
    """Entry point for the vidscribe script."""
    app()
