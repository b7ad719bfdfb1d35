"""Tests for audio extraction."""

import asyncio
import pytest

from vidscribe.converter import CONVERSION_ARGS, INPUT_NAME, OUTPUT_NAME, MediaConverter
from vidscribe.engine import EngineManager
from vidscribe.exceptions import ConversionError
from vidscribe.models import VideoAsset

from conftest import FakeEngine


@pytest.fixture
def converter(fake_engine):
    return MediaConverter(EngineManager(engine_factory=lambda config: fake_engine))


def test_conversion_args():
    """Test the fixed ffmpeg profile: audio only, 20k MP3."""
    assert list(CONVERSION_ARGS) == [
        "-i",
        "input.mp4",
        "-map",
        "0:a",
        "-b:a",
        "20k",
        "-acodec",
        "libmp3lame",
        "output.mp3",
    ]


@pytest.mark.asyncio
async def test_convert_produces_mp3(converter, fake_engine, video_asset):
    """Test a video with audio yields a non-empty audio/mpeg artifact."""
    artifact = await converter.convert(video_asset)

    assert artifact.mime_type == "audio/mpeg"
    assert artifact.name == "audio.mp3"
    assert artifact.size > 0
    assert artifact.data == b"ID3" + video_asset.data

    assert [call[0] for call in fake_engine.calls] == ["write", "exec", "read"]
    assert fake_engine.calls[0][1] == INPUT_NAME
    assert fake_engine.calls[1][1] == CONVERSION_ARGS
    assert fake_engine.calls[2][1] == OUTPUT_NAME


@pytest.mark.asyncio
async def test_convert_clears_namespace(converter, fake_engine, video_asset):
    """Test input and output slots are emptied after a run."""
    await converter.convert(video_asset)
    assert fake_engine.files == {}


@pytest.mark.asyncio
async def test_convert_without_audio_stream(
    converter, fake_engine, silent_video_asset
):
    """Test a video with no audio stream fails and leaves no output behind."""
    with pytest.raises(ConversionError, match="matches no streams"):
        await converter.convert(silent_video_asset)

    assert fake_engine.files == {}
    assert ("read", OUTPUT_NAME) not in fake_engine.calls


@pytest.mark.asyncio
async def test_convert_empty_output(video_asset):
    """Test an empty output file is a conversion error."""

    class EmptyOutputEngine(FakeEngine):
        async def exec(self, argv):
            self.files[OUTPUT_NAME] = b""

    converter = MediaConverter(EngineManager(engine_factory=EmptyOutputEngine))

    with pytest.raises(ConversionError, match="produced no audio"):
        await converter.convert(video_asset)


@pytest.mark.asyncio
async def test_convert_engine_unavailable(video_asset):
    """Test an engine that fails to initialize surfaces as a conversion error."""

    class BrokenEngine(FakeEngine):
        async def load(self):
            raise ConversionError("ffmpeg not found: ffmpeg")

    converter = MediaConverter(EngineManager(engine_factory=BrokenEngine))

    with pytest.raises(ConversionError, match="ffmpeg not found"):
        await converter.convert(video_asset)


@pytest.mark.asyncio
async def test_concurrent_conversions_do_not_interleave(fake_engine):
    """Test two conversions on the shared engine run one after the other."""
    manager = EngineManager(engine_factory=lambda config: fake_engine)
    first = VideoAsset(data=b"first video", mime_type="video/mp4", name="a.mp4")
    second = VideoAsset(data=b"second video", mime_type="video/mp4", name="b.mp4")

    results = await asyncio.gather(
        MediaConverter(manager).convert(first),
        MediaConverter(manager).convert(second),
    )

    assert results[0].data == b"ID3first video"
    assert results[1].data == b"ID3second video"
    assert [call[0] for call in fake_engine.calls] == [
        "write",
        "exec",
        "read",
        "write",
        "exec",
        "read",
    ]
