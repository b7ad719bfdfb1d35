"""Shared fixtures: an in-memory transcoding engine and a fake backend."""

import asyncio
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from vidscribe.exceptions import ConversionError
from vidscribe.models import VideoAsset

# Marks test videos that ffmpeg would reject for lacking an audio stream
NO_AUDIO_MARKER = b"no-audio-stream"


class FakeEngine:
    """In-memory stand-in for FFmpegEngine that records every call."""

    def __init__(self, config=None, calls: Optional[List[tuple]] = None):
        self.config = config
        self.files: Dict[str, bytes] = {}
        self.calls = calls if calls is not None else []
        self.load_count = 0

    async def load(self) -> None:
        self.load_count += 1

    async def write_file(self, name: str, data: bytes) -> None:
        self.calls.append(("write", name, data))
        await asyncio.sleep(0)
        self.files[name] = data

    async def exec(self, argv) -> None:
        self.calls.append(("exec", tuple(argv)))
        await asyncio.sleep(0)
        data = self.files.get("input.mp4", b"")
        if NO_AUDIO_MARKER in data:
            raise ConversionError("Stream map '0:a' matches no streams.")
        self.files["output.mp3"] = b"ID3" + data

    async def read_file(self, name: str) -> bytes:
        self.calls.append(("read", name))
        await asyncio.sleep(0)
        try:
            return self.files[name]
        except KeyError:
            raise ConversionError(f"Cannot read '{name}'")

    def delete_file(self, name: str) -> None:
        self.files.pop(name, None)

    def dispose(self) -> None:
        self.files.clear()


class FakeBackend:
    """aiohttp application mimicking the /videos API."""

    def __init__(self):
        self.video_id = "video-123"
        self.upload_status = 200
        self.upload_body: Optional[dict] = None
        self.transcription_status = 200
        self.uploads: List[dict] = []
        self.transcriptions: List[dict] = []
        self.base_url = ""

    async def handle_upload(self, request: web.Request) -> web.Response:
        form = await request.post()
        field = form.get("file")
        self.uploads.append(
            {
                "fields": list(form.keys()),
                "filename": getattr(field, "filename", None),
                "content_type": getattr(field, "content_type", None),
                "data": field.file.read() if field is not None else None,
            }
        )
        if self.upload_status >= 400:
            return web.json_response({"message": "upload failed"}, status=self.upload_status)

        body = self.upload_body
        if body is None:
            body = {"video": {"id": self.video_id, "name": "audio.mp3"}}
        return web.json_response(body, status=self.upload_status)

    async def handle_transcription(self, request: web.Request) -> web.Response:
        self.transcriptions.append(
            {"video_id": request.match_info["video_id"], "body": await request.json()}
        )
        return web.json_response(
            {"transcription": "queued"}, status=self.transcription_status
        )

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/videos", self.handle_upload)
        app.router.add_post("/videos/{video_id}/transcription", self.handle_transcription)
        return app


@pytest.fixture
def video_asset():
    """A small video asset with an audio stream."""
    return VideoAsset(data=b"\x00\x00\x00\x18ftypmp42 video+audio", mime_type="video/mp4", name="clip.mp4")


@pytest.fixture
def silent_video_asset():
    """A video asset without an audio stream."""
    return VideoAsset(data=b"\x00\x00\x00\x18ftypmp42 " + NO_AUDIO_MARKER, mime_type="video/mp4", name="silent.mp4")


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest_asyncio.fixture
async def backend():
    """Run the fake backend on a local port."""
    fake = FakeBackend()
    server = TestServer(fake.make_app())
    await server.start_server()
    fake.base_url = str(server.make_url("/")).rstrip("/")
    yield fake
    await server.close()
