"""Root conftest for all tests.

Shared fixtures: generated stock photos, a scripted text completer and a fake
Strava API served through httpx.MockTransport.
"""

import asyncio
import io
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
from PIL import Image

from memegen.config.settings import Settings
from memegen.integrations.strava.credentials import StaticCredentialProvider
from memegen.llm.completion import CompletionPreset
from memegen.models.activity import ActivityRecord, NormalizedActivity
from memegen.pipeline.cache import ArtifactCache
from memegen.pipeline.orchestrator import MemePipeline
from memegen.pipeline.photos import PHOTO_TABLE

SAMPLE_ACTIVITY = {
    "id": 123,
    "name": "Morning Run",
    "description": "Legs felt like wet bread",
    "type": "Run",
    "sport_type": "Run",
    "distance": 12000,
    "moving_time": 3600,
    "total_elevation_gain": 150,
    "average_speed": 3.33,
}

PHOTO_COLORS = [(200, 60, 60), (60, 200, 60), (60, 60, 200), (200, 200, 60), (120, 120, 120)]


def make_jpeg(size: tuple[int, int] = (480, 360), color: tuple[int, int, int] = (90, 140, 200)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="JPEG", quality=90)
    return buffer.getvalue()


class StubCompleter:
    """Scripted stand-in for TextCompleter.

    replies maps a preset name to a string, an exception to raise, or a callable
    taking the call index for that preset and returning either of those.
    delays works the same way with seconds to sleep before replying.
    """

    def __init__(
        self,
        replies: dict[str, object] | None = None,
        delays: dict[str, object] | None = None,
    ) -> None:
        self.replies = replies or {}
        self.delays = delays or {}
        self.calls: list[tuple[str, str]] = []

    async def complete(self, preset: CompletionPreset, user_prompt: str) -> str:
        index = sum(1 for name, _ in self.calls if name == preset.name)
        self.calls.append((preset.name, user_prompt))

        delay = self.delays.get(preset.name)
        if callable(delay):
            delay = delay(index)
        if delay:
            await asyncio.sleep(delay)

        reply = self.replies.get(preset.name, "")
        if callable(reply) and not isinstance(reply, BaseException):
            reply = reply(index)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FakeStrava:
    """In-memory Strava API. Records every request it receives."""

    def __init__(
        self,
        *,
        activity: dict | None = None,
        activity_status: int = 200,
        activities: list[dict] | None = None,
        upload_statuses: list[int] | None = None,
    ) -> None:
        self.activity = activity if activity is not None else dict(SAMPLE_ACTIVITY)
        self.activity_status = activity_status
        self.activity_content: bytes | None = None  # raw body served instead of the activity JSON
        self.activities = activities if activities is not None else [dict(SAMPLE_ACTIVITY)]
        self.upload_statuses = list(upload_statuses or [201])
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "GET" and path == "/api/v3/athlete/activities":
            return httpx.Response(200, json=self.activities)

        if request.method == "GET" and path.startswith("/api/v3/activities/"):
            if self.activity_status != 200:
                return httpx.Response(self.activity_status, json={"message": "Record Not Found"})
            if self.activity_content is not None:
                return httpx.Response(200, content=self.activity_content)
            return httpx.Response(200, json=self.activity)

        if request.method == "POST" and path == "/api/v3/uploads":
            status = self.upload_statuses.pop(0) if len(self.upload_statuses) > 1 else self.upload_statuses[0]
            if status >= 400:
                return httpx.Response(status, json={"message": "Authorization Error", "errors": [{"code": "invalid"}]})
            return httpx.Response(status, json={"id": 987, "status": "Your activity is still being processed."})

        return httpx.Response(404, json={"message": "Not Found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def upload_calls(self) -> int:
        return sum(1 for r in self.requests if r.method == "POST" and r.url.path == "/api/v3/uploads")

    @property
    def activity_calls(self) -> int:
        return sum(1 for r in self.requests if r.method == "GET" and r.url.path.startswith("/api/v3/activities/"))


@pytest.fixture
def sample_record() -> ActivityRecord:
    return ActivityRecord.from_raw(dict(SAMPLE_ACTIVITY))


@pytest.fixture
def sample_activity() -> NormalizedActivity:
    return NormalizedActivity(
        distance_km="12.00",
        duration="1h 0m 0s",
        type="Run",
        elevation_m=150,
        avg_speed_kmh="12.0",
        description="Legs felt like wet bread",
        moving_time_s=3600,
    )


@pytest.fixture
def asset_dir(tmp_path: Path) -> Path:
    """Directory holding one generated photo per mood."""
    photos = tmp_path / "photos"
    photos.mkdir()
    for color, filename in zip(PHOTO_COLORS, PHOTO_TABLE.values(), strict=True):
        (photos / filename).write_bytes(make_jpeg(color=color))
    return photos


@pytest.fixture
def fake_strava() -> FakeStrava:
    return FakeStrava()


@pytest.fixture
def make_settings(asset_dir: Path) -> Callable[..., Settings]:
    def _make(**overrides) -> Settings:
        values = {
            "OPENAI_API_KEY": "test-key",
            "ASSET_DIR": str(asset_dir),
            "STRAVA_ACCESS_TOKEN": "token",
            "STRAVA_SCOPES": "read,activity:read_all,activity:write",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def make_pipeline(make_settings, fake_strava: FakeStrava) -> Callable[..., MemePipeline]:
    def _make(
        completer: StubCompleter,
        *,
        credentials: StaticCredentialProvider | None = None,
        cache: ArtifactCache | None = None,
        **setting_overrides,
    ) -> MemePipeline:
        return MemePipeline.from_settings(
            make_settings(**setting_overrides),
            credentials=credentials,
            completer=completer,
            cache=cache,
            transport=fake_strava.transport,
        )

    return _make


@pytest.fixture
def make_completer() -> type[StubCompleter]:
    return StubCompleter


@pytest.fixture
def jpeg_factory() -> Callable[..., bytes]:
    return make_jpeg
