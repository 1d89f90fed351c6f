"""Meme pipeline value types."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from memegen.errors import UploadError


class MoodLabel(StrEnum):
    TIRED = "tired"
    EXCITED = "excited"
    PROUD = "proud"
    ENERGETIC = "energetic"
    DEFAULT = "default"

    @classmethod
    def is_known(cls, text: str) -> bool:
        return text.strip().lower() in {m.value for m in cls}


@dataclass(frozen=True)
class PhotoAsset:
    mood: MoodLabel
    path: str
    verified: bool
    demoted: bool = False  # True when the mood's photo was missing and the default was used


@dataclass(frozen=True)
class MemeArtifact:
    image_bytes: bytes
    activity_id: int | str
    generated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    media_type: str = "image/jpeg"
    mood: MoodLabel = MoodLabel.DEFAULT
    caption: str = ""
    photo_path: str = ""

    def data_url(self) -> str:
        encoded = base64.b64encode(self.image_bytes).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"

    def save(self, path: str | Path) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.image_bytes)
        return target


@dataclass(frozen=True)
class UploadOutcome:
    """Result of publishing an artifact. Never invalidates the artifact itself."""

    succeeded: bool
    confirmation: dict[str, Any] | None = None
    error: UploadError | None = None
    attempts: int = 0

    @property
    def error_kind(self) -> str | None:
        return self.error.kind if self.error else None

    @classmethod
    def success(cls, confirmation: dict[str, Any], attempts: int = 1) -> UploadOutcome:
        return cls(succeeded=True, confirmation=confirmation, attempts=attempts)

    @classmethod
    def failure(cls, error: UploadError, attempts: int = 0) -> UploadOutcome:
        return cls(succeeded=False, error=error, attempts=attempts)


@dataclass(frozen=True)
class Motivation:
    message: str
    meme_text: str


@dataclass(frozen=True)
class MemeRunResult:
    artifact: MemeArtifact
    upload_outcome: UploadOutcome | None = None
    motivation: Motivation | None = None
    from_cache: bool = False
