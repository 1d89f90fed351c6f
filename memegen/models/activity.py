"""Activity telemetry models.

ActivityRecord mirrors the Strava activity payload loosely: every metric is
optional and may arrive as a number or a string, depending on the producer.
NormalizedActivity is the canonical, display-ready form used by the rest of
the pipeline.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

Numeric = float | int | str | None


class ActivityRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | str | None = None
    name: str | None = None
    description: str | None = None
    type: str | None = None
    sport_type: str | None = None
    distance: Numeric = None
    moving_time: Numeric = None
    total_elevation_gain: Numeric = None
    average_speed: Numeric = None

    raw: dict[str, Any] | None = None  # Raw API response (may contain nested dicts and lists)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> ActivityRecord:
        """Build a record from a raw payload, dropping only the fields that fail validation.

        Raises:
            TypeError: If raw is not a mapping
        """
        payload = dict(raw)
        try:
            return cls.model_validate({**payload, "raw": payload})
        except ValidationError as e:
            invalid = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
            logger.warning(f"Dropping malformed telemetry fields: {', '.join(sorted(invalid))}")
            kept = {key: value for key, value in payload.items() if key not in invalid}
            return cls.model_validate({**kept, "raw": payload})


class NormalizedActivity(BaseModel):
    """Canonical activity values, formatted for prompts and the stat overlay."""

    distance_km: str = "0.00"
    duration: str = "0h 0m 0s"
    type: str = "Unknown"
    elevation_m: int = Field(default=0, ge=0)
    avg_speed_kmh: str = "0.0"
    description: str = "No description"
    moving_time_s: int = Field(default=0, ge=0)

    def prompt_summary(self) -> str:
        """Workout data block shared by the mood and caption prompts."""
        return "\n".join([
            f"Distance: {self.distance_km}km",
            f"Time: {self.duration}",
            f"Type: {self.type}",
            f"Elevation Gain: {self.elevation_m}m",
            f"Average Speed: {self.avg_speed_kmh}km/h",
        ])


class ActivityRef(BaseModel):
    """Inbound reference to an activity: an id plus optional pre-fetched telemetry."""

    activity_id: int | str
    telemetry: ActivityRecord | None = None
