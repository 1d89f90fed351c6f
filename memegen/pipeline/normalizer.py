"""Activity telemetry normalization.

Converts raw Strava telemetry into display-ready canonical units. Never raises:
missing, malformed or negative values degrade to zero/defaults.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from loguru import logger

from memegen.models.activity import ActivityRecord, NormalizedActivity

# Raw distances at or above this value are assumed to be meters
METERS_THRESHOLD = 100.0
MS_TO_KMH = 3.6


def _to_number(value: Any) -> float:
    """Coerce a telemetry value to a finite, non-negative float (0.0 on failure)."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Non-numeric telemetry value {value!r}, defaulting to 0")
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _distance_km(raw_distance: Any) -> float:
    """Resolve a raw distance to kilometers.

    Producers disagree on units: the activity endpoint reports meters while some
    callers pass kilometers they already converted. Values >= 100 are treated as
    meters. A 99 m activity and a 100 km activity are both misread by this rule.
    """
    distance = _to_number(raw_distance)
    if distance >= METERS_THRESHOLD:
        return distance / 1000
    return distance


def format_duration(seconds: Any) -> str:
    """Format seconds as 'Hh Mm Ss' without zero padding."""
    total = int(_to_number(seconds))
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    return f"{hours}h {minutes}m {secs}s"


def _round_half_up(value: float) -> int:
    # Halves round up, not to even
    return math.floor(value + 0.5)


def _first_text(*values: str | None) -> str | None:
    for value in values:
        if value and str(value).strip():
            return str(value).strip()
    return None


def normalize_activity(record: ActivityRecord | Mapping[str, Any]) -> NormalizedActivity:
    """Normalize raw telemetry.

    Args:
        record: ActivityRecord or raw activity mapping (Strava payload shape)

    Returns:
        NormalizedActivity with every field populated
    """
    if not isinstance(record, ActivityRecord):
        try:
            record = ActivityRecord.from_raw(record)
        except (TypeError, ValueError) as e:
            logger.warning(f"Telemetry is not a mapping, normalizing from defaults: {e}")
            record = ActivityRecord()

    moving_time = int(_to_number(record.moving_time))

    normalized = NormalizedActivity(
        distance_km=f"{_distance_km(record.distance):.2f}",
        duration=format_duration(moving_time),
        type=_first_text(record.sport_type, record.type) or "Unknown",
        elevation_m=_round_half_up(_to_number(record.total_elevation_gain)),
        avg_speed_kmh=f"{_to_number(record.average_speed) * MS_TO_KMH:.1f}",
        description=_first_text(record.description, record.name) or "No description",
        moving_time_s=moving_time,
    )

    logger.debug(
        "Normalized activity",
        activity_id=record.id,
        distance_km=normalized.distance_km,
        duration=normalized.duration,
        type=normalized.type,
    )
    return normalized
