"""Rule-based motivation line shown next to a meme. No LLM involved."""

from memegen.models.activity import NormalizedActivity
from memegen.models.meme import Motivation

FAST_KMH = 20.0
LONG_KM = 10.0
HILLY_M = 100


def _speed_kmh(activity: NormalizedActivity) -> float:
    speed = float(activity.avg_speed_kmh)
    if speed == 0 and activity.moving_time_s > 0:
        speed = float(activity.distance_km) / (activity.moving_time_s / 3600)
    return speed


def motivation_for(activity: NormalizedActivity) -> Motivation:
    # First matching rule wins: speed, then distance, then climbing
    if _speed_kmh(activity) > FAST_KMH:
        return Motivation(
            message="ZOOM ZOOM! You're faster than a duck being chased by a bread truck!",
            meme_text="Speed demon duck approves!",
        )
    if float(activity.distance_km) > LONG_KM:
        return Motivation(
            message="Look at you go! Even mother duck is proud of this long journey!",
            meme_text="Long distance duck salutes you!",
        )
    if activity.elevation_m > HILLY_M:
        return Motivation(
            message="Hills? More like THRILLS! You're climbing higher than a duck in an elevator!",
            meme_text="Mountain duck energy!",
        )
    return Motivation(
        message="Remember: Even a duck paddles like crazy under the surface! Keep going!",
        meme_text="Determined duck believes in you!",
    )
