"""Mood classification.

Maps a normalized activity to one of the fixed mood labels. This stage is
total: any failure resolves to MoodLabel.DEFAULT and is only logged.
"""

from loguru import logger

from memegen.config.settings import Settings
from memegen.errors import ClassificationError
from memegen.llm.completion import CompletionPreset, TextCompleter
from memegen.models.activity import NormalizedActivity
from memegen.models.meme import MoodLabel

SYSTEM_PROMPT = (
    "You are an expert at analyzing workout data and determining the appropriate emotional state. "
    "You should respond with ONLY ONE of these words: tired, excited, proud, energetic, or default."
)


def mood_preset(config: Settings) -> CompletionPreset:
    return CompletionPreset(
        name="mood",
        system_prompt=SYSTEM_PROMPT,
        temperature=config.mood_temperature,
        max_tokens=config.mood_max_tokens,
        model_name=config.mood_model,
    )


def build_mood_prompt(activity: NormalizedActivity) -> str:
    return f"Based on this workout data, what would be the most appropriate emotional state?\n{activity.prompt_summary()}"


def _parse_mood(reply: str | None) -> MoodLabel:
    token = (reply or "").strip().lower()
    if not MoodLabel.is_known(token):
        raise ClassificationError(f"Unrecognized mood token: {reply!r}")
    return MoodLabel(token)


class MoodClassifier:
    def __init__(self, completer: TextCompleter, preset: CompletionPreset) -> None:
        self._completer = completer
        self._preset = preset

    async def classify(self, activity: NormalizedActivity) -> MoodLabel:
        """Classify the activity's mood. Never raises."""
        try:
            reply = await self._completer.complete(self._preset, build_mood_prompt(activity))
            mood = _parse_mood(reply)
        except ClassificationError as e:
            logger.warning(f"Mood classification fell back to default: {e}")
            return MoodLabel.DEFAULT
        except Exception as e:
            logger.warning(
                f"Mood classification call failed, falling back to default (error_type={type(e).__name__}): {e}",
            )
            return MoodLabel.DEFAULT

        logger.info("Selected mood", mood=mood.value)
        return mood
