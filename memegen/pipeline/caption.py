"""Caption generation.

The caption is the primary visible content of a meme, so unlike mood
classification a failure here aborts the run with CaptionGenerationError.
"""

from loguru import logger

from memegen.config.settings import Settings
from memegen.errors import CaptionGenerationError
from memegen.llm.completion import CompletionPreset, TextCompleter
from memegen.models.activity import NormalizedActivity

SYSTEM_PROMPT = """You are a witty meme generator that creates funny, sarcastic, and trending captions for duck photos based on workout data.

Rules:
1. Reply with the caption only, one or two short sentences
2. You may round numbers to keep the joke punchy
3. Use the activity description for context - it often explains how the workout really went
4. No hashtags, no emojis, no quotation marks"""

QUOTE_CHARS = "\"'“”‘’"


def caption_preset(config: Settings) -> CompletionPreset:
    return CompletionPreset(
        name="caption",
        system_prompt=SYSTEM_PROMPT,
        temperature=config.caption_temperature,
        max_tokens=config.caption_max_tokens,
        model_name=config.caption_model,
    )


def build_caption_prompt(activity: NormalizedActivity) -> str:
    return (
        "Create a funny, sarcastic meme caption for a duck photo based on this workout data:\n"
        f"{activity.prompt_summary()}\n"
        f"Description: {activity.description}"
    )


def _trim_to_budget(text: str, max_chars: int | None) -> str:
    """Trim text to at most max_chars, cutting at the last word boundary."""
    if max_chars is None or len(text) <= max_chars:
        return text
    cut = text[:max_chars]
    if " " in cut:
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip(" ,;:-")


def clean_caption(reply: str, max_chars: int | None = None) -> str:
    caption = " ".join(reply.split()).strip(QUOTE_CHARS).strip()
    return _trim_to_budget(caption, max_chars)


class CaptionGenerator:
    def __init__(self, completer: TextCompleter, preset: CompletionPreset, max_chars: int | None = None) -> None:
        self._completer = completer
        self._preset = preset
        self._max_chars = max_chars

    async def generate(self, activity: NormalizedActivity) -> str:
        """Generate a caption.

        Raises:
            CaptionGenerationError: If the call fails, times out or returns empty text
        """
        try:
            reply = await self._completer.complete(self._preset, build_caption_prompt(activity))
        except TimeoutError as e:
            logger.error("Caption generation timed out")
            raise CaptionGenerationError("Caption generation timed out") from e
        except Exception as e:
            logger.error(f"Caption generation failed (error_type={type(e).__name__}): {e}")
            raise CaptionGenerationError(f"Caption generation failed: {e!s}") from e

        caption = clean_caption(reply or "", self._max_chars)
        if not caption:
            raise CaptionGenerationError("Caption generation returned empty text")

        logger.info("Generated caption", caption_length=len(caption))
        return caption
