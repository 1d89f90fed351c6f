"""Meme image composition.

Draws the stat overlay, the word-wrapped caption and the attribution label onto
the selected photo and encodes the result as JPEG. Every text element is drawn
as a dark stroke pass followed by a light fill pass so it stays legible on any
background.

Output is deterministic for identical photo, caption, stats and layout.
"""

from __future__ import annotations

import io
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from loguru import logger
from PIL import Image, ImageDraw, ImageFont

from memegen.errors import CompositionError
from memegen.models.activity import NormalizedActivity
from memegen.models.meme import MemeArtifact, MoodLabel

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont
SurfaceFactory = Callable[[Image.Image], tuple[Image.Image, ImageDraw.ImageDraw]]

ACTIVITY_ICONS: dict[str, str] = {
    "run": "»",
    "trailrun": "»",
    "virtualrun": "»",
    "ride": "⚙",
    "virtualride": "⚙",
    "ebikeride": "⚙",
    "gravelride": "⚙",
    "mountainbikeride": "⚙",
    "swim": "≈",
    "walk": "▲",
    "hike": "▲",
    "alpineski": "❄",
    "nordicski": "❄",
    "backcountryski": "❄",
    "snowboard": "❄",
    "weighttraining": "■",
    "workout": "■",
}
DEFAULT_ICON = "★"


def icon_for(activity_type: str) -> str:
    return ACTIVITY_ICONS.get(activity_type.replace(" ", "").lower(), DEFAULT_ICON)


@dataclass(frozen=True)
class LayoutConfig:
    margin: int = 20
    caption_font_size: int = 48
    caption_line_height: int = 60
    caption_bottom_margin: int = 40
    caption_stroke_width: int = 3
    stat_font_size: int = 28
    stat_line_height: int = 36
    stat_stroke_width: int = 2
    attribution_text: str = "Duck Memes x Strava"
    attribution_font_size: int = 20
    attribution_margin: int = 10
    attribution_color: str = "#FC4C02"
    fill_color: str = "white"
    stroke_color: str = "black"


class FontProvider:
    """Loads and caches fonts.

    Explicit font paths win, then common system font locations, then Pillow's
    bundled scalable default font.
    """

    REGULAR_CANDIDATES = (
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/TTF/DejaVuSans.ttf",
        "/Library/Fonts/Arial.ttf",
    )
    BOLD_CANDIDATES = (
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
        "/Library/Fonts/Impact.ttf",
    )

    def __init__(self, regular_path: str | None = None, bold_path: str | None = None) -> None:
        self._regular = [regular_path] if regular_path else []
        self._bold = [bold_path] if bold_path else []
        self._cache: dict[tuple[bool, int], Font] = {}

    def get(self, size: int, *, bold: bool = False) -> Font:
        key = (bold, size)
        if key not in self._cache:
            self._cache[key] = self._load(size, bold)
        return self._cache[key]

    def _load(self, size: int, bold: bool) -> Font:
        candidates = (self._bold + list(self.BOLD_CANDIDATES)) if bold else (self._regular + list(self.REGULAR_CANDIDATES))
        for path in candidates:
            if Path(path).exists():
                try:
                    return ImageFont.truetype(path, size)
                except OSError as e:
                    logger.warning(f"Could not load font {path}: {e}")
        logger.debug(f"No system font found, using Pillow default font (size={size}, bold={bold})")
        return ImageFont.load_default(size=size)


def pillow_surface(photo: Image.Image) -> tuple[Image.Image, ImageDraw.ImageDraw]:
    """Acquire an off-screen RGB canvas holding a copy of the photo."""
    canvas = photo.convert("RGB")
    return canvas, ImageDraw.Draw(canvas)


def wrap_caption(text: str, measure: Callable[[str], float], max_width: float) -> list[str]:
    """Greedy word wrap.

    Words are added to the current line while the measured width stays under
    max_width. A word that is wider than max_width on its own gets its own line,
    unbroken. Empty text yields no lines.
    """
    words = text.split()
    if not words:
        return []

    lines: list[str] = []
    current = words[0]
    for word in words[1:]:
        candidate = f"{current} {word}"
        if measure(candidate) < max_width:
            current = candidate
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


def stat_lines(activity: NormalizedActivity) -> list[str]:
    return [
        f"{icon_for(activity.type)} {activity.type}",
        f"Distance: {activity.distance_km} km",
        f"Time: {activity.duration}",
        f"Avg Speed: {activity.avg_speed_kmh} km/h",
    ]


class ImageComposer:
    def __init__(
        self,
        *,
        quality: int = 90,
        layout: LayoutConfig | None = None,
        fonts: FontProvider | None = None,
        surface_factory: SurfaceFactory = pillow_surface,
    ) -> None:
        self._quality = quality
        self._layout = layout or LayoutConfig()
        self._fonts = fonts or FontProvider()
        self._surface_factory = surface_factory

    def _draw_outlined(
        self,
        draw: ImageDraw.ImageDraw,
        xy: tuple[int, int],
        text: str,
        font: Font,
        *,
        fill: str,
        stroke_width: int,
        anchor: str,
    ) -> None:
        # Stroke first, fill second. Reversing the order hides the fill.
        stroke = self._layout.stroke_color
        draw.text(xy, text, font=font, fill=stroke, anchor=anchor, stroke_width=stroke_width, stroke_fill=stroke)
        draw.text(xy, text, font=font, fill=fill, anchor=anchor)

    def _draw_stats(self, draw: ImageDraw.ImageDraw, activity: NormalizedActivity) -> None:
        layout = self._layout
        font = self._fonts.get(layout.stat_font_size)
        for index, line in enumerate(stat_lines(activity)):
            xy = (layout.margin, layout.margin + index * layout.stat_line_height)
            self._draw_outlined(
                draw, xy, line, font, fill=layout.fill_color, stroke_width=layout.stat_stroke_width, anchor="la"
            )

    def _draw_caption(self, draw: ImageDraw.ImageDraw, caption: str, width: int, height: int) -> list[str]:
        layout = self._layout
        font = self._fonts.get(layout.caption_font_size, bold=True)
        lines = wrap_caption(caption, lambda text: draw.textlength(text, font=font), width - layout.margin)

        top = height - layout.caption_bottom_margin - layout.caption_line_height * len(lines)
        for index, line in enumerate(lines):
            xy = (width // 2, top + index * layout.caption_line_height)
            self._draw_outlined(
                draw, xy, line, font, fill=layout.fill_color, stroke_width=layout.caption_stroke_width, anchor="ma"
            )
        return lines

    def _draw_attribution(self, draw: ImageDraw.ImageDraw, width: int, height: int) -> None:
        layout = self._layout
        font = self._fonts.get(layout.attribution_font_size, bold=True)
        xy = (width - layout.attribution_margin, height - layout.attribution_margin)
        self._draw_outlined(
            draw,
            xy,
            layout.attribution_text,
            font,
            fill=layout.attribution_color,
            stroke_width=1,
            anchor="rd",
        )

    def render(self, photo_bytes: bytes, caption: str, activity: NormalizedActivity) -> bytes:
        """Compose and encode the meme image.

        Raises:
            CompositionError: If the photo cannot be decoded, drawn on or encoded
        """
        try:
            with Image.open(io.BytesIO(photo_bytes)) as photo:
                photo.load()
                canvas, draw = self._surface_factory(photo)

            width, height = canvas.size
            self._draw_stats(draw, activity)
            lines = self._draw_caption(draw, caption, width, height)
            self._draw_attribution(draw, width, height)

            buffer = io.BytesIO()
            canvas.save(buffer, format="JPEG", quality=self._quality)
        except Exception as e:
            logger.error(f"Meme composition failed (error_type={type(e).__name__}): {e}")
            raise CompositionError(f"Failed to compose meme image: {e!s}") from e

        logger.debug("Composed meme image", width=width, height=height, caption_lines=len(lines))
        return buffer.getvalue()

    def compose(
        self,
        photo_bytes: bytes,
        caption: str,
        activity: NormalizedActivity,
        activity_id: int | str,
        *,
        mood: MoodLabel = MoodLabel.DEFAULT,
        photo_path: str = "",
    ) -> MemeArtifact:
        return MemeArtifact(
            image_bytes=self.render(photo_bytes, caption, activity),
            activity_id=activity_id,
            mood=mood,
            caption=caption,
            photo_path=photo_path,
        )
