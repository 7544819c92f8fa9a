"""Category markers for textures that are hard to tell apart by colour alone.

Rules are checked in a fixed order and the first rule whose pattern matches
the texture path decides the outcome. If that rule cannot derive a label
(an ore we have no symbol for, say) the texture gets no overlay at all; later
rules are not consulted.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Pattern, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from .models import OverlayDescriptor

logger = logging.getLogger(__name__)

DEFAULT_SCALE = 0.8
CORNER_SCALE = 0.5
STROKE_RATIO = 0.05
FONT_CANDIDATES = ("DejaVuSans-Bold.ttf", "DejaVuSans.ttf", "Arial Bold.ttf")

# Checked in order; "gold" must come before "nether_gold" for the same label
ORE_LABELS: Tuple[Tuple[str, str, str], ...] = (
    ("diamond", "Di", "#00ffff"),
    ("gold", "Au", "#ffd700"),
    ("iron", "Fe", "#d8d8d8"),
    ("coal", "C", "#333333"),
    ("lapis", "La", "#0000ff"),
    ("redstone", "Re", "#ff0000"),
    ("emerald", "Em", "#50c878"),
    ("copper", "Cu", "#b87333"),
    ("nether_quartz", "Q", "#ffffff"),
    ("nether_gold", "Au", "#ffd700"),
)

_WOOL_TOKEN = re.compile(r"wool_(.*)\.png$")
_LOG_TOKEN = re.compile(r"log_(.*)\.png$")


@dataclass(frozen=True)
class OverlayRule:
    category: str
    pattern: Pattern[str]
    derive: Callable[[str], Optional[OverlayDescriptor]]


def _ore_overlay(filename: str) -> Optional[OverlayDescriptor]:
    for mineral, text, color in ORE_LABELS:
        if mineral in filename:
            return OverlayDescriptor(category="ores", text=text, color=color)
    return None


def _token_initial(pattern: Pattern[str], filename: str) -> Optional[str]:
    match = pattern.search(filename)
    if not match or not match.group(1):
        return None
    return match.group(1)[0].upper()


def _wool_overlay(filename: str) -> Optional[OverlayDescriptor]:
    initial = _token_initial(_WOOL_TOKEN, filename)
    if initial is None:
        return None
    return OverlayDescriptor(
        category="wool", text=initial, color="#ffffff", position="corner"
    )


def _log_overlay(filename: str) -> Optional[OverlayDescriptor]:
    initial = _token_initial(_LOG_TOKEN, filename)
    if initial is None:
        return None
    return OverlayDescriptor(category="logs", text=initial, color="#ffffff", scale=0.5)


OVERLAY_RULES: Tuple[OverlayRule, ...] = (
    OverlayRule("ores", re.compile(r".*_ore\.png$"), _ore_overlay),
    OverlayRule("wool", re.compile(r"wool_.*\.png$"), _wool_overlay),
    OverlayRule("logs", re.compile(r"log_.*\.png$"), _log_overlay),
)


def decide(
    filename: str, rules: Sequence[OverlayRule] = OVERLAY_RULES
) -> Optional[OverlayDescriptor]:
    """Return the overlay for *filename*, or ``None`` when it gets none."""

    for rule in rules:
        if rule.pattern.search(filename):
            return rule.derive(filename)
    return None


def _load_font(size: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    for name in FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    logger.debug("No TrueType font found, using Pillow's default at %spx", size)
    return ImageFont.load_default(size=size)


def render(image: Image.Image, descriptor: Optional[OverlayDescriptor]) -> None:
    """Draw *descriptor* onto *image* in place (outlined text)."""

    if descriptor is None or not descriptor.text:
        return

    width, height = image.size
    if descriptor.position == "corner":
        centre_x, centre_y = width * 0.75, height * 0.75
        font_size = height * CORNER_SCALE
    else:
        centre_x, centre_y = width / 2, height / 2
        font_size = height * (descriptor.scale or DEFAULT_SCALE)
    centre_y += height * 0.05

    font = _load_font(max(1, round(font_size)))
    stroke = max(1, round(width * STROKE_RATIO / 2))

    draw = ImageDraw.Draw(image)
    left, top, right, bottom = draw.textbbox(
        (0, 0), descriptor.text, font=font, stroke_width=stroke
    )
    origin = (centre_x - (left + right) / 2, centre_y - (top + bottom) / 2)
    draw.text(
        origin,
        descriptor.text,
        font=font,
        fill=descriptor.color or "#ffffff",
        stroke_width=stroke,
        stroke_fill="#000000",
    )
