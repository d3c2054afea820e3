"""
Text layout: word wrapping, block centering and script-aware font selection.
"""

import logging
import re
from typing import Any, Callable, List, Mapping, Optional, Tuple

from pagestamp.core.exceptions import UnsupportedScriptRendering
from pagestamp.core.models import Orientation, PlacedLine

logger = logging.getLogger(__name__)

MeasureFn = Callable[[str, float], float]

HEBREW_PATTERN = re.compile("[\u0590-\u05FF]")


def contains_hebrew(text: Optional[str]) -> bool:
    """True if any code point falls in the Hebrew block (U+0590-U+05FF)."""
    return bool(text) and HEBREW_PATTERN.search(text) is not None


def line_height(font_size: float, ratio: float = 1.2) -> float:
    return font_size * ratio


def _wrap_paragraph(words: List[str], measure: MeasureFn, font_size: float, max_width: float) -> List[str]:
    lines = []
    current = ""
    for word in words:
        candidate = f"{current} {word}" if current else word
        if measure(candidate, font_size) <= max_width:
            current = candidate
        elif current:
            lines.append(current)
            current = word
        else:
            # A single word wider than the box stays whole on its own line
            lines.append(word)
    if current:
        lines.append(current)
    return lines


def wrap_text(text: Optional[str], measure: MeasureFn, font_size: float, max_width: float) -> List[str]:
    """
    Greedy word wrap.

    Explicit newlines start new paragraphs. A word wider than ``max_width``
    is placed alone on its line and never split. Empty or whitespace-only
    input yields a single empty line.

    Args:
        text: Text to wrap
        measure: Function returning the width of a fragment at a font size
        font_size: Font size passed to ``measure``
        max_width: Maximum line width

    Returns:
        List of lines
    """
    if not text or not text.strip():
        return [""]

    lines: List[str] = []
    for paragraph in text.split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        lines.extend(_wrap_paragraph(words, measure, font_size, max_width))

    # Leading/trailing blank paragraphs carry no ink
    while len(lines) > 1 and not lines[-1]:
        lines.pop()
    while len(lines) > 1 and not lines[0]:
        lines.pop(0)
    return lines


def layout_block(
    lines: List[str],
    measure: MeasureFn,
    font_size: float,
    center: Tuple[float, float],
    orientation: Orientation = Orientation.PDF,
    line_height_ratio: float = 1.2
) -> Tuple[PlacedLine, ...]:
    """
    Center a block of lines on ``center``.

    The first baseline sits ``n * lh / 2 - lh / 2`` above the center and each
    following line steps down by one line height. ``x`` of each placed line
    is its left edge so that the line is centered on ``center[0]``.
    """
    lh = line_height(font_size, line_height_ratio)
    offset = len(lines) * lh / 2.0 - lh / 2.0
    # Up is +y on a PDF page and -y in SVG
    direction = 1.0 if orientation is Orientation.PDF else -1.0
    cx, cy = center

    placed = []
    for index, line in enumerate(lines):
        width = measure(line, font_size) if line else 0.0
        baseline = cy + direction * (offset - index * lh)
        placed.append(PlacedLine(text=line, x=cx - width / 2.0, y=baseline, width=width))
    return tuple(placed)


class FontSelector:
    """
    Pick a font handle for a piece of content.

    ``latin_fonts`` is keyed by ``regular``, ``bold``, ``italic`` and
    ``boldItalic``; ``hebrew_fonts`` by ``regular`` and ``bold``. Hebrew fonts
    have no italic, so italic is dropped for Hebrew content.
    """

    def __init__(self, latin_fonts: Mapping[str, Any], hebrew_fonts: Optional[Mapping[str, Any]] = None):
        self.latin_fonts = dict(latin_fonts)
        self.hebrew_fonts = dict(hebrew_fonts or {})
        if "regular" not in self.latin_fonts:
            raise ValueError("A regular Latin font is required")

    @property
    def has_hebrew(self) -> bool:
        return self.hebrew_fonts.get("regular") is not None

    def latin(self, bold: bool = False, italic: bool = False) -> Any:
        if bold and italic and self.latin_fonts.get("boldItalic"):
            return self.latin_fonts["boldItalic"]
        if bold and self.latin_fonts.get("bold"):
            return self.latin_fonts["bold"]
        if italic and self.latin_fonts.get("italic"):
            return self.latin_fonts["italic"]
        return self.latin_fonts["regular"]

    def select(self, content: str, bold: bool = False, italic: bool = False) -> Any:
        """
        Font for ``content``.

        Raises:
            UnsupportedScriptRendering: Hebrew content and no Hebrew font
        """
        if not contains_hebrew(content):
            return self.latin(bold, italic)
        if not self.has_hebrew:
            raise UnsupportedScriptRendering(content)
        if italic:
            logger.debug("Italic requested for Hebrew text, using upright face")
        if bold and self.hebrew_fonts.get("bold") is not None:
            return self.hebrew_fonts["bold"]
        return self.hebrew_fonts["regular"]
