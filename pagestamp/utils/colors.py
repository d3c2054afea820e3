"""Color parsing helpers."""

import logging
import re
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

RGB = Tuple[float, float, float]

NAMED_COLORS = {
    "black": (0.0, 0.0, 0.0),
    "white": (1.0, 1.0, 1.0),
    "red": (1.0, 0.0, 0.0),
    "green": (0.0, 0.5, 0.0),
    "blue": (0.0, 0.0, 1.0),
    "gray": (0.5, 0.5, 0.5),
    "grey": (0.5, 0.5, 0.5),
}

_RGB_FUNC = re.compile(r"rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)")


def parse_color(value: Optional[str], default: RGB = (0.0, 0.0, 0.0)) -> RGB:
    """
    Parse ``#rgb``, ``#rrggbb``, ``rgb(r, g, b)`` or a basic color name.

    Returns:
        (r, g, b) with components in [0, 1]; ``default`` when unparseable
    """
    if not value or not isinstance(value, str):
        return default
    text = value.strip().lower()

    if text in NAMED_COLORS:
        return NAMED_COLORS[text]

    match = _RGB_FUNC.match(text)
    if match:
        return tuple(min(int(c), 255) / 255.0 for c in match.groups())

    hex_color = text.lstrip("#")
    if len(hex_color) == 3:
        hex_color = "".join(c * 2 for c in hex_color)
    if len(hex_color) == 6:
        try:
            return tuple(int(hex_color[i:i + 2], 16) / 255.0 for i in (0, 2, 4))
        except ValueError:
            pass

    logger.debug(f"Could not parse color {value!r}, using default")
    return default


def rgb_to_hex(color: RGB) -> str:
    """(r, g, b) in [0, 1] to ``#rrggbb``."""
    return "#" + "".join(f"{round(min(max(c, 0.0), 1.0) * 255):02x}" for c in color)


def normalize_color(value: Optional[str], default: str = "#000000") -> str:
    """Any accepted color spelling to ``#rrggbb``."""
    return rgb_to_hex(parse_color(value, parse_color(default)))
