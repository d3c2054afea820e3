"""
Shared, read-only rendering resources.

A RenderContext is built once per process and passed into every render call.
Fonts, the logo image and the placeholder document are loaded lazily on first
use and cached; callers only ever read them.
"""

from __future__ import annotations
import base64
import io
import logging
import random
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

import fitz  # PyMuPDF
from PIL import Image

from pagestamp.core.config import TemplateConfig
from pagestamp.layout.patterns import PatternGenerator
from pagestamp.layout.text_layout import FontSelector
from pagestamp.rendering.font_resolver import FontResolver
from pagestamp.rendering.placeholder import load_placeholder_document
from pagestamp.utils.colors import parse_color

logger = logging.getLogger(__name__)

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
JPEG_MAGIC = b"\xff\xd8\xff"

HEBREW_FAMILY = "'Noto Sans Hebrew', 'Arial Hebrew', sans-serif"
LATIN_FAMILY = "Helvetica, Arial, sans-serif"

# Base-14 Helvetica faces built into MuPDF
LATIN_FACES = {
    "regular": ("helv", "normal", "normal"),
    "bold": ("hebo", "bold", "normal"),
    "italic": ("heit", "normal", "italic"),
    "boldItalic": ("hebi", "bold", "italic"),
}


def detect_image_format(data: bytes) -> Optional[str]:
    """``png`` or ``jpeg`` from magic bytes, else None."""
    if data.startswith(PNG_MAGIC):
        return "png"
    if data.startswith(JPEG_MAGIC):
        return "jpeg"
    return None


@dataclass(eq=False)
class FontHandle:
    """A font usable for measuring and drawing text."""
    name: str
    family: str  # CSS font-family for SVG output
    font: Optional[fitz.Font] = None  # None for CSS-only faces
    weight: str = "normal"
    style: str = "normal"
    rtl: bool = False
    path: Optional[Path] = None

    def measure(self, text: str, font_size: float) -> float:
        """Advance width of ``text`` at ``font_size``."""
        if not text:
            return 0.0
        if self.font is None:
            # Average glyph width for faces we cannot load
            return len(text) * font_size * 0.5
        return self.font.text_length(text, fontsize=font_size)


@dataclass(eq=False)
class LogoAsset:
    """Decoded logo image."""
    data: bytes
    format: str
    width: int
    height: int
    _image: Optional[Image.Image] = field(default=None, repr=False)

    @classmethod
    def from_bytes(cls, data: bytes) -> "LogoAsset":
        fmt = detect_image_format(data)
        if fmt is None:
            raise ValueError("Logo must be a PNG or JPEG image")
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            image = img.convert("RGBA")
        return cls(data=data, format=fmt, width=image.width, height=image.height, _image=image)

    @property
    def mime_type(self) -> str:
        return "image/png" if self.format == "png" else "image/jpeg"

    @property
    def aspect(self) -> float:
        return self.height / self.width if self.width else 1.0

    def scaled_size(self, size: float) -> Tuple[float, float]:
        """Drawn width equals ``size``; height keeps the aspect ratio."""
        return size, size * self.aspect

    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def render_png(self, opacity: float = 1.0, rotation: float = 0.0,
                   silhouette: Optional[str] = None) -> bytes:
        """
        PNG bytes with opacity (and optionally clockwise rotation) baked in.

        With ``silhouette`` set to a color, every opaque pixel takes that color,
        which is what a drop shadow needs.
        """
        image = self._image.copy()
        if silhouette is not None:
            r, g, b = (round(c * 255) for c in parse_color(silhouette))
            fill = Image.new("RGBA", image.size, (r, g, b, 255))
            fill.putalpha(image.getchannel("A"))
            image = fill
        if opacity < 1.0:
            alpha = image.getchannel("A").point(lambda a: round(a * max(opacity, 0.0)))
            image.putalpha(alpha)
        if rotation:
            # PIL rotates counter-clockwise
            image = image.rotate(-rotation, resample=Image.BICUBIC, expand=True)
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()


class RenderContext:
    """Fonts, logo and placeholder shared by all render calls."""

    def __init__(self, config: Optional[TemplateConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or TemplateConfig()
        self.rng = rng or random.Random()
        # MuPDF is not thread-safe; every fitz call on shared state holds this
        self.lock = threading.RLock()
        self.patterns = PatternGenerator(self.config, self.rng)
        self.font_resolver = FontResolver(self.config)

        self._latin_fonts: Optional[Dict[str, FontHandle]] = None
        self._hebrew_fonts: Optional[Dict[str, FontHandle]] = None
        self._logo: Optional[LogoAsset] = None
        self._logo_loaded = False
        self._placeholder: Optional[fitz.Document] = None

    @property
    def latin_fonts(self) -> Dict[str, FontHandle]:
        with self.lock:
            if self._latin_fonts is None:
                self._latin_fonts = {
                    key: FontHandle(name=name, family=LATIN_FAMILY, font=fitz.Font(name),
                                    weight=weight, style=style)
                    for key, (name, weight, style) in LATIN_FACES.items()
                }
            return self._latin_fonts

    @property
    def hebrew_fonts(self) -> Dict[str, FontHandle]:
        """Embeddable Hebrew faces; empty when no font file is available."""
        with self.lock:
            if self._hebrew_fonts is None:
                self._hebrew_fonts = {}
                for style, path in self.font_resolver.hebrew_fonts().items():
                    try:
                        font = fitz.Font(fontbuffer=Path(path).read_bytes())
                    except Exception as e:
                        logger.warning(f"Could not load Hebrew font {path}: {e}")
                        continue
                    self._hebrew_fonts[style] = FontHandle(
                        name=f"hebrew-{style}", family=HEBREW_FAMILY, font=font,
                        weight="bold" if style == "bold" else "normal", rtl=True, path=Path(path)
                    )
                if "regular" not in self._hebrew_fonts:
                    if self._hebrew_fonts:
                        logger.warning("Hebrew bold face found without a regular face, ignoring it")
                    self._hebrew_fonts = {}
                    logger.warning("No Hebrew font available, Hebrew text will use the fallback notice in PDF output")
            return self._hebrew_fonts

    def font_selector(self, embedded: bool = True) -> FontSelector:
        """
        Font selector for a backend.

        PDF output embeds glyphs and needs real Hebrew faces. SVG output only
        names a font family, so CSS-only Hebrew faces stand in when no font
        file is installed.
        """
        hebrew = self.hebrew_fonts
        if not hebrew and not embedded:
            hebrew = {
                "regular": FontHandle(name="hebrew-regular", family=HEBREW_FAMILY, rtl=True),
                "bold": FontHandle(name="hebrew-bold", family=HEBREW_FAMILY, weight="bold", rtl=True),
            }
        return FontSelector(self.latin_fonts, hebrew)

    @property
    def logo(self) -> Optional[LogoAsset]:
        """The configured logo, or None when missing or unreadable."""
        with self.lock:
            if not self._logo_loaded:
                self._logo_loaded = True
                path = Path(self.config.logo_path)
                if not path.exists():
                    logger.warning(f"Logo not found at {path}, logos will use the text fallback")
                else:
                    try:
                        self._logo = LogoAsset.from_bytes(path.read_bytes())
                    except (OSError, ValueError) as e:
                        logger.warning(f"Could not load logo {path}: {e}")
            return self._logo

    @property
    def placeholder(self) -> fitz.Document:
        """Single-page placeholder document. Never modify it."""
        with self.lock:
            if self._placeholder is None:
                self._placeholder = load_placeholder_document(self.config)
            return self._placeholder

    def close(self) -> None:
        with self.lock:
            if self._placeholder is not None:
                self._placeholder.close()
                self._placeholder = None
