"""
Core data models for pagestamp.

Templates arrive as JSON-like mappings and are parsed once into frozen
dataclasses. Rendering never mutates them; every render call derives its own
ResolvedPaintInstruction objects and throws them away after drawing.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import List, Dict, Optional, Any, Tuple, Mapping, Iterator, Union
import logging
import math

from .exceptions import InvalidTemplateStructure, ElementRenderFailure

logger = logging.getLogger(__name__)


LEGACY_TEMPLATE_KEYS = ("textElements", "logoElements", "urlElements")


class ElementKind(Enum):
    """Closed set of drawable element kinds."""
    LOGO = "logo"
    TEXT = "text"
    URL = "url"
    BOX = "box"
    CIRCLE = "circle"
    LINE = "line"
    DOTTED_LINE = "dotted-line"


# Template type names that map onto each element kind
ELEMENT_TYPE_ALIASES: Dict[str, ElementKind] = {
    "logo": ElementKind.LOGO,
    "watermark-logo": ElementKind.LOGO,
    "text": ElementKind.TEXT,
    "free-text": ElementKind.TEXT,
    "copyright-text": ElementKind.TEXT,
    "user-info": ElementKind.TEXT,
    "watermark-text": ElementKind.TEXT,
    "url": ElementKind.URL,
    "box": ElementKind.BOX,
    "circle": ElementKind.CIRCLE,
    "line": ElementKind.LINE,
    "dotted-line": ElementKind.DOTTED_LINE,
}

# Built-in types keep rotation on the element, custom ones inside style
BUILTIN_ELEMENT_TYPES = frozenset([
    "logo", "text", "url", "copyright-text", "user-info", "watermark-logo"
])


def resolve_kind(type_name: Optional[str]) -> Optional[ElementKind]:
    """Map a template type name to its element kind, or None if unknown."""
    if not type_name:
        return None
    return ELEMENT_TYPE_ALIASES.get(str(type_name).strip().lower())


class Orientation(Enum):
    """Coordinate system of the target medium."""
    PDF = "pdf"  # origin bottom-left, Y up
    SVG = "svg"  # origin top-left, Y down


class PatternKind(Enum):
    """Repetition strategy for an element."""
    SINGLE = "single"
    GRID = "grid"
    SCATTERED = "scattered"

    @classmethod
    def parse(cls, value: Any) -> "PatternKind":
        if isinstance(value, PatternKind):
            return value
        if value is None or value == "":
            return cls.SINGLE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning(f"Unknown pattern '{value}', using single placement")
            return cls.SINGLE


def _as_float(value: Any, default: float) -> float:
    """Coerce a loosely typed JSON value to float."""
    if isinstance(value, bool) or value is None:
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


@dataclass(frozen=True)
class ViewBox:
    """SVG viewBox in user units."""
    min_x: float
    min_y: float
    width: float
    height: float

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ViewBox"]:
        """Parse a ``viewBox`` attribute; malformed values yield None."""
        if not value:
            return None
        parts = value.replace(",", " ").split()
        if len(parts) != 4:
            return None
        try:
            numbers = [float(p) for p in parts]
        except ValueError:
            return None
        return cls(*numbers)


@dataclass(frozen=True)
class Canvas:
    """Drawing surface: a PDF page or an SVG document."""
    width: float
    height: float
    orientation: Orientation = Orientation.PDF
    view_box: Optional[ViewBox] = None


@dataclass(frozen=True)
class Position:
    """Percentage position, origin at the top-left of the canvas."""
    x: float = 50.0
    y: float = 50.0

    @classmethod
    def from_value(cls, value: Any) -> "Position":
        if not isinstance(value, Mapping):
            return cls()
        x = min(max(_as_float(value.get("x"), 50.0), 0.0), 100.0)
        y = min(max(_as_float(value.get("y"), 50.0), 0.0), 100.0)
        return cls(x, y)


@dataclass(frozen=True)
class ShadowSettings:
    """Drop shadow painted underneath an element."""
    offset_x: float = 0.0  # visual offset, positive is right
    offset_y: float = 0.0  # visual offset, positive is down
    blur: float = 0.0
    color: str = "#000000"
    opacity: float = 0.5  # 0-1

    @classmethod
    def from_style(cls, style: Mapping[str, Any]) -> Optional["ShadowSettings"]:
        """Return shadow settings when ``style.shadow.enabled`` is set."""
        shadow = style.get("shadow") if style else None
        if not isinstance(shadow, Mapping) or not shadow.get("enabled"):
            return None
        opacity = _as_float(shadow.get("opacity"), 50.0)
        return cls(
            offset_x=_as_float(shadow.get("offsetX"), 0.0),
            offset_y=_as_float(shadow.get("offsetY"), 0.0),
            blur=_as_float(shadow.get("blur"), 0.0),
            color=shadow.get("color") or "#000000",
            opacity=min(max(opacity / 100.0, 0.0), 1.0),
        )


@dataclass(frozen=True)
class Element:
    """One placeable unit of a template."""
    id: str
    group: str  # key of the ``elements`` mapping it was declared under
    type: str
    kind: Optional[ElementKind]
    position: Position = field(default_factory=Position)
    style: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    content: str = ""
    href: str = ""
    pattern: PatternKind = PatternKind.SINGLE
    visible: bool = True
    hidden: bool = False
    rotation: float = 0.0  # element-level rotation for built-in types
    grid_spacing: Optional[Tuple[float, float]] = None
    scatter_density: Optional[float] = None

    @property
    def is_visible(self) -> bool:
        """Skipped when ``visible`` is False or ``hidden`` is True."""
        return self.visible is not False and self.hidden is not True

    @property
    def is_builtin(self) -> bool:
        return self.group in BUILTIN_ELEMENT_TYPES

    @classmethod
    def from_dict(cls, group: str, data: Mapping[str, Any], index: int = 0) -> "Element":
        """Parse one element mapping declared under ``group``."""
        type_name = str(data.get("type") or group)
        kind = resolve_kind(group) or resolve_kind(type_name)
        if kind is ElementKind.LINE and type_name == "dotted-line":
            kind = ElementKind.DOTTED_LINE

        style = data.get("style")
        style = MappingProxyType(dict(style)) if isinstance(style, Mapping) else MappingProxyType({})

        grid_spacing = None
        spacing = data.get("gridSpacing")
        if isinstance(spacing, Mapping):
            sx = _as_float(spacing.get("x"), 0.0)
            sy = _as_float(spacing.get("y"), 0.0)
            if sx > 0 and sy > 0:
                grid_spacing = (sx, sy)

        density = data.get("scatterDensity")
        scatter_density = _as_float(density, -1.0) if density is not None else None
        if scatter_density is not None and scatter_density < 0:
            scatter_density = None

        content = data.get("content")
        href = data.get("href")

        return cls(
            id=str(data.get("id") or f"{group}-{index}"),
            group=group,
            type=type_name,
            kind=kind,
            position=Position.from_value(data.get("position")),
            style=style,
            content="" if content is None else str(content),
            href="" if href is None else str(href),
            pattern=PatternKind.parse(data.get("pattern")),
            visible=data.get("visible") is not False,
            hidden=data.get("hidden") is True,
            rotation=_as_float(data.get("rotation"), 0.0),
            grid_spacing=grid_spacing,
            scatter_density=scatter_density,
        )


@dataclass(frozen=True)
class GlobalSettings:
    """Template-wide settings."""
    layer_behind_content: bool = False
    extras: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_value(cls, value: Any) -> "GlobalSettings":
        if not isinstance(value, Mapping):
            return cls()
        extras = {k: v for k, v in value.items() if k != "layerBehindContent"}
        return cls(
            layer_behind_content=bool(value.get("layerBehindContent", False)),
            extras=MappingProxyType(extras),
        )


@dataclass(frozen=True)
class Template:
    """Unified template: ordered element groups plus global settings."""
    groups: Tuple[Tuple[str, Tuple[Element, ...]], ...]
    global_settings: GlobalSettings = field(default_factory=GlobalSettings)

    def iter_elements(self) -> Iterator[Element]:
        """Elements in type order, then declaration order."""
        for _, elements in self.groups:
            yield from elements

    @property
    def element_count(self) -> int:
        return sum(len(elements) for _, elements in self.groups)

    @classmethod
    def from_value(cls, value: Union["Template", Mapping[str, Any]]) -> "Template":
        if isinstance(value, Template):
            return value
        return cls.from_dict(value)

    @classmethod
    def from_dict(cls, data: Any) -> "Template":
        """
        Parse a unified template.

        Raises:
            InvalidTemplateStructure: if ``elements`` is missing, empty or not
                a mapping. Legacy flat-array templates are rejected.
        """
        if not isinstance(data, Mapping):
            raise InvalidTemplateStructure(
                f"Template must be a mapping, got {type(data).__name__}"
            )

        found_keys = [str(k) for k in data.keys()]
        elements = data.get("elements")
        if elements is None:
            legacy = [k for k in LEGACY_TEMPLATE_KEYS if k in data]
            if legacy:
                raise InvalidTemplateStructure(
                    f"Legacy template shape is not supported (found {', '.join(legacy)})",
                    found_keys=found_keys
                )
            raise InvalidTemplateStructure(
                "Template has no 'elements' mapping", found_keys=found_keys
            )
        if not isinstance(elements, Mapping):
            raise InvalidTemplateStructure(
                f"Template 'elements' must be a mapping, got {type(elements).__name__}",
                found_keys=found_keys
            )
        if not elements:
            raise InvalidTemplateStructure(
                "Template 'elements' mapping is empty", found_keys=found_keys
            )

        groups = []
        for group, items in elements.items():
            if not isinstance(items, (list, tuple)):
                logger.warning(f"Element group '{group}' is not a list, skipping")
                continue
            parsed = []
            for index, item in enumerate(items):
                if not isinstance(item, Mapping):
                    logger.warning(f"Element {index} in '{group}' is not a mapping, skipping")
                    continue
                parsed.append(Element.from_dict(str(group), item, index))
            groups.append((str(group), tuple(parsed)))

        return cls(
            groups=tuple(groups),
            global_settings=GlobalSettings.from_value(data.get("globalSettings")),
        )


# Per-kind resolved styles

@dataclass(frozen=True)
class TextStyle:
    font_size: float = 12.0
    color: str = "#000000"
    bold: bool = False
    italic: bool = False
    width: float = 300.0  # wrap width


@dataclass(frozen=True)
class LogoStyle:
    size: float = 80.0  # drawn width; height follows the aspect ratio


@dataclass(frozen=True)
class BoxStyle:
    width: float = 100.0
    height: float = 100.0
    color: str = "#000000"
    border_width: float = 2.0
    fill_color: Optional[str] = None


@dataclass(frozen=True)
class CircleStyle:
    radius: float = 25.0
    color: str = "#000000"
    border_width: float = 2.0
    fill_color: Optional[str] = None


@dataclass(frozen=True)
class LineStyle:
    length: float = 100.0
    thickness: float = 2.0
    color: str = "#000000"
    dash_array: Optional[Tuple[float, float]] = None  # set for dotted lines


ElementStyle = Union[TextStyle, LogoStyle, BoxStyle, CircleStyle, LineStyle]


@dataclass(frozen=True)
class PlacedLine:
    """One wrapped text line with its baseline-center in canvas coordinates."""
    text: str
    x: float
    y: float
    width: float


@dataclass(frozen=True)
class ResolvedPaintInstruction:
    """Fully computed, renderer-agnostic description of one element occurrence."""
    kind: ElementKind
    element_id: str
    element_type: str
    x: float
    y: float
    opacity: float
    rotation: float  # clockwise degrees, as seen on screen
    style: ElementStyle
    shadow: Optional[ShadowSettings] = None
    shadow_offset: Tuple[float, float] = (0.0, 0.0)  # in canvas coordinates
    content: str = ""
    font: Any = None  # FontHandle for text kinds
    lines: Tuple[PlacedLine, ...] = ()
    rtl: bool = False
    link: Optional[str] = None
    # Line kinds: rotated endpoints, and the dashes to paint for dotted lines
    endpoints: Optional[Tuple[Tuple[float, float], Tuple[float, float]]] = None
    segments: Tuple[Tuple[Tuple[float, float], Tuple[float, float]], ...] = ()


@dataclass
class RenderSummary:
    """Outcome of one render call."""
    drawn: int = 0
    skipped: int = 0
    failures: List[ElementRenderFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    def merge(self, other: "RenderSummary") -> "RenderSummary":
        self.drawn += other.drawn
        self.skipped += other.skipped
        self.failures.extend(other.failures)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "drawn": self.drawn,
            "skipped": self.skipped,
            "failed": self.failed,
            "failures": [f.to_dict() for f in self.failures],
        }
