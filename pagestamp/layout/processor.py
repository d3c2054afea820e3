"""
Template element processor.

Walks a unified template, resolves every visible element occurrence into a
ResolvedPaintInstruction and hands it to a backend-specific draw callback.
"""

import logging
import math
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pagestamp.core.config import TemplateConfig
from pagestamp.core.exceptions import ElementRenderFailure, UnsupportedScriptRendering
from pagestamp.core.models import (
    BoxStyle,
    Canvas,
    CircleStyle,
    Element,
    ElementKind,
    LineStyle,
    LogoStyle,
    RenderSummary,
    ResolvedPaintInstruction,
    ShadowSettings,
    Template,
    TextStyle,
)
from pagestamp.layout.coordinates import CoordinateConverter, dash_segments, normalize_rotation
from pagestamp.layout.patterns import PatternGenerator
from pagestamp.layout.substitution import substitute_variables
from pagestamp.layout.text_layout import FontSelector, layout_block, wrap_text

logger = logging.getLogger(__name__)

DrawCallback = Callable[[str, Element, ResolvedPaintInstruction, Mapping[str, Any]], None]

TEXT_KINDS = (ElementKind.TEXT, ElementKind.URL)
LINE_KINDS = (ElementKind.LINE, ElementKind.DOTTED_LINE)


def resolve_opacity(value: Any) -> float:
    """Percent opacity (missing means 100) to a 0-1 fraction."""
    if value is None or isinstance(value, bool):
        return 1.0
    try:
        percent = float(value)
    except (TypeError, ValueError):
        return 1.0
    if math.isnan(percent):
        return 1.0
    return min(max(percent / 100.0, 0.0), 1.0)


def _positive(style: Mapping[str, Any], keys: Tuple[str, ...], default: float) -> float:
    """First positive number found under ``keys``."""
    for key in keys:
        value = style.get(key)
        if isinstance(value, bool) or value is None:
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if number > 0 and not math.isinf(number):
            return number
    return float(default)


def _non_negative(style: Mapping[str, Any], key: str, default: float) -> float:
    value = style.get(key)
    if value is None or isinstance(value, bool):
        return float(default)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return float(default)
    return number if number >= 0 else float(default)


class TemplateProcessor:
    """Resolve template elements for one backend."""

    def __init__(
        self,
        font_selector: FontSelector,
        config: Optional[TemplateConfig] = None,
        patterns: Optional[PatternGenerator] = None
    ):
        self.config = config or TemplateConfig()
        self.font_selector = font_selector
        self.patterns = patterns or PatternGenerator(self.config)

    def render(
        self,
        template: Union[Template, Mapping[str, Any]],
        canvas: Canvas,
        variables: Optional[Mapping[str, Any]],
        draw_callback: DrawCallback,
        page: Optional[int] = None
    ) -> RenderSummary:
        """
        Resolve every visible element and draw it through ``draw_callback``.

        Elements are visited in the order their types appear in ``elements``
        and, within a type, in declaration order. A failure while resolving or
        drawing one element is logged and recorded; the others still draw.

        Raises:
            InvalidTemplateStructure: template is not a unified template
            InvalidCanvasDimensions: canvas has a non-positive size
        """
        template = Template.from_value(template)
        converter = CoordinateConverter(canvas)
        variables = dict(variables or {})
        summary = RenderSummary()

        for element in template.iter_elements():
            if not element.is_visible:
                summary.skipped += 1
                continue
            if element.kind is None:
                logger.debug(f"Skipping element '{element.id}' of unknown type '{element.type}'")
                summary.skipped += 1
                continue

            try:
                instructions = self.resolve(element, converter, variables)
            except Exception as e:
                self._record_failure(summary, element, page, e)
                continue

            if not instructions:
                summary.skipped += 1
                continue

            for instruction in instructions:
                try:
                    draw_callback(element.type, element, instruction, variables)
                    summary.drawn += 1
                except Exception as e:
                    self._record_failure(summary, element, page, e)

        return summary

    def _record_failure(self, summary: RenderSummary, element: Element, page: Optional[int], error: Exception):
        failure = error if isinstance(error, ElementRenderFailure) else ElementRenderFailure(
            f"Element '{element.id}' ({element.type}) failed: {error}",
            element_id=element.id,
            element_type=element.type,
            page=page,
            original_error=error
        )
        logger.warning(failure.message)
        summary.failures.append(failure)

    def resolve(
        self,
        element: Element,
        converter: CoordinateConverter,
        variables: Mapping[str, Any]
    ) -> List[ResolvedPaintInstruction]:
        """All paint instructions for one element; empty when there is nothing to draw."""
        style = element.style
        base = converter.to_absolute(element.position.x, element.position.y)
        width, height = converter.extent
        points = self.patterns.positions(
            element.pattern, base, width, height, element, converter.from_top_left
        )

        raw_rotation = element.rotation if element.is_builtin else style.get("rotation")
        try:
            rotation = normalize_rotation(float(raw_rotation or 0.0))
        except (TypeError, ValueError):
            rotation = 0.0

        shadow = ShadowSettings.from_style(style)
        shadow_offset = converter.visual_offset(shadow.offset_x, shadow.offset_y) if shadow else (0.0, 0.0)

        common = dict(
            kind=element.kind,
            element_id=element.id,
            element_type=element.type,
            opacity=resolve_opacity(style.get("opacity")),
            rotation=rotation,
            shadow=shadow,
            shadow_offset=shadow_offset,
        )

        if element.kind in TEXT_KINDS:
            return self._resolve_text(element, points, converter, variables, common)
        if element.kind in LINE_KINDS:
            line_style = self._line_style(element)
            instructions = []
            for x, y in points:
                start, end = converter.line_endpoints((x, y), line_style.length, rotation)
                if line_style.dash_array:
                    segments = tuple(dash_segments(start, end, *line_style.dash_array))
                else:
                    segments = ((start, end),)
                instructions.append(ResolvedPaintInstruction(
                    x=x, y=y, style=line_style, endpoints=(start, end), segments=segments, **common
                ))
            return instructions

        element_style = self.extract_style(element)
        return [ResolvedPaintInstruction(x=x, y=y, style=element_style, **common) for x, y in points]

    def extract_style(self, element: Element):
        """Typed style for an element, with configured defaults filled in."""
        style = element.style
        kind = element.kind
        if kind in TEXT_KINDS:
            defaults = self.config.defaults_for("url" if kind is ElementKind.URL else "text")
            return TextStyle(
                font_size=_positive(style, ("fontSize",), defaults.get("fontSize", 12)),
                color=style.get("color") or defaults.get("color", "#000000"),
                bold=bool(style.get("bold", defaults.get("bold", False))),
                italic=bool(style.get("italic", defaults.get("italic", False))),
                width=_positive(style, ("width",), defaults.get("width", 300)),
            )
        if kind is ElementKind.LOGO:
            defaults = self.config.defaults_for("logo")
            return LogoStyle(size=_positive(style, ("size",), defaults.get("size", 80)))
        if kind is ElementKind.BOX:
            defaults = self.config.defaults_for("box")
            return BoxStyle(
                width=_positive(style, ("width",), defaults.get("width", 100)),
                height=_positive(style, ("height",), defaults.get("height", 100)),
                color=style.get("color") or defaults.get("color", "#000000"),
                border_width=_non_negative(style, "borderWidth", defaults.get("borderWidth", 2)),
                fill_color=style.get("fillColor") or defaults.get("fillColor"),
            )
        if kind is ElementKind.CIRCLE:
            defaults = self.config.defaults_for("circle")
            return CircleStyle(
                radius=_positive(style, ("size", "radius"), defaults.get("size", 50)) / 2.0,
                color=style.get("color") or defaults.get("color", "#000000"),
                border_width=_non_negative(style, "borderWidth", defaults.get("borderWidth", 2)),
                fill_color=style.get("fillColor") or defaults.get("fillColor"),
            )
        if kind in LINE_KINDS:
            return self._line_style(element)
        raise ElementRenderFailure(
            f"No style extraction for kind {kind}", element_id=element.id, element_type=element.type
        )

    def _line_style(self, element: Element) -> LineStyle:
        style = element.style
        defaults = self.config.defaults_for("line")
        dash = None
        if element.kind is ElementKind.DOTTED_LINE:
            dash = self.config.dash_array
            custom = style.get("dashArray")
            if isinstance(custom, (list, tuple)) and len(custom) == 2:
                try:
                    length, gap = float(custom[0]), float(custom[1])
                    if length > 0 and gap >= 0:
                        dash = (length, gap)
                except (TypeError, ValueError):
                    logger.debug(f"Ignoring malformed dashArray on '{element.id}'")
        return LineStyle(
            length=_positive(style, ("length",), defaults.get("length", 100)),
            thickness=_positive(style, ("thickness", "borderWidth"), defaults.get("thickness", 2)),
            color=style.get("color") or defaults.get("color", "#000000"),
            dash_array=dash,
        )

    def resolve_content(self, element: Element, variables: Mapping[str, Any]) -> str:
        """Element content with defaults applied and variables substituted."""
        content = element.content
        if not content and element.type == "user-info":
            content = self.config.user_info_default_content
        if not content and element.kind is ElementKind.URL:
            content = element.href or "{{FRONTEND_URL}}"
        return substitute_variables(
            content, variables, support_system_templates=True, config=self.config
        )

    def _resolve_text(
        self,
        element: Element,
        points: List[Tuple[float, float]],
        converter: CoordinateConverter,
        variables: Mapping[str, Any],
        common: Dict[str, Any]
    ) -> List[ResolvedPaintInstruction]:
        content = self.resolve_content(element, variables)
        if not content.strip():
            return []

        style = self.extract_style(element)
        link = content.strip() if element.kind is ElementKind.URL else None
        try:
            font = self.font_selector.select(content, style.bold, style.italic)
        except UnsupportedScriptRendering:
            logger.warning(
                f"No Hebrew font for element '{element.id}', drawing fallback notice"
            )
            content = self.config.hebrew_fallback_notice
            font = self.font_selector.latin(style.bold, style.italic)

        lines = wrap_text(content, font.measure, style.font_size, style.width)
        return [
            ResolvedPaintInstruction(
                x=x,
                y=y,
                style=style,
                content=content,
                font=font,
                lines=layout_block(
                    lines, font.measure, style.font_size, (x, y),
                    converter.orientation, self.config.line_height_ratio
                ),
                rtl=bool(getattr(font, "rtl", False)),
                link=link,
                **common
            )
            for x, y in points
        ]
