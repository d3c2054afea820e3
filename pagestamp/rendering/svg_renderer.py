"""
SVG renderer.

Builds SVG nodes for resolved template instructions with lxml and collects
them in a dedicated ``<g id="template-layer">`` group, so nodes of the
original document are never modified.
"""

import base64
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from lxml import etree

from pagestamp.core.exceptions import DocumentProcessingFailure, ElementRenderFailure
from pagestamp.core.models import (
    Canvas,
    Element,
    ElementKind,
    Orientation,
    RenderSummary,
    ResolvedPaintInstruction,
    Template,
    ViewBox,
)
from pagestamp.layout.processor import TemplateProcessor
from pagestamp.rendering.context import RenderContext
from pagestamp.utils.colors import normalize_color, rgb_to_hex

logger = logging.getLogger(__name__)

XLINK_NS = "http://www.w3.org/1999/xlink"
LAYER_ID = "template-layer"


def _num(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def parse_length(value: Optional[str]) -> Optional[float]:
    """Numeric value of a width/height attribute; None for percentages or junk."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("%"):
        return None
    for unit in ("px", "pt", "mm", "cm", "in", "em"):
        if text.endswith(unit):
            text = text[:-len(unit)].strip()
            break
    try:
        number = float(text)
    except ValueError:
        return None
    return number if number > 0 else None


class SVGRenderer:
    """Stamp templates onto SVG documents."""

    def __init__(self, context: Optional[RenderContext] = None):
        self.context = context or RenderContext()
        self.config = self.context.config
        self.processor = TemplateProcessor(
            self.context.font_selector(embedded=False), self.config, self.context.patterns
        )
        self._builders: Dict[ElementKind, Callable[..., None]] = {
            ElementKind.LOGO: self._add_logo,
            ElementKind.TEXT: self._add_text,
            ElementKind.URL: self._add_url,
            ElementKind.BOX: self._add_box,
            ElementKind.CIRCLE: self._add_circle,
            ElementKind.LINE: self._add_line,
            ElementKind.DOTTED_LINE: self._add_line,
        }

    def apply_template(
        self,
        svg: Union[str, bytes],
        template: Union[Template, Mapping[str, Any]],
        variables: Optional[Mapping[str, Any]] = None
    ) -> str:
        """Return ``svg`` with the template layer added."""
        return self.render(svg, template, variables)[0]

    def render(
        self,
        svg: Union[str, bytes],
        template: Union[Template, Mapping[str, Any]],
        variables: Optional[Mapping[str, Any]] = None
    ) -> Tuple[str, RenderSummary]:
        """
        Add the template layer to ``svg``.

        Returns:
            (SVG text, RenderSummary)

        Raises:
            InvalidTemplateStructure: template is not a unified template
            DocumentProcessingFailure: ``svg`` is not an SVG document
        """
        template = Template.from_value(template)
        root = self._parse(svg)
        canvas = self.canvas_for(root)

        layer = etree.SubElement(root, self._tag(root, "g"))
        layer.set("id", LAYER_ID)
        if template.global_settings.layer_behind_content:
            root.remove(layer)
            root.insert(0, layer)
            layer.set("opacity", _num(self.config.layer_behind_opacity))

        merged = {"page": "1", "pageNumber": "1", "totalPages": "1"}
        merged.update(variables or {})

        def draw(element_type: str, element: Element, instruction: ResolvedPaintInstruction, _vars):
            builder = self._builders.get(instruction.kind)
            if builder is None:
                raise ElementRenderFailure(
                    f"SVG renderer cannot draw {instruction.kind}",
                    element_id=instruction.element_id,
                    element_type=instruction.element_type
                )
            builder(layer, instruction)

        with self.context.lock:
            summary = self.processor.render(template, canvas, merged, draw)
        logger.debug(
            f"SVG: drew {summary.drawn}, skipped {summary.skipped}, failed {summary.failed}"
        )

        output = etree.tostring(root, encoding="unicode")
        if self._had_declaration(svg):
            output = '<?xml version="1.0" encoding="UTF-8"?>\n' + output
        return output, summary

    def canvas_for(self, root) -> Canvas:
        """Canvas from width/height/viewBox, falling back to the configured size."""
        view_box = ViewBox.parse(root.get("viewBox"))
        width = parse_length(root.get("width"))
        height = parse_length(root.get("height"))
        if width is None:
            width = view_box.width if view_box and view_box.width > 0 else self.config.svg_default_width
        if height is None:
            height = view_box.height if view_box and view_box.height > 0 else self.config.svg_default_height
        return Canvas(width, height, Orientation.SVG, view_box)

    # Parsing

    @staticmethod
    def _parse(svg: Union[str, bytes]):
        if not svg:
            raise DocumentProcessingFailure("Source SVG is empty")
        data = svg.encode("utf-8") if isinstance(svg, str) else svg
        parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=False)
        try:
            root = etree.fromstring(data, parser=parser)
        except etree.XMLSyntaxError as e:
            raise DocumentProcessingFailure(f"Could not parse SVG: {e}", original_error=e) from e
        if etree.QName(root).localname != "svg":
            raise DocumentProcessingFailure(
                f"Root element is <{etree.QName(root).localname}>, expected <svg>"
            )
        return root

    @staticmethod
    def _had_declaration(svg: Union[str, bytes]) -> bool:
        head = svg[:64] if isinstance(svg, str) else svg[:64].decode("utf-8", "ignore")
        return head.lstrip().startswith("<?xml")

    @staticmethod
    def _tag(node, name: str) -> str:
        namespace = etree.QName(node).namespace
        return f"{{{namespace}}}{name}" if namespace else name

    def _node(self, parent, name: str, **attrs):
        node = etree.SubElement(parent, self._tag(parent, name))
        for key, value in attrs.items():
            if value is not None:
                node.set(key.replace("_", "-"), value)
        return node

    @staticmethod
    def _rotate(instruction: ResolvedPaintInstruction, dx: float = 0.0, dy: float = 0.0) -> Optional[str]:
        if not instruction.rotation:
            return None
        return (
            f"rotate({_num(instruction.rotation)} "
            f"{_num(instruction.x + dx)} {_num(instruction.y + dy)})"
        )

    def _blur_filter(self, layer, instruction: ResolvedPaintInstruction) -> Optional[str]:
        if not instruction.shadow or instruction.shadow.blur <= 0:
            return None
        filter_id = f"shadow-blur-{instruction.element_id}"
        if not any(child.get("id") == filter_id for child in layer):
            node = self._node(layer, "filter", id=filter_id)
            self._node(node, "feGaussianBlur", stdDeviation=_num(instruction.shadow.blur / 2.0))
        return f"url(#{filter_id})"

    # Builders

    def _text_node(self, parent, instruction: ResolvedPaintInstruction, color: str, opacity: float,
                   offset: Tuple[float, float] = (0.0, 0.0), filter_ref: Optional[str] = None):
        style = instruction.style
        font = instruction.font
        dx, dy = offset
        node = self._node(
            parent, "text",
            x=_num(instruction.x + dx),
            y=_num(instruction.y + dy),
            font_size=_num(style.font_size),
            font_family=font.family,
            font_weight="bold" if style.bold else None,
            font_style="italic" if style.italic and not instruction.rtl else None,
            fill=color,
            opacity=_num(opacity),
            text_anchor="middle",
            direction="rtl" if instruction.rtl else None,
            transform=self._rotate(instruction, dx, dy),
            filter=filter_ref,
        )
        for line in instruction.lines:
            if not line.text:
                continue
            tspan = self._node(
                node, "tspan",
                x=_num(line.x + line.width / 2.0 + dx),
                y=_num(line.y + dy),
            )
            tspan.text = line.text
        return node

    def _add_text(self, layer, instruction: ResolvedPaintInstruction, parent=None) -> None:
        parent = layer if parent is None else parent
        if instruction.shadow:
            self._text_node(
                parent, instruction, normalize_color(instruction.shadow.color), instruction.shadow.opacity,
                instruction.shadow_offset, self._blur_filter(layer, instruction)
            )
        self._text_node(parent, instruction, normalize_color(instruction.style.color), instruction.opacity)

    def _add_url(self, layer, instruction: ResolvedPaintInstruction) -> None:
        parent = layer
        if instruction.link:
            parent = self._node(layer, "a")
            parent.set(f"{{{XLINK_NS}}}href", instruction.link)
        self._add_text(layer, instruction, parent)

    def _add_logo(self, layer, instruction: ResolvedPaintInstruction) -> None:
        logo = self.context.logo
        size = instruction.style.size
        if logo is None:
            self._node(
                layer, "text",
                x=_num(instruction.x), y=_num(instruction.y),
                font_size=_num(size / 4.0),
                font_family=self.processor.font_selector.latin().family,
                fill=rgb_to_hex(self.config.logo_fallback_color),
                opacity=_num(instruction.opacity),
                text_anchor="middle",
                transform=self._rotate(instruction),
            ).text = self.config.logo_fallback_text
            return

        width, height = logo.scaled_size(size)
        if instruction.shadow:
            dx, dy = instruction.shadow_offset
            shadow = self._node(
                layer, "image",
                x=_num(instruction.x + dx - width / 2.0),
                y=_num(instruction.y + dy - height / 2.0),
                width=_num(width), height=_num(height),
                opacity=_num(instruction.shadow.opacity),
                transform=self._rotate(instruction, dx, dy),
                filter=self._blur_filter(layer, instruction),
            )
            silhouette = logo.render_png(silhouette=instruction.shadow.color)
            shadow.set(f"{{{XLINK_NS}}}href", "data:image/png;base64," + base64.b64encode(silhouette).decode("ascii"))
        node = self._node(
            layer, "image",
            x=_num(instruction.x - width / 2.0),
            y=_num(instruction.y - height / 2.0),
            width=_num(width), height=_num(height),
            opacity=_num(instruction.opacity),
            preserveAspectRatio="xMidYMid meet",
            transform=self._rotate(instruction),
        )
        node.set(f"{{{XLINK_NS}}}href", logo.data_url())

    def _add_box(self, layer, instruction: ResolvedPaintInstruction) -> None:
        style = instruction.style
        if instruction.shadow:
            dx, dy = instruction.shadow_offset
            self._node(
                layer, "rect",
                x=_num(instruction.x + dx - style.width / 2.0),
                y=_num(instruction.y + dy - style.height / 2.0),
                width=_num(style.width), height=_num(style.height),
                fill="none",
                stroke=normalize_color(instruction.shadow.color),
                stroke_width=_num(style.border_width),
                opacity=_num(instruction.shadow.opacity),
                transform=self._rotate(instruction, dx, dy),
                filter=self._blur_filter(layer, instruction),
            )
        self._node(
            layer, "rect",
            x=_num(instruction.x - style.width / 2.0),
            y=_num(instruction.y - style.height / 2.0),
            width=_num(style.width), height=_num(style.height),
            fill=normalize_color(style.fill_color) if style.fill_color else "none",
            stroke=normalize_color(style.color) if style.border_width > 0 else "none",
            stroke_width=_num(style.border_width),
            opacity=_num(instruction.opacity),
            transform=self._rotate(instruction),
        )

    def _add_circle(self, layer, instruction: ResolvedPaintInstruction) -> None:
        style = instruction.style
        if instruction.shadow:
            dx, dy = instruction.shadow_offset
            self._node(
                layer, "circle",
                cx=_num(instruction.x + dx), cy=_num(instruction.y + dy), r=_num(style.radius),
                fill="none",
                stroke=normalize_color(instruction.shadow.color),
                stroke_width=_num(style.border_width),
                opacity=_num(instruction.shadow.opacity),
                filter=self._blur_filter(layer, instruction),
            )
        self._node(
            layer, "circle",
            cx=_num(instruction.x), cy=_num(instruction.y), r=_num(style.radius),
            fill=normalize_color(style.fill_color) if style.fill_color else "none",
            stroke=normalize_color(style.color) if style.border_width > 0 else "none",
            stroke_width=_num(style.border_width),
            opacity=_num(instruction.opacity),
        )

    def _add_line(self, layer, instruction: ResolvedPaintInstruction) -> None:
        style = instruction.style
        (x1, y1), (x2, y2) = instruction.endpoints
        dash = None
        if style.dash_array:
            dash = ",".join(_num(v) for v in style.dash_array)
        if instruction.shadow:
            dx, dy = instruction.shadow_offset
            self._node(
                layer, "line",
                x1=_num(x1 + dx), y1=_num(y1 + dy), x2=_num(x2 + dx), y2=_num(y2 + dy),
                stroke=normalize_color(instruction.shadow.color),
                stroke_width=_num(style.thickness),
                stroke_dasharray=dash,
                opacity=_num(instruction.shadow.opacity),
                filter=self._blur_filter(layer, instruction),
            )
        self._node(
            layer, "line",
            x1=_num(x1), y1=_num(y1), x2=_num(x2), y2=_num(y2),
            stroke=normalize_color(style.color),
            stroke_width=_num(style.thickness),
            stroke_dasharray=dash,
            opacity=_num(instruction.opacity),
        )
