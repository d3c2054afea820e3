"""
PDF renderer.

Paints resolved template instructions onto PyMuPDF pages. Instruction
coordinates use the PDF convention (origin bottom-left, Y up); PyMuPDF page
space has its origin at the top-left, so every point is flipped on the way in.
"""

import logging
import math
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

import fitz  # PyMuPDF

from pagestamp.core.exceptions import (
    DocumentProcessingFailure,
    ElementRenderFailure,
    PageStampError,
    UnsupportedScriptRendering,
)
from pagestamp.core.models import (
    Canvas,
    Element,
    ElementKind,
    Orientation,
    PlacedLine,
    RenderSummary,
    ResolvedPaintInstruction,
    Template,
)
from pagestamp.layout.processor import TemplateProcessor
from pagestamp.rendering.context import FontHandle, RenderContext
from pagestamp.utils.colors import parse_color

logger = logging.getLogger(__name__)


def page_variables(variables: Optional[Mapping[str, Any]], page_number: int, total_pages: int) -> Dict[str, Any]:
    """Caller variables with the page counters for one page."""
    merged = dict(variables or {})
    merged["page"] = str(page_number)
    merged["pageNumber"] = str(page_number)
    merged["totalPages"] = str(total_pages)
    return merged


class PDFRenderer:
    """Stamp templates onto PDF pages."""

    def __init__(self, context: Optional[RenderContext] = None):
        self.context = context or RenderContext()
        self.config = self.context.config
        self.processor = TemplateProcessor(
            self.context.font_selector(embedded=True), self.config, self.context.patterns
        )
        self._painters: Dict[ElementKind, Callable[..., None]] = {
            ElementKind.LOGO: self._draw_logo,
            ElementKind.TEXT: self._draw_text,
            ElementKind.URL: self._draw_url,
            ElementKind.BOX: self._draw_box,
            ElementKind.CIRCLE: self._draw_circle,
            ElementKind.LINE: self._draw_line,
            ElementKind.DOTTED_LINE: self._draw_line,
        }

    def apply_template(
        self,
        page: fitz.Page,
        template: Union[Template, Mapping[str, Any]],
        variables: Optional[Mapping[str, Any]] = None,
        page_number: int = 1,
        total_pages: int = 1
    ) -> RenderSummary:
        """
        Draw ``template`` on one page.

        A page carrying /Rotate is first normalized to rotation 0 with its
        appearance kept, so positions are measured on the page as displayed.

        Returns:
            RenderSummary of drawn, skipped and failed element occurrences
        """
        template = Template.from_value(template)
        overlay = not template.global_settings.layer_behind_content

        def draw(element_type: str, element: Element, instruction: ResolvedPaintInstruction, _vars):
            self.paint(page, instruction, overlay)

        with self.context.lock:
            self._upright(page)
            canvas = Canvas(page.rect.width, page.rect.height, Orientation.PDF)
            summary = self.processor.render(
                template, canvas, page_variables(variables, page_number, total_pages), draw,
                page=page_number
            )
        logger.debug(
            f"Page {page_number}: drew {summary.drawn}, skipped {summary.skipped}, "
            f"failed {summary.failed}"
        )
        return summary

    def merge_template(
        self,
        pdf_bytes: bytes,
        template: Union[Template, Mapping[str, Any]],
        variables: Optional[Mapping[str, Any]] = None
    ) -> bytes:
        """
        Stamp ``template`` onto every page of a PDF.

        Raises:
            InvalidTemplateStructure: template is not a unified template
            DocumentProcessingFailure: the PDF cannot be opened or saved
        """
        template = Template.from_value(template)
        with self.context.lock:
            doc = open_pdf(pdf_bytes)
            try:
                total = doc.page_count
                for index in range(total):
                    self.apply_template(doc[index], template, variables, index + 1, total)
                return save_pdf(doc)
            finally:
                doc.close()

    def paint(self, page: fitz.Page, instruction: ResolvedPaintInstruction, overlay: bool = True) -> None:
        """Dispatch one instruction to the painter for its kind."""
        painter = self._painters.get(instruction.kind)
        if painter is None:
            raise ElementRenderFailure(
                f"PDF renderer cannot draw {instruction.kind}",
                element_id=instruction.element_id,
                element_type=instruction.element_type
            )
        painter(page, instruction, overlay)

    def draw_label(
        self,
        page: fitz.Page,
        text: str,
        x: float,
        y: float,
        font_size: float,
        color: Tuple[float, float, float]
    ) -> None:
        """Write one line with its baseline starting at Y-up point (x, y)."""
        if not text:
            return
        selector = self.processor.font_selector
        try:
            font = selector.select(text)
        except UnsupportedScriptRendering:
            text = self.config.hebrew_fallback_notice
            font = selector.latin()
        line = PlacedLine(text=text, x=x, y=y, width=font.measure(text, font_size))
        with self.context.lock:
            self._upright(page)
            self._write_lines(page, (line,), font, font_size, color, 1.0, font.rtl)

    # Geometry helpers

    @staticmethod
    def _upright(page: fitz.Page) -> None:
        # Drawing calls work in unrotated page space
        if page.rotation:
            page.remove_rotation()

    @staticmethod
    def _point(page: fitz.Page, x: float, y: float) -> fitz.Point:
        return fitz.Point(x, page.rect.height - y)

    def _morph(self, page: fitz.Page, x: float, y: float, rotation: float):
        # The morph matrix acts in Y-up PDF space, where positive angles turn counter-clockwise
        if not rotation:
            return None
        return (self._point(page, x, y), fitz.Matrix(-rotation))

    def _centered_rect(self, page: fitz.Page, x: float, y: float, width: float, height: float) -> fitz.Rect:
        center = self._point(page, x, y)
        return fitz.Rect(
            center.x - width / 2.0, center.y - height / 2.0,
            center.x + width / 2.0, center.y + height / 2.0
        )

    # Painters

    def _write_lines(
        self,
        page: fitz.Page,
        lines,
        font: FontHandle,
        font_size: float,
        color: Tuple[float, float, float],
        opacity: float,
        rtl: bool,
        offset: Tuple[float, float] = (0.0, 0.0),
        morph=None,
        overlay: bool = True
    ) -> None:
        writer = fitz.TextWriter(page.rect)
        written = 0
        for line in lines:
            if not line.text:
                continue
            writer.append(
                self._point(page, line.x + offset[0], line.y + offset[1]),
                line.text,
                font=font.font,
                fontsize=font_size,
                right_to_left=rtl,
            )
            written += 1
        if written:
            writer.write_text(page, color=color, opacity=opacity, overlay=overlay, morph=morph)

    def _draw_text(self, page: fitz.Page, instruction: ResolvedPaintInstruction, overlay: bool) -> None:
        style = instruction.style
        if instruction.shadow:
            dx, dy = instruction.shadow_offset
            self._write_lines(
                page, instruction.lines, instruction.font, style.font_size,
                parse_color(instruction.shadow.color), instruction.shadow.opacity, instruction.rtl,
                offset=(dx, dy),
                morph=self._morph(page, instruction.x + dx, instruction.y + dy, instruction.rotation),
                overlay=overlay
            )
        self._write_lines(
            page, instruction.lines, instruction.font, style.font_size,
            parse_color(style.color), instruction.opacity, instruction.rtl,
            morph=self._morph(page, instruction.x, instruction.y, instruction.rotation),
            overlay=overlay
        )

    def _draw_url(self, page: fitz.Page, instruction: ResolvedPaintInstruction, overlay: bool) -> None:
        self._draw_text(page, instruction, overlay)
        drawn = [line for line in instruction.lines if line.text]
        if not instruction.link or instruction.rotation or not drawn:
            return
        size = instruction.style.font_size
        top = max(line.y for line in drawn) + size
        bottom = min(line.y for line in drawn) - size * 0.25
        rect = fitz.Rect(
            min(line.x for line in drawn), page.rect.height - top,
            max(line.x + line.width for line in drawn), page.rect.height - bottom
        )
        page.insert_link({"kind": fitz.LINK_URI, "from": rect, "uri": instruction.link})

    def _draw_logo(self, page: fitz.Page, instruction: ResolvedPaintInstruction, overlay: bool) -> None:
        logo = self.context.logo
        size = instruction.style.size
        if logo is not None:
            try:
                self._insert_logo(page, instruction, logo, overlay)
                return
            except Exception as e:
                logger.warning(f"Could not embed logo for '{instruction.element_id}': {e}")
        self._draw_logo_fallback(page, instruction, size, overlay)

    def _insert_logo(self, page, instruction, logo, overlay: bool) -> None:
        width, height = logo.scaled_size(instruction.style.size)
        rotation = instruction.rotation
        if rotation:
            # Rotated image is embedded inside its bounding box
            rad = math.radians(rotation)
            width, height = (
                abs(width * math.cos(rad)) + abs(height * math.sin(rad)),
                abs(width * math.sin(rad)) + abs(height * math.cos(rad)),
            )

        if instruction.shadow:
            dx, dy = instruction.shadow_offset
            shadow_png = logo.render_png(instruction.shadow.opacity, rotation, silhouette=instruction.shadow.color)
            page.insert_image(
                self._centered_rect(page, instruction.x + dx, instruction.y + dy, width, height),
                stream=shadow_png, overlay=overlay
            )
        page.insert_image(
            self._centered_rect(page, instruction.x, instruction.y, width, height),
            stream=logo.render_png(instruction.opacity, rotation), overlay=overlay
        )

    def _draw_logo_fallback(self, page, instruction, size: float, overlay: bool) -> None:
        font = self.processor.font_selector.latin()
        text = self.config.logo_fallback_text
        font_size = size / 4.0
        width = font.measure(text, font_size)
        line = PlacedLine(text=text, x=instruction.x - width / 2.0, y=instruction.y, width=width)
        self._write_lines(
            page, (line,), font, font_size, self.config.logo_fallback_color, instruction.opacity, False,
            morph=self._morph(page, instruction.x, instruction.y, instruction.rotation),
            overlay=overlay
        )

    def _draw_box(self, page: fitz.Page, instruction: ResolvedPaintInstruction, overlay: bool) -> None:
        style = instruction.style
        if instruction.shadow:
            dx, dy = instruction.shadow_offset
            sx, sy = instruction.x + dx, instruction.y + dy
            page.draw_rect(
                self._centered_rect(page, sx, sy, style.width, style.height),
                color=parse_color(instruction.shadow.color), fill=None,
                width=style.border_width, stroke_opacity=instruction.shadow.opacity,
                overlay=overlay, morph=self._morph(page, sx, sy, instruction.rotation)
            )
        fill = parse_color(style.fill_color) if style.fill_color else None
        page.draw_rect(
            self._centered_rect(page, instruction.x, instruction.y, style.width, style.height),
            color=parse_color(style.color) if style.border_width > 0 else None,
            fill=fill,
            width=style.border_width,
            stroke_opacity=instruction.opacity,
            fill_opacity=instruction.opacity,
            overlay=overlay,
            morph=self._morph(page, instruction.x, instruction.y, instruction.rotation)
        )

    def _draw_circle(self, page: fitz.Page, instruction: ResolvedPaintInstruction, overlay: bool) -> None:
        style = instruction.style
        if instruction.shadow:
            dx, dy = instruction.shadow_offset
            page.draw_circle(
                self._point(page, instruction.x + dx, instruction.y + dy), style.radius,
                color=parse_color(instruction.shadow.color), fill=None,
                width=style.border_width, stroke_opacity=instruction.shadow.opacity,
                overlay=overlay
            )
        page.draw_circle(
            self._point(page, instruction.x, instruction.y), style.radius,
            color=parse_color(style.color) if style.border_width > 0 else None,
            fill=parse_color(style.fill_color) if style.fill_color else None,
            width=style.border_width,
            stroke_opacity=instruction.opacity,
            fill_opacity=instruction.opacity,
            overlay=overlay
        )

    def _draw_line(self, page: fitz.Page, instruction: ResolvedPaintInstruction, overlay: bool) -> None:
        style = instruction.style
        if instruction.shadow:
            dx, dy = instruction.shadow_offset
            self._fill_segments(
                page, instruction.segments, style.thickness, parse_color(instruction.shadow.color),
                instruction.shadow.opacity, (dx, dy), overlay
            )
        self._fill_segments(
            page, instruction.segments, style.thickness, parse_color(style.color),
            instruction.opacity, (0.0, 0.0), overlay
        )

    def _fill_segments(self, page, segments, thickness, color, opacity, offset, overlay: bool) -> None:
        """Paint each segment as a filled rectangle ``thickness`` wide."""
        if not segments:
            return
        shape = page.new_shape()
        half = thickness / 2.0
        for (x0, y0), (x1, y1) in segments:
            length = math.hypot(x1 - x0, y1 - y0)
            if length == 0:
                continue
            nx = -(y1 - y0) / length * half
            ny = (x1 - x0) / length * half
            corners = [
                (x0 + nx, y0 + ny), (x1 + nx, y1 + ny),
                (x1 - nx, y1 - ny), (x0 - nx, y0 - ny),
            ]
            points = [self._point(page, cx + offset[0], cy + offset[1]) for cx, cy in corners]
            shape.draw_polyline(points + [points[0]])
        shape.finish(color=None, fill=color, fill_opacity=opacity, width=0, closePath=True)
        shape.commit(overlay=overlay)


def open_pdf(pdf_bytes: bytes) -> fitz.Document:
    """
    Open PDF bytes.

    Raises:
        DocumentProcessingFailure: bytes are empty, not a PDF, or encrypted
    """
    if not pdf_bytes:
        raise DocumentProcessingFailure("Source document is empty")
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        raise DocumentProcessingFailure(f"Could not open source PDF: {e}", original_error=e) from e
    if doc.needs_pass:
        doc.close()
        raise DocumentProcessingFailure("Source PDF is encrypted")
    if doc.page_count < 1:
        doc.close()
        raise DocumentProcessingFailure("Source PDF has no pages")
    return doc


def save_pdf(doc: fitz.Document) -> bytes:
    """Serialize a document, wrapping MuPDF errors."""
    try:
        return doc.tobytes(garbage=3, deflate=True)
    except PageStampError:
        raise
    except Exception as e:
        raise DocumentProcessingFailure(f"Could not write output PDF: {e}", original_error=e) from e
