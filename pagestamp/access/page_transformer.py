"""
Selective-access page transformer.

Rebuilds a PDF page by page. Accessible pages are copied (and optionally
watermarked); restricted pages are replaced by a placeholder stamped with the
page number and filename. Page count and order always match the source.
"""

import logging
import math
import numbers
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Set, Tuple, Union

import fitz  # PyMuPDF

from pagestamp.core.exceptions import DocumentProcessingFailure, PageCopyFailure
from pagestamp.core.models import RenderSummary, Template
from pagestamp.rendering.context import RenderContext
from pagestamp.rendering.pdf_renderer import PDFRenderer, open_pdf, save_pdf
from pagestamp.rendering.placeholder import draw_minimal_placeholder

logger = logging.getLogger(__name__)


def normalize_accessible_pages(pages: Optional[Iterable[Any]], total_pages: int) -> Optional[Set[int]]:
    """
    Clean a caller-supplied page list.

    ``None`` means no restriction and is returned unchanged. Otherwise only
    integral values in ``[1, total_pages]`` are kept, so an explicit empty (or
    entirely invalid) list restricts every page.
    """
    if pages is None:
        return None
    allowed = set()
    for value in pages:
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            continue
        if not math.isfinite(value) or int(value) != value:
            continue
        page = int(value)
        if 1 <= page <= total_pages:
            allowed.add(page)
    return allowed


@dataclass
class TransformReport:
    """What happened to each page during one transform call."""
    total_pages: int = 0
    copied: List[int] = field(default_factory=list)
    placeholders: List[int] = field(default_factory=list)
    failures: List[PageCopyFailure] = field(default_factory=list)
    watermark: RenderSummary = field(default_factory=RenderSummary)
    restricted: bool = False
    fail_open: bool = False  # watermarking failed and the source bytes were returned


class SelectiveAccessTransformer:
    """Produce restricted previews and watermarked copies of PDF documents."""

    def __init__(self, context: Optional[RenderContext] = None, renderer: Optional[PDFRenderer] = None):
        self.context = context or RenderContext()
        self.config = self.context.config
        self.renderer = renderer or PDFRenderer(self.context)

    def transform(
        self,
        source_bytes: bytes,
        accessible_pages: Optional[Iterable[Any]] = None,
        watermark_template: Optional[Union[Template, Mapping[str, Any]]] = None,
        variables: Optional[Mapping[str, Any]] = None
    ) -> bytes:
        """
        Transform ``source_bytes``.

        Args:
            source_bytes: Source PDF
            accessible_pages: 1-based pages the viewer may see; None means all
            watermark_template: Unified template stamped on accessible pages
            variables: Values for template placeholders (``filename``, ``user``...)

        Returns:
            Output PDF bytes with the same page count and order as the source

        Raises:
            InvalidTemplateStructure: the watermark template is malformed
            DocumentProcessingFailure: the source cannot be opened or rebuilt
        """
        return self.transform_with_report(source_bytes, accessible_pages, watermark_template, variables)[0]

    def transform_with_report(
        self,
        source_bytes: bytes,
        accessible_pages: Optional[Iterable[Any]] = None,
        watermark_template: Optional[Union[Template, Mapping[str, Any]]] = None,
        variables: Optional[Mapping[str, Any]] = None
    ) -> Tuple[bytes, TransformReport]:
        """Like :meth:`transform`, also returning a per-page report."""
        template = Template.from_value(watermark_template) if watermark_template is not None else None
        variables = dict(variables or {})

        with self.context.lock:
            source = open_pdf(source_bytes)
            try:
                total = source.page_count
                allowed = normalize_accessible_pages(accessible_pages, total)
                report = TransformReport(total_pages=total, restricted=allowed is not None)

                if allowed is None:
                    return self._unrestricted(source, source_bytes, template, variables, report), report
                return self._rebuild(source, allowed, template, variables, report), report
            finally:
                source.close()

    def _unrestricted(self, source, source_bytes: bytes, template, variables, report: TransformReport) -> bytes:
        total = source.page_count
        report.copied = list(range(1, total + 1))
        if template is None or not self.config.apply_watermarks_to_accessible:
            return source_bytes

        try:
            for index in range(total):
                summary = self.renderer.apply_template(source[index], template, variables, index + 1, total)
                report.watermark.merge(summary)
            return save_pdf(source)
        except Exception as e:
            logger.error(f"Watermarking failed, returning the original document: {e}")
            report.fail_open = True
            return source_bytes

    def _rebuild(self, source, allowed: Set[int], template, variables, report: TransformReport) -> bytes:
        total = source.page_count
        output = fitz.open()
        try:
            for page_number in range(1, total + 1):
                if page_number in allowed:
                    self._copy_page(output, source, page_number, total, template, variables, report)
                else:
                    self._insert_placeholder(output, page_number, total, variables)
                    report.placeholders.append(page_number)

            if output.page_count != total:
                raise DocumentProcessingFailure(
                    f"Rebuilt document has {output.page_count} pages, expected {total}"
                )
            logger.info(
                f"Rebuilt {total} pages: {len(report.copied)} accessible, "
                f"{len(report.placeholders)} restricted"
            )
            return save_pdf(output)
        finally:
            output.close()

    def _copy_page(self, output, source, page_number: int, total: int, template, variables,
                   report: TransformReport) -> None:
        index = page_number - 1
        try:
            output.insert_pdf(source, from_page=index, to_page=index)
            if template is not None and self.config.apply_watermarks_to_accessible:
                summary = self.renderer.apply_template(output[index], template, variables, page_number, total)
                report.watermark.merge(summary)
            report.copied.append(page_number)
        except Exception as e:
            failure = PageCopyFailure(page_number, e)
            logger.warning(f"{failure.message}; inserting placeholder")
            report.failures.append(failure)
            self._discard_partial(output, index)
            self._insert_placeholder(output, page_number, total, variables)
            report.placeholders.append(page_number)

    def _insert_placeholder(self, output, page_number: int, total: int, variables: Mapping[str, Any]) -> None:
        index = page_number - 1
        try:
            output.insert_pdf(self.context.placeholder, from_page=0, to_page=0)
            self._stamp_labels(output[index], page_number, total, variables)
        except Exception as e:
            logger.warning(f"Placeholder for page {page_number} failed ({e}), using minimal page")
            self._discard_partial(output, index)
            width, height = self.config.placeholder_page_size
            page = output.new_page(width=width, height=height)
            draw_minimal_placeholder(page, page_number)

    def _stamp_labels(self, page, page_number: int, total: int, variables: Mapping[str, Any]) -> None:
        size = self.config.placeholder_label_size
        color = self.config.placeholder_label_color
        self.renderer.draw_label(page, f"Page {page_number} of {total}", page.rect.width - 100, 30, size, color)
        filename = variables.get("filename")
        if filename:
            self.renderer.draw_label(page, str(filename), 50, 30, size, color)

    @staticmethod
    def _discard_partial(output, index: int) -> None:
        """Drop anything already inserted at ``index`` so the page can be redone."""
        while output.page_count > index:
            output.delete_page(output.page_count - 1)
