"""
pagestamp: template stamping and selective page access for PDF and SVG.

Stamps declarative visual templates (logos, text, links and shapes placed by
percentage, optionally repeated in grid or scattered patterns) onto PDF pages
and SVG documents, and rebuilds PDFs with restricted pages swapped for
placeholders.

Usage:
    from pagestamp import RenderContext, SelectiveAccessTransformer, TemplateConfig

    context = RenderContext(TemplateConfig())
    transformer = SelectiveAccessTransformer(context)
    preview = transformer.transform(
        pdf_bytes,
        accessible_pages=[1, 3],
        watermark_template=template,
        variables={"filename": "lesson.pdf"}
    )
"""

__version__ = "1.0.0"
__author__ = "Ludora Team"
__license__ = "MIT"

from pagestamp.core.config import TemplateConfig
from pagestamp.core.exceptions import (
    PageStampError,
    InvalidTemplateStructure,
    InvalidCanvasDimensions,
    UnsupportedScriptRendering,
    ElementRenderFailure,
    PageCopyFailure,
    DocumentProcessingFailure,
    ConfigurationError
)
from pagestamp.core.models import (
    Canvas,
    Element,
    ElementKind,
    Orientation,
    PatternKind,
    RenderSummary,
    ResolvedPaintInstruction,
    Template
)
from pagestamp.layout.coordinates import CoordinateConverter, to_absolute
from pagestamp.layout.patterns import PatternGenerator
from pagestamp.layout.processor import TemplateProcessor
from pagestamp.layout.substitution import substitute_variables
from pagestamp.layout.text_layout import wrap_text
from pagestamp.rendering.context import RenderContext
from pagestamp.rendering.pdf_renderer import PDFRenderer
from pagestamp.rendering.svg_renderer import SVGRenderer
from pagestamp.access.page_transformer import SelectiveAccessTransformer, TransformReport

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "TemplateConfig",
    "PageStampError",
    "InvalidTemplateStructure",
    "InvalidCanvasDimensions",
    "UnsupportedScriptRendering",
    "ElementRenderFailure",
    "PageCopyFailure",
    "DocumentProcessingFailure",
    "ConfigurationError",
    "Canvas",
    "Element",
    "ElementKind",
    "Orientation",
    "PatternKind",
    "RenderSummary",
    "ResolvedPaintInstruction",
    "Template",
    "CoordinateConverter",
    "to_absolute",
    "PatternGenerator",
    "TemplateProcessor",
    "substitute_variables",
    "wrap_text",
    "RenderContext",
    "PDFRenderer",
    "SVGRenderer",
    "SelectiveAccessTransformer",
    "TransformReport",
]
