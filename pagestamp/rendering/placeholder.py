"""
Placeholder pages for restricted content.

The placeholder is a single-page PDF. When no asset is installed a
"Content Restricted" page is drawn with PyMuPDF instead.
"""

import logging
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF

from pagestamp.core.config import TemplateConfig

logger = logging.getLogger(__name__)

DARK_GRAY = (0.29, 0.31, 0.34)
MEDIUM_GRAY = (0.42, 0.47, 0.53)
LIGHT_GRAY = (0.68, 0.71, 0.74)
BLUE = (0.0, 0.48, 1.0)
LIGHT_BLUE = (0.94, 0.97, 1.0)
BACKGROUND = (0.97, 0.98, 0.98)
CARD_BORDER = (0.87, 0.89, 0.90)


def _rect(page: fitz.Page, x: float, y: float, width: float, height: float) -> fitz.Rect:
    """Rectangle given by its bottom-left corner in Y-up page coordinates."""
    top = page.rect.height - (y + height)
    return fitz.Rect(x, top, x + width, top + height)


def _point(page: fitz.Page, x: float, y: float) -> fitz.Point:
    return fitz.Point(x, page.rect.height - y)


def draw_restricted_page(page: fitz.Page) -> None:
    """Paint the "Content Restricted" design onto an empty page."""
    width = page.rect.width
    height = page.rect.height

    page.draw_rect(page.rect, color=None, fill=BACKGROUND, width=0)

    box_w, box_h = 400, 300
    box_x = (width - box_w) / 2
    box_y = (height - box_h) / 2
    page.draw_rect(_rect(page, box_x, box_y, box_w, box_h), color=CARD_BORDER, fill=(1, 1, 1), width=2)

    # Lock: body and shackle
    lock_x = width / 2
    lock_y = box_y + box_h - 80
    page.draw_rect(_rect(page, lock_x - 15, lock_y - 12, 30, 25), color=None, fill=MEDIUM_GRAY, width=0)
    page.draw_rect(_rect(page, lock_x - 8, lock_y + 8, 16, 3), color=None, fill=MEDIUM_GRAY, width=0)
    page.draw_rect(_rect(page, lock_x - 8, lock_y + 8, 3, 12), color=None, fill=MEDIUM_GRAY, width=0)
    page.draw_rect(_rect(page, lock_x + 5, lock_y + 8, 3, 12), color=None, fill=MEDIUM_GRAY, width=0)

    page.insert_text(_point(page, width / 2 - 140, lock_y - 50), "Content Restricted",
                     fontsize=32, fontname="hebo", color=DARK_GRAY)
    page.insert_text(_point(page, width / 2 - 180, lock_y - 85),
                     "This content is available to purchased users only",
                     fontsize=16, fontname="helv", color=MEDIUM_GRAY)
    page.insert_text(_point(page, width / 2 - 155, lock_y - 115),
                     "Upgrade your plan to access this content",
                     fontsize=14, fontname="helv", color=BLUE)

    page.draw_rect(_rect(page, width / 2 - 40, lock_y - 180, 80, 25), color=None, fill=LIGHT_BLUE, width=0)
    page.insert_text(_point(page, width / 2 - 25, lock_y - 173), "PREVIEW",
                     fontsize=14, fontname="hebo", color=BLUE)

    page.insert_text(_point(page, width / 2 - 250, box_y - 30),
                     "This page is part of a preview version. Purchase the full content for complete access.",
                     fontsize=10, fontname="helv", color=LIGHT_GRAY)
    page.insert_text(_point(page, width / 2 - 80, height / 2 - 100), "PREVIEW ONLY",
                     fontsize=40, fontname="hebo", color=(0.95, 0.95, 0.95), fill_opacity=0.3)


def build_placeholder_document(config: Optional[TemplateConfig] = None) -> fitz.Document:
    """Generate a one-page placeholder document."""
    config = config or TemplateConfig()
    width, height = config.placeholder_page_size
    doc = fitz.open()
    page = doc.new_page(width=width, height=height)
    draw_restricted_page(page)
    return doc


def load_placeholder_document(config: Optional[TemplateConfig] = None) -> fitz.Document:
    """
    Open the configured placeholder asset.

    Falls back to a generated page when the asset is missing or unreadable.
    """
    config = config or TemplateConfig()
    path = Path(config.placeholder_path)
    if path.exists():
        try:
            doc = fitz.open(str(path))
            if doc.page_count >= 1:
                logger.info(f"Loaded placeholder template: {path}")
                return doc
            doc.close()
            logger.warning(f"Placeholder template {path} has no pages, generating one")
        except Exception as e:
            logger.warning(f"Could not open placeholder template {path}: {e}")
    else:
        logger.info(f"Placeholder template {path} not found, generating one")
    return build_placeholder_document(config)


def draw_minimal_placeholder(page: fitz.Page, page_number: int) -> None:
    """Bare-bones restricted page used when the placeholder cannot be copied."""
    width = page.rect.width
    height = page.rect.height
    page.draw_rect(page.rect, color=None, fill=(0.98, 0.98, 0.98), width=0)
    page.insert_text(_point(page, width / 2 - 80, height / 2), "Content Restricted",
                     fontsize=24, fontname="helv", color=(0.4, 0.4, 0.4))
    page.insert_text(_point(page, width / 2 - 30, height / 2 - 40), f"Page {page_number}",
                     fontsize=14, fontname="helv", color=(0.6, 0.6, 0.6))
