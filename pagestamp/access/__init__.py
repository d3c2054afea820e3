"""Selective page access."""

from .page_transformer import SelectiveAccessTransformer, TransformReport, normalize_accessible_pages

__all__ = [
    'SelectiveAccessTransformer',
    'TransformReport',
    'normalize_accessible_pages'
]
