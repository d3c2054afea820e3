"""Pytest configuration and fixtures."""

import random
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from tests.fixtures.document_generator import DocumentGenerator


@pytest.fixture
def generator():
    """Synthetic document factory."""
    return DocumentGenerator()


@pytest.fixture
def config(tmp_path):
    """Config pointing at an isolated directory with no fonts, logo or placeholder."""
    from pagestamp.core.config import TemplateConfig
    return TemplateConfig(
        font_dir=tmp_path / "fonts",
        font_cache_dir=tmp_path / "font-cache",
        download_fonts=False,
        logo_path=tmp_path / "logo.png",
        placeholder_path=tmp_path / "placeholder.pdf",
    )


@pytest.fixture
def logo_config(config, generator):
    """Same config with a PNG logo installed."""
    config.logo_path.write_bytes(generator.png_bytes())
    return config


@pytest.fixture
def context(config):
    """Render context with a seeded random source."""
    from pagestamp.rendering.context import RenderContext
    ctx = RenderContext(config, rng=random.Random(42))
    yield ctx
    ctx.close()


@pytest.fixture
def logo_context(logo_config):
    from pagestamp.rendering.context import RenderContext
    ctx = RenderContext(logo_config, rng=random.Random(42))
    yield ctx
    ctx.close()


@pytest.fixture
def page_template():
    """Single text element showing the page number."""
    return {
        "elements": {
            "text": [
                {"id": "page-label", "content": "Page {{page}}", "position": {"x": 50, "y": 50}}
            ]
        }
    }


@pytest.fixture
def full_template():
    """One element of every kind."""
    return {
        "elements": {
            "logo": [{"id": "logo-1", "position": {"x": 90, "y": 10}, "style": {"size": 60}}],
            "copyright-text": [
                {"id": "c1", "content": "(c) {{year}} {{filename}}", "position": {"x": 50, "y": 95}}
            ],
            "url": [{"id": "u1", "href": "https://example.com/item", "position": {"x": 50, "y": 90}}],
            "box": [{"id": "b1", "position": {"x": 20, "y": 20}, "style": {"width": 50, "height": 30, "color": "#ff0000"}}],
            "circle": [{"id": "o1", "position": {"x": 80, "y": 80}, "style": {"size": 40}}],
            "line": [
                {"id": "l1", "position": {"x": 50, "y": 30}, "style": {"length": 120, "thickness": 2}},
                {"id": "l2", "type": "dotted-line", "position": {"x": 50, "y": 40}, "style": {"length": 120}},
            ],
        },
        "globalSettings": {"layerBehindContent": False},
    }
