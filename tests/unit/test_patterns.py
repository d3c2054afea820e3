"""Unit tests for repeat patterns."""

import random

import pytest

from pagestamp.core.config import TemplateConfig
from pagestamp.core.models import Canvas, Element, Orientation, PatternKind
from pagestamp.layout.coordinates import CoordinateConverter
from pagestamp.layout.patterns import PatternGenerator


def test_single_returns_base_position():
    """Single placement ignores the canvas size."""
    generator = PatternGenerator()
    assert generator.positions(PatternKind.SINGLE, (12, 34), 1000, 1000) == [(12, 34)]


def test_unknown_pattern_is_single():
    """Unknown pattern names fall back to single placement."""
    generator = PatternGenerator()
    assert generator.positions("zigzag", (1, 2), 1000, 1000) == [(1, 2)]


def test_grid_cell_centers():
    """Default spacing gives ceil(1000/200) x ceil(1000/150) positions."""
    generator = PatternGenerator()
    points = generator.positions(PatternKind.GRID, (0, 0), 1000, 1000)
    assert len(points) == 5 * 7
    assert points[0] == (100, 75)
    assert points[1] == (300, 75)
    assert points[5] == (100, 225)


def test_grid_spacing_from_element():
    """Per-element spacing overrides the configured spacing."""
    element = Element.from_dict("text", {"gridSpacing": {"x": 500, "y": 500}})
    generator = PatternGenerator()
    points = generator.positions(PatternKind.GRID, (0, 0), 1000, 1000, element)
    assert points == [(250, 250), (750, 250), (250, 750), (750, 750)]


def test_grid_is_capped():
    """Grids never exceed max_pattern_positions."""
    generator = PatternGenerator(TemplateConfig(max_pattern_positions=10))
    assert len(generator.positions(PatternKind.GRID, (0, 0), 1000, 1000)) == 10


def test_scattered_count_and_bounds():
    """floor(area / 50000 * density) positions, all inside the canvas."""
    generator = PatternGenerator(rng=random.Random(7))
    points = generator.positions(PatternKind.SCATTERED, (0, 0), 1000, 1000)
    assert len(points) == 6
    for x, y in points:
        assert 0 <= x <= 1000
        assert 0 <= y <= 1000


def test_scattered_is_reproducible_with_seed():
    """The same seed yields the same positions."""
    first = PatternGenerator(rng=random.Random(3)).scattered(800, 600, 0.3)
    second = PatternGenerator(rng=random.Random(3)).scattered(800, 600, 0.3)
    assert first == second


def test_scattered_density_from_element():
    """Per-element density overrides the configured density."""
    element = Element.from_dict("text", {"scatterDensity": 1.0})
    generator = PatternGenerator(rng=random.Random(1))
    points = generator.positions(PatternKind.SCATTERED, (0, 0), 1000, 1000, element)
    assert len(points) == 20


def test_scattered_zero_density():
    """Density 0 produces no positions."""
    generator = PatternGenerator(TemplateConfig(scatter_density=0.0))
    assert generator.positions(PatternKind.SCATTERED, (0, 0), 1000, 1000) == []


def test_scattered_is_capped():
    generator = PatternGenerator(TemplateConfig(max_pattern_positions=5), random.Random(0))
    assert len(generator.scattered(10000, 10000, 1.0)) == 5


def test_grid_mapped_into_pdf_space():
    """Grid rows start at the top of a PDF page."""
    converter = CoordinateConverter(Canvas(1000, 1000, Orientation.PDF))
    generator = PatternGenerator()
    points = generator.positions(
        PatternKind.GRID, (0, 0), 1000, 1000, to_canvas=converter.from_top_left
    )
    assert points[0] == pytest.approx((100, 925))
