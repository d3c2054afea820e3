"""Unit tests for coordinate conversion."""

import pytest

from pagestamp.core.exceptions import InvalidCanvasDimensions
from pagestamp.core.models import Canvas, Orientation, ViewBox
from pagestamp.layout.coordinates import (
    CoordinateConverter,
    dash_segments,
    normalize_rotation,
    to_absolute,
)


def test_pdf_inverts_y_axis():
    """Percent from the top becomes distance from the bottom on PDF pages."""
    assert to_absolute(25, 10, 600, 800, Orientation.PDF) == pytest.approx((150, 720))


def test_svg_keeps_y_axis():
    """SVG coordinates are measured from the top-left."""
    assert to_absolute(25, 10, 600, 800, Orientation.SVG) == pytest.approx((150, 80))


def test_corners():
    """0/0 and 100/100 land on the canvas corners."""
    assert to_absolute(0, 0, 600, 800, Orientation.PDF) == pytest.approx((0, 800))
    assert to_absolute(100, 100, 600, 800, Orientation.PDF) == pytest.approx((600, 0))
    assert to_absolute(100, 100, 600, 800, Orientation.SVG) == pytest.approx((600, 800))


def test_view_box_scales_positions():
    """Positions are expressed in viewBox units."""
    view_box = ViewBox(0, 0, 800, 600)
    assert to_absolute(50, 50, 400, 300, Orientation.SVG, view_box) == pytest.approx((400, 300))


def test_view_box_origin_offset():
    """A non-zero viewBox origin shifts every position."""
    view_box = ViewBox(10, 20, 800, 600)
    assert to_absolute(0, 0, 400, 300, Orientation.SVG, view_box) == pytest.approx((10, 20))
    assert to_absolute(50, 50, 400, 300, Orientation.SVG, view_box) == pytest.approx((410, 320))


@pytest.mark.parametrize("width,height", [(0, 100), (100, 0), (-5, 100), (100, -1)])
def test_invalid_dimensions_rejected(width, height):
    """Zero or negative canvas sizes raise."""
    with pytest.raises(InvalidCanvasDimensions):
        to_absolute(50, 50, width, height)


def test_invalid_view_box_rejected():
    """A degenerate viewBox raises."""
    with pytest.raises(InvalidCanvasDimensions):
        CoordinateConverter(Canvas(100, 100, Orientation.SVG, ViewBox(0, 0, 0, 100)))


@pytest.mark.parametrize("orientation", [Orientation.PDF, Orientation.SVG])
def test_percentage_round_trip(orientation):
    """to_percentage inverts to_absolute."""
    converter = CoordinateConverter(Canvas(612, 792, orientation, None))
    for x, y in [(0, 0), (12.5, 87.5), (50, 50), (100, 33.3)]:
        px, py = converter.to_absolute(x, y)
        assert converter.to_percentage(px, py) == pytest.approx((x, y))


def test_round_trip_with_view_box():
    """Round trip holds inside a shifted viewBox."""
    converter = CoordinateConverter(Canvas(400, 300, Orientation.SVG, ViewBox(10, 20, 800, 600)))
    px, py = converter.to_absolute(30, 70)
    assert converter.to_percentage(px, py) == pytest.approx((30, 70))


def test_visual_offset():
    """A downward screen offset is negative Y on PDF pages."""
    pdf = CoordinateConverter(Canvas(100, 100, Orientation.PDF))
    svg = CoordinateConverter(Canvas(100, 100, Orientation.SVG))
    assert pdf.visual_offset(3, 4) == (3, -4)
    assert svg.visual_offset(3, 4) == (3, 4)


def test_rotation_is_clockwise_on_screen():
    """90 degrees moves a point right of center to below it, in both systems."""
    pdf = CoordinateConverter(Canvas(100, 100, Orientation.PDF))
    svg = CoordinateConverter(Canvas(100, 100, Orientation.SVG))
    # Below the center is smaller Y on a PDF page, larger Y in SVG
    assert pdf.rotate_point((1, 0), (0, 0), 90) == pytest.approx((0, -1))
    assert svg.rotate_point((1, 0), (0, 0), 90) == pytest.approx((0, 1))


def test_line_endpoints():
    """Lines are centered on their position and turn with rotation."""
    converter = CoordinateConverter(Canvas(200, 200, Orientation.SVG))
    start, end = converter.line_endpoints((100, 100), 50)
    assert start == pytest.approx((75, 100))
    assert end == pytest.approx((125, 100))

    start, end = converter.line_endpoints((100, 100), 50, 90)
    assert start == pytest.approx((100, 75))
    assert end == pytest.approx((100, 125))


def test_normalize_rotation():
    """Rotations below 0.01 degrees snap to zero."""
    assert normalize_rotation(0.005) == 0.0
    assert normalize_rotation(-0.009) == 0.0
    assert normalize_rotation(None) == 0.0
    assert normalize_rotation(45) == 45.0


def test_dash_segments():
    """Dashes alternate with gaps and the last one is clipped."""
    segments = dash_segments((0, 0), (12, 0), 3, 3)
    assert len(segments) == 2
    assert segments[0] == ((0, 0), (3, 0))
    assert segments[1] == ((6, 0), (9, 0))

    clipped = dash_segments((0, 0), (13, 0), 3, 3)
    assert len(clipped) == 3
    assert clipped[-1][1] == pytest.approx((13, 0))


def test_dash_segments_degenerate():
    """Zero-length lines produce no dashes."""
    assert dash_segments((5, 5), (5, 5), 3, 3) == []
