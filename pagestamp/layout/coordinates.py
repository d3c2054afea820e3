"""
Coordinate conversion between template percentages and canvas units.

Template positions are percentages measured from the top-left corner. PDF
pages put the origin at the bottom-left with Y pointing up; SVG documents put
it at the top-left with Y pointing down and may declare a viewBox whose units
differ from the width/height attributes.
"""

import logging
import math
from typing import List, Optional, Tuple

from pagestamp.core.exceptions import InvalidCanvasDimensions
from pagestamp.core.models import Canvas, Orientation, ViewBox

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

ROTATION_EPSILON = 0.01


def normalize_rotation(degrees: float) -> float:
    """Snap near-zero rotations to exactly zero."""
    if degrees is None or abs(degrees) < ROTATION_EPSILON:
        return 0.0
    return float(degrees)


class CoordinateConverter:
    """Convert positions for one canvas."""

    def __init__(self, canvas: Canvas):
        if not canvas.width or not canvas.height or canvas.width <= 0 or canvas.height <= 0:
            raise InvalidCanvasDimensions(canvas.width, canvas.height)
        vb = canvas.view_box
        if vb is not None and (vb.width <= 0 or vb.height <= 0):
            raise InvalidCanvasDimensions(vb.width, vb.height)
        self.canvas = canvas
        self.orientation = canvas.orientation

        if vb is not None:
            self.scale_x = vb.width / canvas.width
            self.scale_y = vb.height / canvas.height
            self.origin = (vb.min_x, vb.min_y)
        else:
            self.scale_x = 1.0
            self.scale_y = 1.0
            self.origin = (0.0, 0.0)

    @property
    def extent(self) -> Tuple[float, float]:
        """Width and height in the units drawing happens in."""
        return self.canvas.width * self.scale_x, self.canvas.height * self.scale_y

    @property
    def y_up(self) -> bool:
        return self.orientation is Orientation.PDF

    def to_absolute(self, x_percent: float, y_percent: float) -> Point:
        """Percentage position to absolute canvas coordinates."""
        width, height = self.extent
        x = x_percent / 100.0 * width
        y = y_percent / 100.0 * height
        return self.from_top_left(x, y)

    def to_percentage(self, x: float, y: float) -> Point:
        """Inverse of :meth:`to_absolute`."""
        width, height = self.extent
        left, top = self.to_top_left(x, y)
        return left / width * 100.0, top / height * 100.0

    def from_top_left(self, x: float, y: float) -> Point:
        """Map a point measured from the top-left of the extent to canvas coordinates."""
        if self.y_up:
            return x, self.extent[1] - y
        return x + self.origin[0], y + self.origin[1]

    def to_top_left(self, x: float, y: float) -> Point:
        if self.y_up:
            return x, self.extent[1] - y
        return x - self.origin[0], y - self.origin[1]

    def visual_offset(self, dx: float, dy: float) -> Point:
        """Turn a screen offset (positive dy is down) into a canvas delta."""
        return (dx, -dy) if self.y_up else (dx, dy)

    def rotate_point(self, point: Point, center: Point, degrees: float) -> Point:
        """Rotate ``point`` clockwise on screen by ``degrees`` around ``center``."""
        angle = math.radians(-degrees if self.y_up else degrees)
        cos_t = math.cos(angle)
        sin_t = math.sin(angle)
        dx = point[0] - center[0]
        dy = point[1] - center[1]
        return (
            center[0] + dx * cos_t - dy * sin_t,
            center[1] + dx * sin_t + dy * cos_t,
        )

    def line_endpoints(self, center: Point, length: float, degrees: float = 0.0) -> Tuple[Point, Point]:
        """Endpoints of a horizontal line of ``length`` centered on ``center``, then rotated."""
        half = length / 2.0
        start = (center[0] - half, center[1])
        end = (center[0] + half, center[1])
        if normalize_rotation(degrees):
            start = self.rotate_point(start, center, degrees)
            end = self.rotate_point(end, center, degrees)
        return start, end


def dash_segments(start: Point, end: Point, dash: float, gap: float) -> List[Tuple[Point, Point]]:
    """
    Split the segment ``start``-``end`` into dashes.

    Dashes of length ``dash`` alternate with gaps of length ``gap`` until the
    whole length is covered; the last dash is clipped to the end point.
    """
    length = math.hypot(end[0] - start[0], end[1] - start[1])
    if length == 0 or dash <= 0:
        return []
    ux = (end[0] - start[0]) / length
    uy = (end[1] - start[1]) / length

    segments = []
    offset = 0.0
    while offset < length:
        stop = min(offset + dash, length)
        segments.append((
            (start[0] + ux * offset, start[1] + uy * offset),
            (start[0] + ux * stop, start[1] + uy * stop),
        ))
        offset += dash + gap
    return segments


def to_absolute(
    x_percent: float,
    y_percent: float,
    canvas_width: float,
    canvas_height: float,
    orientation: Orientation = Orientation.PDF,
    view_box: Optional[ViewBox] = None
) -> Point:
    """
    Convert a percentage position to absolute coordinates.

    Args:
        x_percent: Horizontal position, percent from the left edge
        y_percent: Vertical position, percent from the top edge
        canvas_width: Page or SVG width
        canvas_height: Page or SVG height
        orientation: Target coordinate system
        view_box: Optional SVG viewBox

    Returns:
        (x, y) in canvas units

    Raises:
        InvalidCanvasDimensions: if either dimension is zero or negative
    """
    canvas = Canvas(canvas_width, canvas_height, orientation, view_box)
    return CoordinateConverter(canvas).to_absolute(x_percent, y_percent)
