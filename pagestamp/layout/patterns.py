"""Repeat patterns: where an element is painted on the canvas."""

import logging
import math
import random
from typing import Callable, List, Optional, Tuple

from pagestamp.core.config import TemplateConfig
from pagestamp.core.models import Element, PatternKind

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


def _identity(x: float, y: float) -> Point:
    return x, y


class PatternGenerator:
    """
    Produce element positions for ``single``, ``grid`` and ``scattered`` patterns.

    Grid and scattered positions are computed from the top-left of the canvas
    and passed through ``to_canvas`` so callers can map them into a Y-up page.
    """

    def __init__(self, config: Optional[TemplateConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or TemplateConfig()
        self.rng = rng or random.Random()

    def positions(
        self,
        pattern: PatternKind,
        base_position: Point,
        canvas_width: float,
        canvas_height: float,
        element: Optional[Element] = None,
        to_canvas: Callable[[float, float], Point] = _identity
    ) -> List[Point]:
        pattern = PatternKind.parse(pattern)
        if pattern is PatternKind.GRID:
            points = self.grid(canvas_width, canvas_height, self._spacing(element))
        elif pattern is PatternKind.SCATTERED:
            points = self.scattered(canvas_width, canvas_height, self._density(element))
        else:
            return [base_position]
        return [to_canvas(x, y) for x, y in points]

    def grid(self, width: float, height: float, spacing: Tuple[float, float]) -> List[Point]:
        """One position per cell center, row by row."""
        sx, sy = spacing
        cols = math.ceil(width / sx)
        rows = math.ceil(height / sy)
        limit = self.config.max_pattern_positions
        if cols * rows > limit:
            logger.warning(
                f"Grid pattern needs {cols * rows} positions, capping at {limit}"
            )

        points = []
        for row in range(rows):
            for col in range(cols):
                if len(points) >= limit:
                    return points
                points.append((col * sx + sx / 2.0, row * sy + sy / 2.0))
        return points

    def scattered(self, width: float, height: float, density: float) -> List[Point]:
        """Uniformly random positions, count proportional to canvas area."""
        count = math.floor(width * height / self.config.scatter_area_unit * density)
        limit = self.config.max_pattern_positions
        if count > limit:
            logger.warning(f"Scattered pattern needs {count} positions, capping at {limit}")
            count = limit
        return [
            (self.rng.uniform(0, width), self.rng.uniform(0, height))
            for _ in range(count)
        ]

    def _spacing(self, element: Optional[Element]) -> Tuple[float, float]:
        if element is not None and element.grid_spacing:
            return element.grid_spacing
        return self.config.grid_spacing

    def _density(self, element: Optional[Element]) -> float:
        if element is not None and element.scatter_density is not None:
            return element.scatter_density
        return self.config.scatter_density
