from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


Point = Tuple[float, float]


@dataclass(frozen=True)
class Hill:
    """Quadratic Bezier hill: start -> control -> end, in canvas pixels."""

    start: Point = (50.0, 350.0)
    control: Point = (400.0, 100.0)
    end: Point = (750.0, 350.0)


def quad_bezier(t: float, p0: Point, p1: Point, p2: Point) -> Point:
    u = 1.0 - t
    x = u * u * p0[0] + 2.0 * u * t * p1[0] + t * t * p2[0]
    y = u * u * p0[1] + 2.0 * u * t * p1[1] + t * t * p2[1]
    return x, y


def boulder_position(hill: Hill, progress: float) -> Point:
    return quad_bezier(progress, hill.start, hill.control, hill.end)


def hill_polyline(hill: Hill, segments: int = 64) -> list[Point]:
    """Sample the curve for drawing; includes both endpoints."""
    if segments < 1:
        raise ValueError(f"segments must be >= 1, got {segments}")
    return [boulder_position(hill, i / segments) for i in range(segments + 1)]
