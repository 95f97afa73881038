"""Distance and angle helpers shared by the graph, planner, and conflict layers.

It provides the Euclidean metric used by the admissible planner heuristic,
plus the small set of angle utilities (wrapping, signed shortest difference,
heading of a segment) needed to reason about vehicle yaw.
"""

import math
from typing import Tuple


def euclidean_distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """
    Straight-line distance between two points.

    Formula: d = sqrt[(x2-x1)^2 + (y2-y1)^2]
    """
    return math.hypot(x2 - x1, y2 - y1)


def wrap_angle(angle: float) -> float:
    """Map ``angle`` into the half-open interval (-pi, pi]."""
    wrapped = math.fmod(angle + math.pi, 2.0 * math.pi)
    if wrapped <= 0.0:
        wrapped += 2.0 * math.pi
    return wrapped - math.pi


def angle_difference(target: float, source: float) -> float:
    """Signed shortest rotation that turns ``source`` into ``target``."""
    return wrap_angle(target - source)


def heading_between(start: Tuple[float, float], end: Tuple[float, float]) -> float:
    """Yaw of the vector from ``start`` to ``end``.

    Raises:
        ValueError: both points coincide, so no heading is defined.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    if dx == 0.0 and dy == 0.0:
        raise ValueError(f"Heading is undefined between identical points {start}")
    return math.atan2(dy, dx)


__all__ = [
    "angle_difference",
    "euclidean_distance",
    "heading_between",
    "wrap_angle",
]
