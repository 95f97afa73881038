"""Reference navigation layout used by the demo script and regression tests.

The layout is a small warehouse floor on a single map::

         9 ------- 10 ------- 11 ... 12
         :         |
         :         |          8
         :         |          |
    4 -- 5         6          7
         |                    |
    0 -- 1 ------- 2 -------- 3

Waypoints 4, 5 and 6 are holding points.  The dotted lanes ``5 <-> 9`` and
``11 <-> 12`` are not part of the base layout; ``add_scenario_lanes`` adds
them, optionally with an orientation constraint, so each scenario can decide
how a vehicle is allowed to drive them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from core.graph import Graph, OrientationConstraint


DEFAULT_MAP_NAME = "test_map"


@dataclass(frozen=True)
class WaypointEntry:
    location: Tuple[float, float]
    is_holding_point: bool = False


REFERENCE_WAYPOINTS: Tuple[WaypointEntry, ...] = (
    WaypointEntry((-5.0, -5.0)),       # 0
    WaypointEntry((0.0, -5.0)),        # 1
    WaypointEntry((5.0, -5.0)),        # 2
    WaypointEntry((10.0, -5.0)),       # 3
    WaypointEntry((-5.0, 0.0), True),  # 4
    WaypointEntry((0.0, 0.0), True),   # 5
    WaypointEntry((5.0, 0.0), True),   # 6
    WaypointEntry((10.0, 0.0)),        # 7
    WaypointEntry((10.0, 4.0)),        # 8
    WaypointEntry((0.0, 8.0)),         # 9
    WaypointEntry((5.0, 8.0)),         # 10
    WaypointEntry((10.0, 12.0)),       # 11
    WaypointEntry((12.0, 12.0)),       # 12
)

REFERENCE_LANES: Tuple[Tuple[int, int], ...] = (
    (0, 1), (1, 2), (2, 3), (1, 5), (3, 7), (4, 5),
    (6, 10), (7, 8), (9, 10), (10, 11),
)

SCENARIO_LANES: Tuple[Tuple[int, int], ...] = ((5, 9), (11, 12))


def build_graph(waypoints: Sequence[WaypointEntry],
                lanes: Iterable[Tuple[int, int]],
                map_name: str = DEFAULT_MAP_NAME) -> Graph:
    """Build a graph with one bidirectional lane per pair in ``lanes``."""
    graph = Graph()
    for entry in waypoints:
        graph.add_waypoint(map_name, entry.location, entry.is_holding_point)
    for first, second in lanes:
        graph.add_bidirectional_lane(first, second)
    return graph


def build_reference_graph(map_name: str = DEFAULT_MAP_NAME,
                          with_scenario_lanes: bool = False) -> Graph:
    graph = build_graph(REFERENCE_WAYPOINTS, REFERENCE_LANES, map_name)
    if with_scenario_lanes:
        add_scenario_lanes(graph)
    return graph


def add_scenario_lanes(graph: Graph,
                       spur_orientations: Optional[Sequence[float]] = None,
                       dock_orientations: Optional[Sequence[float]] = None) -> Graph:
    """Add the ``5 <-> 9`` spur and the ``11 <-> 12`` dock lanes.

    Args:
        graph: Graph built by ``build_reference_graph``.
        spur_orientations: Allowed yaw angles on ``5 <-> 9``, None for any.
        dock_orientations: Allowed yaw angles on ``11 <-> 12``, None for any.
    """
    for (first, second), orientations in zip(SCENARIO_LANES, (spur_orientations, dock_orientations)):
        constraint = None if orientations is None else OrientationConstraint.make(orientations)
        graph.add_bidirectional_lane(first, second, constraint)
    return graph


__all__ = [
    "DEFAULT_MAP_NAME",
    "REFERENCE_LANES",
    "REFERENCE_WAYPOINTS",
    "SCENARIO_LANES",
    "WaypointEntry",
    "add_scenario_lanes",
    "build_graph",
    "build_reference_graph",
]
