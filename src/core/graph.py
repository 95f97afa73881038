"""
Navigation graph
================
Waypoints (nodes) and lanes (directed edges) the AGVs may travel on.

Conventions:
    - waypoint indices are assigned in insertion order starting at 0
    - a lane is one-way; bidirectional travel needs two lanes
    - a lane may carry an OrientationConstraint, the set of yaw angles the
      vehicle is allowed to hold while driving that lane (checked at both
      endpoints); an empty set means unconstrained
    - a holding point is a waypoint where a vehicle may stop and wait
      without obstructing lane traffic

The graph is built once and is read-only while a plan is being computed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from physics.distance import angle_difference, wrap_angle


# ========== Waypoint ==========

@dataclass(frozen=True)
class Waypoint:
    """Immutable graph node."""

    index: int
    map_name: str
    location: Tuple[float, float]
    is_holding_point: bool = False

    def __post_init__(self):
        if self.index < 0:
            raise ValueError(f"Waypoint index cannot be negative: {self.index}")
        if len(self.location) != 2:
            raise ValueError(f"Waypoint location must be (x, y): {self.location}")

    def get_location(self) -> Tuple[float, float]:
        return self.location

    def get_map_name(self) -> str:
        return self.map_name

    def __str__(self) -> str:
        kind = "Holding" if self.is_holding_point else "Waypoint"
        return f"{kind}{self.index}"


# ========== Orientation constraint ==========

@dataclass(frozen=True)
class OrientationConstraint:
    """Set of permitted yaw angles while traversing a lane."""

    orientations: Tuple[float, ...] = ()

    @classmethod
    def make(cls, orientations: Iterable[float]) -> "OrientationConstraint":
        return cls(tuple(wrap_angle(float(angle)) for angle in orientations))

    def is_unconstrained(self) -> bool:
        return not self.orientations

    def allows(self, yaw: float, tolerance: float = 1e-3) -> bool:
        if not self.orientations:
            return True
        return any(abs(angle_difference(yaw, allowed)) <= tolerance
                   for allowed in self.orientations)


# ========== Lane ==========

@dataclass(frozen=True)
class Lane:
    """Directed edge between two waypoints."""

    index: int
    entry: int
    exit: int
    orientation: Optional[OrientationConstraint] = None

    def __post_init__(self):
        if self.entry == self.exit:
            raise ValueError(f"Lane {self.index} must connect two distinct waypoints")

    def get_orientation_constraint(self) -> Optional[OrientationConstraint]:
        return self.orientation

    def allows(self, yaw: float, tolerance: float = 1e-3) -> bool:
        if self.orientation is None:
            return True
        return self.orientation.allows(yaw, tolerance)


# ========== Graph ==========

class Graph:
    """Container of waypoints and lanes with outgoing-lane lookup."""

    def __init__(self):
        self._waypoints: List[Waypoint] = []
        self._lanes: List[Lane] = []
        self._lanes_from: Dict[int, List[int]] = {}

    # ----- construction -----

    def add_waypoint(self, map_name: str, location: Sequence[float],
                     is_holding_point: bool = False) -> Waypoint:
        waypoint = Waypoint(
            index=len(self._waypoints),
            map_name=map_name,
            location=(float(location[0]), float(location[1])),
            is_holding_point=is_holding_point,
        )
        self._waypoints.append(waypoint)
        self._lanes_from[waypoint.index] = []
        return waypoint

    def add_lane(self, entry: int, exit: int,
                 orientation: Optional[OrientationConstraint] = None) -> Lane:
        for index in (entry, exit):
            if not self.has_waypoint(index):
                raise ValueError(f"Lane references unknown waypoint {index}")
        lane = Lane(index=len(self._lanes), entry=entry, exit=exit, orientation=orientation)
        self._lanes.append(lane)
        self._lanes_from[entry].append(lane.index)
        return lane

    def add_bidirectional_lane(self, first: int, second: int,
                               orientation: Optional[OrientationConstraint] = None
                               ) -> Tuple[Lane, Lane]:
        return (
            self.add_lane(first, second, orientation),
            self.add_lane(second, first, orientation),
        )

    # ----- queries -----

    def num_waypoints(self) -> int:
        return len(self._waypoints)

    def has_waypoint(self, index: int) -> bool:
        return 0 <= index < len(self._waypoints)

    def get_waypoint(self, index: int) -> Waypoint:
        if not self.has_waypoint(index):
            raise ValueError(f"Invalid waypoint index: {index}")
        return self._waypoints[index]

    def num_lanes(self) -> int:
        return len(self._lanes)

    def get_lane(self, index: int) -> Lane:
        if not 0 <= index < len(self._lanes):
            raise ValueError(f"Invalid lane index: {index}")
        return self._lanes[index]

    def lanes_from(self, waypoint: int) -> List[Lane]:
        """Outgoing lanes of ``waypoint`` in insertion order."""
        if not self.has_waypoint(waypoint):
            raise ValueError(f"Invalid waypoint index: {waypoint}")
        return [self._lanes[index] for index in self._lanes_from[waypoint]]

    def __repr__(self) -> str:
        return f"Graph(waypoints={len(self._waypoints)}, lanes={len(self._lanes)})"


__all__ = ["Graph", "Lane", "OrientationConstraint", "Waypoint"]
