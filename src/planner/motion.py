"""Candidate motions generated while expanding the planner search.

Every action the planner can take is expressed as a short list of
``KnotState`` entries, the kinematic states to be inserted into the final
trajectory:

    - rotation: turn in place with a trapezoidal yaw-rate profile
    - translation: drive a lane at constant yaw with a trapezoidal speed profile
    - hold: stay put at a holding point until a later time

All motions start and end at rest, so any sequence of them is continuous in
position and velocity, and the Hermite interpolation between knots never
exceeds the configured velocity/acceleration limits.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from core.profile import Profile
from core.trajectory import Trajectory
from core.vehicle import KinematicLimits
from physics.distance import angle_difference
from physics.time import compute_motion_profile


@dataclass(frozen=True)
class KnotState:
    """State (x, y, yaw) and velocity (vx, vy, omega) reached at ``time``."""

    time: float
    position: Tuple[float, float, float]
    velocity: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    @property
    def x(self) -> float:
        return self.position[0]

    @property
    def y(self) -> float:
        return self.position[1]

    @property
    def yaw(self) -> float:
        return self.position[2]


def rest_state(time: float, x: float, y: float, yaw: float) -> KnotState:
    return KnotState(time=time, position=(x, y, yaw))


def rotation_states(origin: KnotState, target_yaw: float, limits: KinematicLimits,
                    tolerance: float = 1e-3) -> List[KnotState]:
    """Turn in place from ``origin`` to ``target_yaw`` along the shortest way.

    The yaw is kept continuous (not wrapped), so the final yaw equals the
    target only modulo 2*pi.
    """
    delta = angle_difference(target_yaw, origin.yaw)
    if abs(delta) <= tolerance:
        return []
    direction = math.copysign(1.0, delta)
    profile = compute_motion_profile(abs(delta), limits.velocity, limits.acceleration)
    states = [
        KnotState(
            time=origin.time + knot.time,
            position=(origin.x, origin.y, origin.yaw + direction * knot.travelled),
            velocity=(0.0, 0.0, direction * knot.speed),
        )
        for knot in profile.knots
    ]
    # Land exactly on the requested orientation (up to the 2*pi offset).
    last = states[-1]
    states[-1] = KnotState(last.time, (origin.x, origin.y, origin.yaw + delta))
    return states


def translation_states(origin: KnotState, destination: Tuple[float, float],
                       limits: KinematicLimits) -> List[KnotState]:
    """Drive in a straight line from ``origin`` to ``destination`` keeping the yaw."""
    dx = destination[0] - origin.x
    dy = destination[1] - origin.y
    distance = math.hypot(dx, dy)
    if distance == 0.0:
        return []
    ux, uy = dx / distance, dy / distance
    profile = compute_motion_profile(distance, limits.velocity, limits.acceleration)
    states = [
        KnotState(
            time=origin.time + knot.time,
            position=(origin.x + ux * knot.travelled, origin.y + uy * knot.travelled, origin.yaw),
            velocity=(ux * knot.speed, uy * knot.speed, 0.0),
        )
        for knot in profile.knots
    ]
    last = states[-1]
    states[-1] = KnotState(last.time, (destination[0], destination[1], origin.yaw))
    return states


def hold_state(origin: KnotState, until: float) -> KnotState:
    """Remain at ``origin`` until ``until``."""
    if until <= origin.time:
        raise ValueError(f"Hold must end after it starts: {until} <= {origin.time}")
    return KnotState(time=until, position=origin.position)


def build_trajectory(map_name: str, profile: Profile,
                     states: Sequence[KnotState]) -> Trajectory:
    """Assemble knot states into a trajectory sharing ``profile``."""
    trajectory = Trajectory(map_name)
    for state in states:
        result = trajectory.insert(state.time, profile, state.position, state.velocity)
        if not result.inserted:
            raise ValueError(f"Duplicate knot time {state.time} while building trajectory")
    return trajectory


__all__ = [
    "KnotState",
    "build_trajectory",
    "hold_state",
    "rest_state",
    "rotation_states",
    "translation_states",
]
