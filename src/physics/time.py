"""Motion timing helpers used by the planner.

The functions translate kinematic limits into scheduling values: they compute
the nominal travel time of a distance at cruise speed (used by the admissible
search heuristic) and the rest-to-rest trapezoidal velocity profile that the
planner turns into trajectory segments.  The same profile serves translation
along a lane (metres, m/s, m/s^2) and in-place rotation (radians, rad/s,
rad/s^2).
"""

import math
from dataclasses import dataclass
from typing import Tuple


def calculate_travel_time(distance: float, speed: float) -> float:
    """
    Travel time at constant ``speed``, ignoring acceleration.

    This never over-estimates the time of a kinematically feasible motion,
    which makes it suitable as an A* heuristic.

    Example:
        >>> calculate_travel_time(100, 2.0)
        50.0
    """
    if speed <= 0:
        raise ValueError(f"Velocity must be positive: {speed}")
    if distance < 0:
        raise ValueError(f"The distance cannot be negative: {distance}")

    return distance / speed


@dataclass(frozen=True)
class MotionKnot:
    """State of a 1-D motion at ``time`` seconds after it started."""

    time: float
    travelled: float
    speed: float


@dataclass(frozen=True)
class MotionProfile:
    """Rest-to-rest motion over ``distance``.

    ``knots`` lists the points where the acceleration changes, excluding the
    initial rest state; the last knot is always ``(duration, distance, 0)``.
    Between knots the travelled distance is at most quadratic in time.
    """

    distance: float
    duration: float
    knots: Tuple[MotionKnot, ...]

    def is_trivial(self) -> bool:
        return not self.knots


def compute_motion_profile(distance: float, max_speed: float,
                           max_acceleration: float) -> MotionProfile:
    """
    Fastest rest-to-rest motion covering ``distance`` under the given limits.

    Shape:
        - trapezoid: accelerate to ``max_speed``, cruise, decelerate
        - triangle: when the distance is too short to reach ``max_speed``,
          accelerate until halfway then decelerate
    """
    if max_speed <= 0:
        raise ValueError(f"Velocity must be positive: {max_speed}")
    if max_acceleration <= 0:
        raise ValueError(f"Acceleration must be positive: {max_acceleration}")
    if distance < 0:
        raise ValueError(f"The distance cannot be negative: {distance}")
    if distance == 0:
        return MotionProfile(distance=0.0, duration=0.0, knots=())

    ramp_time = max_speed / max_acceleration
    ramp_distance = 0.5 * max_speed * ramp_time

    if 2.0 * ramp_distance >= distance:
        half_time = math.sqrt(distance / max_acceleration)
        peak_speed = max_acceleration * half_time
        knots = (
            MotionKnot(half_time, 0.5 * distance, peak_speed),
            MotionKnot(2.0 * half_time, distance, 0.0),
        )
        return MotionProfile(distance=distance, duration=2.0 * half_time, knots=knots)

    cruise_time = (distance - 2.0 * ramp_distance) / max_speed
    duration = 2.0 * ramp_time + cruise_time
    knots = (
        MotionKnot(ramp_time, ramp_distance, max_speed),
        MotionKnot(ramp_time + cruise_time, distance - ramp_distance, max_speed),
        MotionKnot(duration, distance, 0.0),
    )
    return MotionProfile(distance=distance, duration=duration, knots=knots)


__all__ = [
    "MotionKnot",
    "MotionProfile",
    "calculate_travel_time",
    "compute_motion_profile",
]
