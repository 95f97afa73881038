"""
AGV kinematic traits
====================
Read-only description of a vehicle as seen by the planner.

Design notes:
    - VehicleTraits only stores limits and the footprint profile; it has no
      dynamic state (position, time) because the planner is handed that
      explicitly for every request
    - the profile is shared with every segment the planner emits, so
      changing it after planning changes the footprint of those segments too
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from config import DEFAULT_VEHICLE_DEFAULTS
from core.profile import Circle, Profile, make_strict


@dataclass(frozen=True)
class KinematicLimits:
    """Nominal velocity and acceleration bound along one degree of freedom."""

    velocity: float
    acceleration: float

    def __post_init__(self):
        if self.velocity <= 0:
            raise ValueError(f"Velocity limit must be positive: {self.velocity}")
        if self.acceleration <= 0:
            raise ValueError(f"Acceleration limit must be positive: {self.acceleration}")


@dataclass
class VehicleTraits:
    """
    Kinematic limits and footprint of an AGV.

    Attributes:
        linear: translational velocity/acceleration limits (m/s, m/s^2)
        rotational: yaw rate/acceleration limits (rad/s, rad/s^2)
        profile: footprint shared with every planned segment
        reversible: whether the vehicle may drive a lane facing backwards
    """

    linear: KinematicLimits
    rotational: KinematicLimits
    profile: Profile
    reversible: bool = True

    def get_linear(self) -> KinematicLimits:
        return self.linear

    def get_rotational(self) -> KinematicLimits:
        return self.rotational

    def get_profile(self) -> Profile:
        return self.profile


def create_vehicle_traits(linear_velocity: float = DEFAULT_VEHICLE_DEFAULTS.linear_velocity_m_s,
                          linear_acceleration: float = DEFAULT_VEHICLE_DEFAULTS.linear_acceleration_m_s2,
                          angular_velocity: float = DEFAULT_VEHICLE_DEFAULTS.angular_velocity_rad_s,
                          angular_acceleration: float = DEFAULT_VEHICLE_DEFAULTS.angular_acceleration_rad_s2,
                          profile: Optional[Profile] = None,
                          reversible: bool = DEFAULT_VEHICLE_DEFAULTS.reversible) -> VehicleTraits:
    """Factory for vehicle traits, falling back to the configured defaults."""
    if profile is None:
        profile = make_strict(Circle(DEFAULT_VEHICLE_DEFAULTS.footprint_radius_m))
    return VehicleTraits(
        linear=KinematicLimits(linear_velocity, linear_acceleration),
        rotational=KinematicLimits(angular_velocity, angular_acceleration),
        profile=profile,
        reversible=reversible,
    )


__all__ = ["KinematicLimits", "VehicleTraits", "create_vehicle_traits"]
