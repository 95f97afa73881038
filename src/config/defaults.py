"""Central repository for tunable planner, vehicle, and conflict defaults.

All frequently adjusted numerical values that influence the trajectory
planner, vehicle kinematics, or conflict detection are collected here so they
can be updated from a single location without touching algorithmic code.  The
constants are exposed as frozen dataclasses to provide structure and discover-
ability while keeping them easily serialisable.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class VehicleDefaults:
    """Baseline AGV kinematic limits used by the traits factory."""

    linear_velocity_m_s: float = 0.7
    linear_acceleration_m_s2: float = 0.3
    angular_velocity_rad_s: float = 1.0
    angular_acceleration_rad_s2: float = 0.45
    footprint_radius_m: float = 1.0
    reversible: bool = True


@dataclass(frozen=True)
class PlannerDefaults:
    """Knobs steering the time-expanded search."""

    # Two headings closer than this are treated as the same orientation.
    heading_tolerance_rad: float = 1e-3
    # Bucket width used when de-duplicating states reached at different times.
    time_resolution_s: float = 0.5
    max_hold_attempts: int = 20
    # Extra slack added on top of a conflict interval when computing a hold.
    hold_margin_s: float = 0.1

    def __post_init__(self) -> None:
        if self.heading_tolerance_rad < 0:
            raise ValueError(f"heading_tolerance_rad must be non-negative, got {self.heading_tolerance_rad}")
        if self.time_resolution_s <= 0:
            raise ValueError(f"time_resolution_s must be positive, got {self.time_resolution_s}")
        if self.max_hold_attempts < 1:
            raise ValueError(f"max_hold_attempts must be at least 1, got {self.max_hold_attempts}")
        if self.hold_margin_s <= 0:
            raise ValueError(f"hold_margin_s must be positive, got {self.hold_margin_s}")


@dataclass(frozen=True)
class ConflictDefaults:
    """Sampling configuration for the pairwise conflict detector."""

    sample_step_s: float = 0.1
    # Distances are compared against the sum of footprints minus this slack.
    distance_tolerance_m: float = 1e-6

    def __post_init__(self) -> None:
        if self.sample_step_s <= 0:
            raise ValueError(f"sample_step_s must be positive, got {self.sample_step_s}")
        if self.distance_tolerance_m < 0:
            raise ValueError(f"distance_tolerance_m must be non-negative, got {self.distance_tolerance_m}")


@dataclass(frozen=True)
class TrafficParameters:
    """Bundle of defaults covering vehicle, planner, and conflict settings."""

    vehicle: VehicleDefaults = field(default_factory=VehicleDefaults)
    planner: PlannerDefaults = field(default_factory=PlannerDefaults)
    conflict: ConflictDefaults = field(default_factory=ConflictDefaults)


DEFAULT_VEHICLE_DEFAULTS = VehicleDefaults()
DEFAULT_PLANNER_DEFAULTS = PlannerDefaults()
DEFAULT_CONFLICT_DEFAULTS = ConflictDefaults()
DEFAULT_TRAFFIC_PARAMETERS = TrafficParameters()


__all__ = [
    "VehicleDefaults",
    "PlannerDefaults",
    "ConflictDefaults",
    "TrafficParameters",
    "DEFAULT_VEHICLE_DEFAULTS",
    "DEFAULT_PLANNER_DEFAULTS",
    "DEFAULT_CONFLICT_DEFAULTS",
    "DEFAULT_TRAFFIC_PARAMETERS",
]
