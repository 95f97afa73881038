"""Configuration defaults shared across the traffic planner packages."""

from config.defaults import (
    ConflictDefaults,
    DEFAULT_CONFLICT_DEFAULTS,
    DEFAULT_PLANNER_DEFAULTS,
    DEFAULT_TRAFFIC_PARAMETERS,
    DEFAULT_VEHICLE_DEFAULTS,
    PlannerDefaults,
    TrafficParameters,
    VehicleDefaults,
)

__all__ = [
    "ConflictDefaults",
    "PlannerDefaults",
    "TrafficParameters",
    "VehicleDefaults",
    "DEFAULT_CONFLICT_DEFAULTS",
    "DEFAULT_PLANNER_DEFAULTS",
    "DEFAULT_TRAFFIC_PARAMETERS",
    "DEFAULT_VEHICLE_DEFAULTS",
]
