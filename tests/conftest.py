"""Shared fixtures for the traffic planner tests."""

import pytest

from config.graph_layout import DEFAULT_MAP_NAME, build_reference_graph
from coordinator.schedule import ScheduleDatabase
from core.profile import Circle, make_strict
from core.trajectory import Trajectory
from core.vehicle import create_vehicle_traits


@pytest.fixture
def unit_circle_profile():
    return make_strict(Circle(1.0))


@pytest.fixture
def traits(unit_circle_profile):
    return create_vehicle_traits(
        linear_velocity=0.7,
        linear_acceleration=0.3,
        angular_velocity=1.0,
        angular_acceleration=0.45,
        profile=unit_circle_profile,
    )


@pytest.fixture
def reference_graph():
    return build_reference_graph(DEFAULT_MAP_NAME)


@pytest.fixture
def schedule():
    return ScheduleDatabase()


@pytest.fixture
def three_segment_trajectory(unit_circle_profile):
    """Segments at t=0, 10 and 20 s standing still at increasing x."""
    trajectory = Trajectory(DEFAULT_MAP_NAME)
    for index, time in enumerate((0.0, 10.0, 20.0)):
        trajectory.insert(time, unit_circle_profile, (float(index), 0.0, 0.0), (0.0, 0.0, 0.0))
    return trajectory
