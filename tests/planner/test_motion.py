"""Tests for the candidate motion builders used during search expansion."""

import math

import numpy as np
import pytest

from core.vehicle import KinematicLimits
from planner.motion import (
    build_trajectory,
    hold_state,
    rest_state,
    rotation_states,
    translation_states,
)

LINEAR = KinematicLimits(0.7, 0.3)
ANGULAR = KinematicLimits(1.0, 0.45)


def test_rotation_takes_shortest_way():
    origin = rest_state(0.0, 1.0, 2.0, math.radians(170))
    states = rotation_states(origin, math.radians(-170), ANGULAR)

    final = states[-1]
    assert final.yaw == pytest.approx(math.radians(190))
    assert (final.x, final.y) == (1.0, 2.0)
    assert final.velocity == (0.0, 0.0, 0.0)
    assert all(state.velocity[2] >= 0 for state in states)
    assert all(later.time > earlier.time for earlier, later in zip(states, states[1:]))


def test_rotation_within_tolerance_is_empty():
    origin = rest_state(0.0, 0.0, 0.0, 0.5)
    assert rotation_states(origin, 0.5 + 1e-4, ANGULAR, tolerance=1e-3) == []


def test_translation_ends_at_destination_at_rest():
    origin = rest_state(3.0, 0.0, 0.0, math.pi / 2)
    states = translation_states(origin, (0.0, 8.0), LINEAR)

    assert len(states) == 3
    final = states[-1]
    assert (final.x, final.y, final.yaw) == (0.0, 8.0, math.pi / 2)
    assert final.velocity == (0.0, 0.0, 0.0)
    assert states[0].velocity[1] == pytest.approx(0.7)
    assert states[0].time == pytest.approx(3.0 + 0.7 / 0.3)


def test_translation_to_same_place_is_empty():
    origin = rest_state(0.0, 1.0, 1.0, 0.0)
    assert translation_states(origin, (1.0, 1.0), LINEAR) == []


def test_hold_state():
    origin = rest_state(2.0, 1.0, 1.0, 0.3)
    hold = hold_state(origin, 7.5)
    assert hold.time == 7.5
    assert hold.position == origin.position
    with pytest.raises(ValueError):
        hold_state(origin, 2.0)


def test_build_trajectory(unit_circle_profile):
    origin = rest_state(0.0, 0.0, 0.0, 0.0)
    states = [origin, *translation_states(origin, (5.0, 0.0), LINEAR)]
    trajectory = build_trajectory("test_map", unit_circle_profile, states)

    assert trajectory.size() == len(states)
    assert trajectory.map_name == "test_map"
    np.testing.assert_allclose(trajectory.back().finish_position, [5.0, 0.0, 0.0])
    assert all(segment.profile is unit_circle_profile for segment in trajectory)

    with pytest.raises(ValueError):
        build_trajectory("test_map", unit_circle_profile, [origin, origin])
