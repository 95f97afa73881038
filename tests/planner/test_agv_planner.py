"""Scenario tests for the time-expanded AGV planner.

All scenarios run on the reference layout from ``config.graph_layout`` with a
vehicle of 1 m footprint radius, 0.7 m/s / 0.3 m/s^2 linear limits and
1.0 rad/s / 0.45 rad/s^2 angular limits.
"""

import math

import numpy as np
import pytest

from config.graph_layout import DEFAULT_MAP_NAME, add_scenario_lanes, build_reference_graph
from coordinator.conflict import DetectConflict
from core.profile import Circle, make_autonomous
from physics.spline import Spline
from planner.agv_planner import Planner, PlannerOptions, PlanResult
from planner.motion import build_trajectory, rest_state


def _options(traits, graph, schedule):
    return PlannerOptions(traits=traits, graph=graph, schedule=schedule)


def _obstacle(profile, timeline, start_time=0.0):
    """Vehicle resting at each ``(offset, (x, y))`` of ``timeline``."""
    states = [rest_state(start_time + offset, x, y, 0.0) for offset, (x, y) in timeline]
    return build_trajectory(DEFAULT_MAP_NAME, profile, states)


def _location(segment):
    return (float(segment.finish_position[0]), float(segment.finish_position[1]))


def _yaw(segment):
    return float(segment.finish_position[2])


def _same_heading(first, second, tolerance=1e-6):
    return abs(math.remainder(first - second, 2.0 * math.pi)) <= tolerance


def _visits(trajectory, location, tolerance=1e-6):
    return any(math.dist(_location(segment), location) <= tolerance for segment in trajectory)


def _assert_endpoints(trajectory, graph, start, goal, start_time):
    assert trajectory.start_time() == pytest.approx(start_time)
    assert _location(trajectory.front()) == pytest.approx(graph.get_waypoint(start).location)
    assert _location(trajectory.back()) == pytest.approx(graph.get_waypoint(goal).location)
    assert trajectory.check_time_consistency()
    assert trajectory.map_name == DEFAULT_MAP_NAME


def _assert_within_limits(trajectory, traits):
    spline = Spline.from_segments(trajectory)
    times = np.linspace(spline.start_time, spline.finish_time, 4000)
    velocities = spline.velocities_at(times)
    assert np.all(np.hypot(velocities[:, 0], velocities[:, 1]) <= traits.linear.velocity + 1e-6)
    assert np.all(np.abs(velocities[:, 2]) <= traits.rotational.velocity + 1e-6)


# ========== Trivial requests ==========

def test_start_equals_goal_without_orientation(traits, reference_graph, schedule):
    found, solution = Planner.solve(0.0, 3, 0.0, 3, None, _options(traits, reference_graph, schedule))

    assert found
    assert len(solution) == 1
    assert solution[0].size() == 0


def test_start_equals_goal_with_matching_orientation(traits, reference_graph, schedule):
    result = Planner.solve(0.0, 3, 0.0, 3, 2.0 * math.pi, _options(traits, reference_graph, schedule))
    assert result.found
    assert result.solution[0].empty()


def test_start_equals_goal_needs_rotation(traits, reference_graph, schedule):
    start_time = 5.0
    found, solution = Planner.solve(start_time, 3, 0.0, 3, math.pi / 2,
                                    _options(traits, reference_graph, schedule))

    assert found
    trajectory = solution[0]
    assert trajectory.size() > 0
    assert _yaw(trajectory.back()) == pytest.approx(math.pi / 2)
    assert trajectory.finish_time() > start_time
    # Rotating on the spot: the vehicle never leaves the waypoint
    assert all(_location(segment) == pytest.approx((10.0, -5.0)) for segment in trajectory)


@pytest.mark.parametrize("goal_yaw", [0.0, -math.pi / 2])
def test_final_yaw_is_the_requested_value(traits, reference_graph, schedule, goal_yaw):
    # Turning away from pi crosses the wrap-around; the result must not end 2*pi off
    found, solution = Planner.solve(0.0, 0, math.pi, 0, goal_yaw,
                                    _options(traits, reference_graph, schedule))

    assert found
    trajectory = solution[0]
    assert _yaw(trajectory.back()) == pytest.approx(goal_yaw, abs=1e-9)
    assert _same_heading(_yaw(trajectory.front()), math.pi)
    assert trajectory.check_time_consistency()
    _assert_within_limits(trajectory, traits)


# ========== Preconditions and infeasibility ==========

@pytest.mark.parametrize("start, goal", [(3, 99), (-1, 3), (42, 3)])
def test_unknown_waypoint_raises(traits, reference_graph, schedule, start, goal):
    with pytest.raises(ValueError):
        Planner.solve(0.0, start, 0.0, goal, None, _options(traits, reference_graph, schedule))


def test_disconnected_goal_is_not_found(traits, reference_graph, schedule):
    # Without the dock lanes waypoint 12 has no lanes at all
    result = Planner.solve(0.0, 2, 0.0, 12, None, _options(traits, reference_graph, schedule))

    assert not result.found
    assert result.solution == []
    assert not result
    assert result.expansions > 0


# ========== Unobstructed routes ==========

def test_unobstructed_route(traits, schedule):
    graph = build_reference_graph(with_scenario_lanes=True)
    start_time = 12.0
    result = Planner(_options(traits, graph, schedule)).plan(start_time, 12, 0.0, 5)

    assert isinstance(result, PlanResult)
    assert result.found
    trajectory = result.solution[0]
    _assert_endpoints(trajectory, graph, 12, 5, start_time)
    # Shortest route is 12 -> 11 -> 10 -> 9 -> 5
    for waypoint in (11, 10, 9):
        assert _visits(trajectory, graph.get_waypoint(waypoint).location)
    assert not _visits(trajectory, graph.get_waypoint(6).location)


def test_planner_does_not_mutate_inputs(traits, schedule, unit_circle_profile):
    graph = build_reference_graph(with_scenario_lanes=True)
    obstacle_id = schedule.insert(_obstacle(unit_circle_profile, [(0.0, (12.0, 12.0)), (5.0, (12.0, 12.0))]))
    lanes_before = graph.num_lanes()

    Planner.solve(0.0, 2, 0.0, 9, None, _options(traits, graph, schedule))

    assert graph.num_lanes() == lanes_before
    assert schedule.size() == 1
    assert schedule.get(obstacle_id).finish_time() == 5.0


def test_options_accessors(traits, reference_graph, schedule):
    options = _options(traits, reference_graph, schedule)
    other = build_reference_graph(with_scenario_lanes=True)

    assert options.get_graph() is reference_graph
    assert options.set_graph(other).get_graph() is other
    assert options.get_traits() is traits


# ========== Orientation-constrained lanes ==========

def test_spur_constrained_to_quarter_turn(traits, schedule):
    graph = build_reference_graph()
    add_scenario_lanes(graph, spur_orientations=[math.pi / 2])

    found, solution = Planner.solve(0.0, 12, 0.0, 5, None, _options(traits, graph, schedule))

    assert found
    trajectory = solution[0]
    _assert_endpoints(trajectory, graph, 12, 5, 0.0)
    # Every state strictly inside the 9 -> 5 lane faces +y, even while driving -y
    inside = [s for s in trajectory if abs(_location(s)[0]) < 1e-9 and 1e-9 < _location(s)[1] < 8.0 - 1e-9]
    assert inside
    assert all(_same_heading(_yaw(segment), math.pi / 2) for segment in inside)
    assert _same_heading(_yaw(trajectory.back()), math.pi / 2)


@pytest.mark.parametrize("dock_yaw", [0.0, math.pi])
def test_dock_constrained_heading(traits, schedule, dock_yaw):
    graph = build_reference_graph()
    add_scenario_lanes(graph, dock_orientations=[dock_yaw])

    found, solution = Planner.solve(0.0, 2, 0.0, 12, None, _options(traits, graph, schedule))

    assert found
    trajectory = solution[0]
    _assert_endpoints(trajectory, graph, 2, 12, 0.0)
    assert _same_heading(_yaw(trajectory.back()), dock_yaw)
    inside = [s for s in trajectory if abs(_location(s)[1] - 12.0) < 1e-9 and 10.0 + 1e-9 < _location(s)[0] < 12.0 - 1e-9]
    assert inside
    assert all(_same_heading(_yaw(segment), dock_yaw) for segment in inside)


def test_goal_orientation_is_reached(traits, schedule):
    graph = build_reference_graph(with_scenario_lanes=True)
    found, solution = Planner.solve(0.0, 2, 0.0, 12, -math.pi / 2, _options(traits, graph, schedule))

    assert found
    trajectory = solution[0]
    assert _yaw(trajectory.back()) == pytest.approx(-math.pi / 2)
    assert _location(trajectory.back()) == pytest.approx((12.0, 12.0))
    _assert_within_limits(trajectory, traits)


# ========== Obstacle avoidance ==========

HEAD_ON_FROM_9 = [(19.0, (0.0, 8.0)), (40.0, (5.0, 8.0)), (50.0, (10.0, 12.0))]
DOWN_THE_SPUR = [(24.0, (0.0, 8.0)), (50.0, (0.0, 0.0)), (70.0, (0.0, -5.0))]


@pytest.mark.parametrize(
    "start, goal, timeline, holding_waypoint, spur_orientations, dock_orientations",
    [
        (12, 5, HEAD_ON_FROM_9, 6, None, None),
        (12, 5, HEAD_ON_FROM_9, 6, [math.pi / 2], None),
        (2, 12, DOWN_THE_SPUR, 4, None, None),
        (2, 12, DOWN_THE_SPUR, 4, None, [0.0]),
        (2, 12, DOWN_THE_SPUR, 4, None, [math.pi]),
    ],
    ids=["head_on_from_9", "head_on_from_9_spur_quarter_turn",
         "down_the_spur", "down_the_spur_dock_0", "down_the_spur_dock_pi"],
)
def test_obstacle_forces_detour_through_holding_point(traits, unit_circle_profile, schedule,
                                                     start, goal, timeline, holding_waypoint,
                                                     spur_orientations, dock_orientations):
    graph = add_scenario_lanes(build_reference_graph(), spur_orientations, dock_orientations)
    start_time = 100.0
    options = _options(traits, graph, schedule)

    free_found, free_solution = Planner.solve(start_time, start, 0.0, goal, None, options)
    assert free_found
    free_duration = free_solution[0].duration()

    obstacle = _obstacle(unit_circle_profile, timeline, start_time)
    schedule.insert(obstacle)
    found, solution = Planner.solve(start_time, start, 0.0, goal, None, options)

    assert found
    trajectory = solution[0]
    _assert_endpoints(trajectory, graph, start, goal, start_time)
    assert trajectory.duration() > free_duration
    for committed in schedule.query():
        assert DetectConflict.between(trajectory, committed) == []
    assert _visits(trajectory, graph.get_waypoint(holding_waypoint).location)
    _assert_within_limits(trajectory, traits)
    # The unobstructed plan collides with the obstacle
    assert DetectConflict.between(free_solution[0], obstacle)


def test_waits_at_holding_point_until_lane_clears(traits, unit_circle_profile, reference_graph, schedule):
    # Obstacle parked on waypoint 10 for the first 30 s
    obstacle = _obstacle(unit_circle_profile, [(0.0, (5.0, 8.0)), (30.0, (5.0, 8.0))])
    schedule.insert(obstacle)

    found, solution = Planner.solve(0.0, 6, math.pi / 2, 10, None,
                                    _options(traits, reference_graph, schedule))

    assert found
    trajectory = solution[0]
    _assert_endpoints(trajectory, reference_graph, 6, 10, 0.0)
    assert trajectory.finish_time() > 30.0
    assert DetectConflict.between(trajectory, obstacle) == []
    # The second knot is the end of the wait at the holding point
    hold = trajectory[1]
    assert _location(hold) == pytest.approx((5.0, 0.0))
    assert hold.finish_time > 0.0
    assert list(hold.finish_velocity) == [0.0, 0.0, 0.0]


def test_waits_at_earlier_holding_point_when_blocked_further_on(traits, unit_circle_profile, schedule):
    # Obstacle parked on waypoint 10 for the first 60 s.  The route 2 -> 1 -> 5 -> 9 -> 10
    # only gets blocked on the last lane, after the non-holding waypoint 9
    graph = build_reference_graph(with_scenario_lanes=True)
    obstacle = _obstacle(unit_circle_profile, [(0.0, (5.0, 8.0)), (60.0, (5.0, 8.0))])
    schedule.insert(obstacle)

    result = Planner.solve(0.0, 2, 0.0, 10, None, _options(traits, graph, schedule))

    assert result.found
    trajectory = result.solution[0]
    _assert_endpoints(trajectory, graph, 2, 10, 0.0)
    assert trajectory.finish_time() > 60.0
    assert DetectConflict.between(trajectory, obstacle) == []
    _assert_within_limits(trajectory, traits)
    # Driving 5 -> 9 -> 10 takes well under 30 s, so the vehicle is still at 5 late
    late_at_5 = [segment for segment in trajectory
                 if _location(segment) == pytest.approx((0.0, 0.0)) and segment.finish_time > 30.0]
    assert late_at_5


def test_committed_profile_changes_are_respected(traits, unit_circle_profile, reference_graph, schedule):
    obstacle_profile = make_autonomous(Circle(1.0))
    schedule.insert(_obstacle(obstacle_profile, [(0.0, (5.0, 8.0)), (30.0, (5.0, 8.0))]))
    unit_circle_profile.set_to_autonomous()

    found, solution = Planner.solve(0.0, 6, math.pi / 2, 10, None,
                                    _options(traits, reference_graph, schedule))

    assert found
    # Two autonomous vehicles never block each other, so no wait is needed
    assert solution[0].finish_time() < 30.0
