"""Time-expanded best-first planner for AGVs on a navigation graph.

``Planner.solve`` searches over states ``(waypoint, time, yaw)`` ordered by
``elapsed time + straight-line distance / max speed`` (A*; the heuristic never
over-estimates).  Expanding a state proposes, for every outgoing lane and every
admissible travel yaw, a candidate motion made of an in-place rotation and a
rest-to-rest translation.  Candidates are checked against the trajectories
currently committed to the schedule:

    1. direct traversal: accepted when it has no conflict
    2. holding-point insertion: if the vehicle stands on a holding point, it
       may wait there; the wait is derived from the end of the conflicting
       intervals and re-checked until the traversal is clear
    3. backtracking: if the vehicle stands elsewhere, it goes back to the
       last holding point on its path and waits there before trying again

Candidates that are infeasible under all three policies are pruned.  The first
goal state taken off the frontier is the earliest arrival under this cost.

The planner never mutates the graph, the traits, or the schedule.  It takes
one snapshot of the committed trajectories per call, so a concurrent insert
into the schedule cannot change the outcome halfway through a search.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import math
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from config import (
    ConflictDefaults,
    DEFAULT_CONFLICT_DEFAULTS,
    DEFAULT_PLANNER_DEFAULTS,
    PlannerDefaults,
)
from coordinator.conflict import ConflictInterval, DetectConflict
from coordinator.schedule import ScheduleDatabase, query_map
from core.graph import Graph, Lane, Waypoint
from core.trajectory import Trajectory
from core.vehicle import VehicleTraits
from physics.distance import angle_difference, euclidean_distance, heading_between, wrap_angle
from physics.time import calculate_travel_time
from planner.motion import (
    KnotState,
    build_trajectory,
    hold_state,
    rest_state,
    rotation_states,
    translation_states,
)

logger = logging.getLogger(__name__)

MotionBuilder = Callable[[KnotState], List[KnotState]]


@dataclass
class PlannerOptions:
    """Inputs shared by every request: vehicle, graph, and schedule."""

    traits: VehicleTraits
    graph: Graph
    schedule: ScheduleDatabase
    config: PlannerDefaults = DEFAULT_PLANNER_DEFAULTS
    conflict_config: ConflictDefaults = DEFAULT_CONFLICT_DEFAULTS

    def get_graph(self) -> Graph:
        return self.graph

    def set_graph(self, graph: Graph) -> "PlannerOptions":
        self.graph = graph
        return self

    def get_traits(self) -> VehicleTraits:
        return self.traits

    def set_traits(self, traits: VehicleTraits) -> "PlannerOptions":
        self.traits = traits
        return self


@dataclass
class PlanResult:
    """Outcome of a planning request, unpacks as ``found, solution``."""

    found: bool
    solution: List[Trajectory] = field(default_factory=list)
    expansions: int = 0

    def __iter__(self):
        yield self.found
        yield self.solution

    def __bool__(self) -> bool:
        return self.found


@dataclass
class SearchNode:
    """Frontier entry: the vehicle rests at ``waypoint`` in ``state``."""

    waypoint: int
    state: KnotState
    cost: float
    # Knots appended by the action that produced this node.
    states: Tuple[KnotState, ...]
    parent: Optional["SearchNode"] = None
    # True when the node only waits at its holding point for a later departure.
    held: bool = False

    @property
    def time(self) -> float:
        return self.state.time

    @property
    def yaw(self) -> float:
        return self.state.yaw


class Planner:
    """Entry point for single-vehicle trajectory planning."""

    def __init__(self, options: PlannerOptions):
        self.options = options

    def plan(self, start_time: float, start_waypoint: int, start_orientation: float,
             goal_waypoint: int, goal_orientation: Optional[float] = None) -> PlanResult:
        return Planner.solve(start_time, start_waypoint, start_orientation,
                             goal_waypoint, goal_orientation, self.options)

    @staticmethod
    def solve(start_time: float, start_waypoint: int, start_orientation: float,
              goal_waypoint: int, goal_orientation: Optional[float],
              options: PlannerOptions) -> PlanResult:
        """
        Plan a conflict-free trajectory from ``start_waypoint`` to ``goal_waypoint``.

        Returns:
            PlanResult: ``found`` plus exactly one trajectory on success, an
            empty solution when no conflict-free route exists.

        Raises:
            ValueError: the start or goal waypoint is not part of the graph.
        """
        graph = options.graph
        for label, index in (("start", start_waypoint), ("goal", goal_waypoint)):
            if not graph.has_waypoint(index):
                raise ValueError(
                    f"The {label} waypoint {index} is not in the graph "
                    f"({graph.num_waypoints()} waypoints)"
                )

        start = graph.get_waypoint(start_waypoint)
        tolerance = options.config.heading_tolerance_rad
        if start_waypoint == goal_waypoint and (
                goal_orientation is None
                or abs(angle_difference(goal_orientation, start_orientation)) <= tolerance):
            logger.debug(f"[PLANNER] Start already satisfies the goal at {start}")
            return PlanResult(found=True, solution=[Trajectory(start.map_name)])

        search = _Search(options, start_time, start, start_orientation,
                         graph.get_waypoint(goal_waypoint), goal_orientation)
        return search.run()


class _Search:
    """State of a single ``Planner.solve`` call."""

    def __init__(self, options: PlannerOptions, start_time: float, start: Waypoint,
                 start_orientation: float, goal: Waypoint, goal_orientation: Optional[float]):
        self.graph = options.graph
        self.traits = options.traits
        self.config = options.config
        self.conflict_config = options.conflict_config
        self.start_time = float(start_time)
        self.start = start
        self.start_orientation = float(start_orientation)
        self.goal = goal
        self.goal_orientation = goal_orientation
        self.map_name = start.map_name
        self.tolerance = self.config.heading_tolerance_rad

        self.obstacles: List[Trajectory] = [
            trajectory for trajectory in options.schedule.query(query_map(self.map_name))
            if len(trajectory) >= 2
        ]
        # Past the horizon nothing else moves, so arriving earlier always dominates.
        horizon = options.schedule.horizon(self.map_name)
        self.horizon = -math.inf if horizon is None else horizon
        self._heuristics: Dict[int, float] = {}

    # ----- main loop -----

    def run(self) -> PlanResult:
        logger.debug(
            f"[PLANNER] Solving {self.start} -> {self.goal} at t={self.start_time:.2f} "
            f"against {len(self.obstacles)} committed trajectories"
        )
        x, y = self.start.location
        root = SearchNode(
            waypoint=self.start.index,
            state=rest_state(self.start_time, x, y, self.start_orientation),
            cost=0.0,
            states=(rest_state(self.start_time, x, y, self.start_orientation),),
        )

        counter = itertools.count()
        frontier: List[Tuple[float, int, SearchNode]] = []
        heapq.heappush(frontier, (self._heuristic(root.waypoint), next(counter), root))
        closed: Set[tuple] = set()
        expansions = 0

        while frontier:
            _, _, node = heapq.heappop(frontier)
            key = self._state_key(node)
            if key in closed:
                continue
            closed.add(key)

            if self._is_goal(node):
                trajectory = self._reconstruct(node)
                logger.info(
                    f"[PLANNER] Found route {self.start} -> {self.goal}: "
                    f"{len(trajectory)} segments, {trajectory.duration():.2f}s, "
                    f"{expansions} expansions"
                )
                return PlanResult(found=True, solution=[trajectory], expansions=expansions)

            expansions += 1
            for child in self._expand(node):
                if self._state_key(child) in closed:
                    continue
                priority = child.cost + self._heuristic(child.waypoint)
                heapq.heappush(frontier, (priority, next(counter), child))

        logger.info(
            f"[PLANNER] No conflict-free route {self.start} -> {self.goal} "
            f"after {expansions} expansions"
        )
        return PlanResult(found=False, solution=[], expansions=expansions)

    # ----- search helpers -----

    def _heuristic(self, waypoint: int) -> float:
        if waypoint not in self._heuristics:
            x, y = self.graph.get_waypoint(waypoint).location
            gx, gy = self.goal.location
            self._heuristics[waypoint] = calculate_travel_time(
                euclidean_distance(x, y, gx, gy), self.traits.linear.velocity
            )
        return self._heuristics[waypoint]

    def _state_key(self, node: SearchNode) -> tuple:
        yaw = wrap_angle(node.yaw)
        yaw_key = (round(math.cos(yaw), 3), round(math.sin(yaw), 3))
        bucket = math.floor(node.time / self.config.time_resolution_s)
        if node.held:
            return (node.waypoint, yaw_key, "held", bucket)
        if self.graph.get_waypoint(node.waypoint).is_holding_point or node.time >= self.horizon:
            return (node.waypoint, yaw_key)
        return (node.waypoint, yaw_key, bucket)

    def _is_goal(self, node: SearchNode) -> bool:
        if node.waypoint != self.goal.index:
            return False
        if self.goal_orientation is None:
            return True
        return abs(angle_difference(self.goal_orientation, node.yaw)) <= self.tolerance

    def _expand(self, node: SearchNode) -> List[SearchNode]:
        children: List[SearchNode] = []
        here = self.graph.get_waypoint(node.waypoint)

        if node.waypoint == self.goal.index and self.goal_orientation is not None:
            turn = partial(rotation_states, target_yaw=self.goal_orientation,
                           limits=self.traits.rotational, tolerance=self.tolerance)
            child = self._negotiate(node, node.waypoint, turn)
            if child is not None:
                children.append(child)

        for lane in self.graph.lanes_from(node.waypoint):
            there = self.graph.get_waypoint(lane.exit)
            if there.map_name != here.map_name:
                # Map transitions are not planned here.
                continue
            for travel_yaw in self._travel_yaws(here, there, lane, node.yaw):
                drive = partial(self._lane_motion, travel_yaw=travel_yaw, destination=there.location)
                child = self._negotiate(node, lane.exit, drive)
                if child is not None:
                    children.append(child)
        return children

    def _travel_yaws(self, here: Waypoint, there: Waypoint, lane: Lane,
                     current_yaw: float) -> List[float]:
        """Yaw angles the vehicle may hold while driving ``lane``."""
        if here.location == there.location:
            constraint = lane.get_orientation_constraint()
            if constraint is None or constraint.is_unconstrained() \
                    or constraint.allows(current_yaw, self.tolerance):
                return [current_yaw]
            return list(constraint.orientations)

        forward = heading_between(here.location, there.location)
        candidates = [forward]
        if self.traits.reversible:
            candidates.append(wrap_angle(forward + math.pi))
        return [yaw for yaw in candidates if lane.allows(yaw, self.tolerance)]

    def _lane_motion(self, origin: KnotState, travel_yaw: float,
                     destination: Tuple[float, float]) -> List[KnotState]:
        turn = rotation_states(origin, travel_yaw, self.traits.rotational, self.tolerance)
        drive = translation_states(turn[-1] if turn else origin, destination, self.traits.linear)
        return turn + drive

    # ----- conflict negotiation -----

    def _negotiate(self, node: SearchNode, target: int,
                   build_motion: MotionBuilder) -> Optional[SearchNode]:
        origin = node.state
        motion = build_motion(origin)
        if not motion:
            return self._make_child(node, target, ())

        conflicts = self._conflicts([origin, *motion])
        if not conflicts:
            return self._make_child(node, target, tuple(motion))

        if not self.graph.get_waypoint(node.waypoint).is_holding_point:
            return self._wait_at_last_holding_point(node, conflicts)
        return self._hold_and_retry(node, target, build_motion, conflicts)

    def _wait_at_last_holding_point(self, node: SearchNode,
                                    conflicts: Sequence[ConflictInterval]) -> Optional[SearchNode]:
        """Go back to the closest holding point on the path and leave it later.

        The returned node rests at that holding point until the new departure
        and is expanded like any other node, so the route past it is planned
        again against the later start.
        """
        anchor: Optional[SearchNode] = node
        while anchor is not None and not self.graph.get_waypoint(anchor.waypoint).is_holding_point:
            anchor = anchor.parent
        if anchor is None:
            return None

        # Consecutive waits collapse into one.
        base = anchor
        while base.held and base.parent is not None:
            base = base.parent

        earliest = min(interval.start for interval in conflicts)
        latest = max(interval.finish for interval in conflicts)
        delay = max((latest - earliest) + self.config.hold_margin_s, self.config.time_resolution_s)
        departure = min(anchor.time + delay, self.horizon + self.config.hold_margin_s)
        if departure <= anchor.time:
            return None

        hold = hold_state(base.state, departure)
        if self._conflicts([base.state, hold]):
            return None
        logger.debug(
            f"[PLANNER] Conflict past waypoint {node.waypoint}; waiting at holding point "
            f"{base.waypoint} until t={departure:.2f}"
        )
        return SearchNode(
            waypoint=base.waypoint,
            state=hold,
            cost=departure - self.start_time,
            states=(hold,),
            parent=base,
            held=True,
        )

    def _hold_and_retry(self, node: SearchNode, target: int, build_motion: MotionBuilder,
                        conflicts: Sequence[ConflictInterval]) -> Optional[SearchNode]:
        origin = node.state
        departure = origin.time
        attempts = self.config.max_hold_attempts
        for attempt in range(attempts):
            earliest = min(interval.start for interval in conflicts)
            latest = max(interval.finish for interval in conflicts)
            departure += (latest - earliest) + self.config.hold_margin_s
            if attempt == attempts - 1 and departure < self.horizon:
                departure = self.horizon + self.config.hold_margin_s

            hold = hold_state(origin, departure)
            motion = build_motion(hold)
            conflicts = self._conflicts([origin, hold, *motion])
            if not conflicts:
                logger.debug(
                    f"[PLANNER] Holding at waypoint {node.waypoint} for "
                    f"{departure - origin.time:.2f}s before heading to {target}"
                )
                return self._make_child(node, target, (hold, *motion))

            if min(interval.start for interval in conflicts) <= departure:
                # The holding spot itself gets occupied; waiting longer cannot help.
                return None
        return None

    def _conflicts(self, states: Sequence[KnotState]) -> List[ConflictInterval]:
        if not self.obstacles:
            return []
        candidate = build_trajectory(self.map_name, self.traits.profile, states)
        intervals: List[ConflictInterval] = []
        for obstacle in self.obstacles:
            intervals.extend(DetectConflict.between(candidate, obstacle, self.conflict_config))
        return intervals

    # ----- result -----

    def _make_child(self, node: SearchNode, waypoint: int,
                    states: Tuple[KnotState, ...]) -> SearchNode:
        state = states[-1] if states else node.state
        return SearchNode(
            waypoint=waypoint,
            state=state,
            cost=state.time - self.start_time,
            states=states,
            parent=node,
        )

    def _reconstruct(self, node: SearchNode) -> Trajectory:
        chain: List[Tuple[KnotState, ...]] = []
        cursor: Optional[SearchNode] = node
        while cursor is not None:
            chain.append(cursor.states)
            cursor = cursor.parent
        states = [state for block in reversed(chain) for state in block]
        if self.goal_orientation is not None and states:
            # Yaw stays continuous along the path; shift all of it so the
            # last knot carries the requested value rather than an equivalent one.
            turns = round((self.goal_orientation - states[-1].yaw) / (2.0 * math.pi))
            if turns:
                offset = 2.0 * math.pi * turns
                states = [
                    KnotState(state.time, (state.x, state.y, state.yaw + offset), state.velocity)
                    for state in states
                ]
        return build_trajectory(self.map_name, self.traits.profile, states)


__all__ = ["Planner", "PlannerOptions", "PlanResult", "SearchNode"]
