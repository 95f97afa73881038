"""Plan a single AGV route on the reference layout and report the trajectory.

The script builds the reference navigation graph, optionally commits an
obstacle trajectory to the schedule (a vehicle resting at a list of waypoints
at given times), runs the planner and writes the resulting knots as JSON.
With ``--figure`` it also renders the layout, the obstacle path and the
planned path to an SVG file using matplotlib.

Example:
    python scripts/plan_route.py --start 12 --goal 5 --scenario-lanes \\
        --obstacle-waypoints 9 10 11 --obstacle-times 19 40 50 --figure route.svg
"""
from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from config.graph_layout import DEFAULT_MAP_NAME, add_scenario_lanes, build_reference_graph
from coordinator.schedule import ScheduleDatabase
from core.graph import Graph
from core.trajectory import Trajectory
from core.vehicle import create_vehicle_traits
from planner.agv_planner import Planner, PlannerOptions
from planner.motion import build_trajectory, rest_state

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__,
                                     formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--start", type=int, required=True, help="Start waypoint index.")
    parser.add_argument("--goal", type=int, required=True, help="Goal waypoint index.")
    parser.add_argument("--start-time", type=float, default=0.0,
                        help="Time (s) at which the vehicle is at the start waypoint.")
    parser.add_argument("--start-yaw", type=float, default=0.0,
                        help="Initial yaw in degrees.")
    parser.add_argument("--goal-yaw", type=float, default=None,
                        help="Required final yaw in degrees (any when omitted).")
    parser.add_argument("--scenario-lanes", action="store_true",
                        help="Add the 5<->9 spur and the 11<->12 dock lanes.")
    parser.add_argument("--spur-yaw", type=float, nargs="*", default=None,
                        help="Allowed yaw angles (degrees) on the 5<->9 spur.")
    parser.add_argument("--dock-yaw", type=float, nargs="*", default=None,
                        help="Allowed yaw angles (degrees) on the 11<->12 dock.")
    parser.add_argument("--obstacle-waypoints", type=int, nargs="*", default=[],
                        help="Waypoints visited by an obstacle vehicle.")
    parser.add_argument("--obstacle-times", type=float, nargs="*", default=[],
                        help="Offsets (s) from the start time for each obstacle waypoint.")
    parser.add_argument("--json", type=Path, default=None,
                        help="Write the planned knots to this file instead of stdout.")
    parser.add_argument("--figure", type=Path, default=None,
                        help="Optional SVG figure of the planned route.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def build_obstacle(graph: Graph, waypoints: Sequence[int], offsets: Sequence[float],
                   start_time: float, profile) -> Trajectory:
    if len(waypoints) != len(offsets):
        raise ValueError(
            f"Got {len(waypoints)} obstacle waypoints but {len(offsets)} obstacle times"
        )
    states = []
    for index, offset in zip(waypoints, offsets):
        x, y = graph.get_waypoint(index).location
        states.append(rest_state(start_time + offset, x, y, 0.0))
    return build_trajectory(DEFAULT_MAP_NAME, profile, states)


def trajectory_to_dict(trajectory: Trajectory) -> List[Dict[str, object]]:
    return [
        {
            "time": segment.finish_time,
            "position": [float(value) for value in segment.finish_position],
            "velocity": [float(value) for value in segment.finish_velocity],
        }
        for segment in trajectory
    ]


def plot_route(graph: Graph, planned: Optional[Trajectory],
               obstacle: Optional[Trajectory], output_path: Path) -> None:
    """Render lanes, waypoints and trajectories to ``output_path``."""
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(8, 8))
    for lane_index in range(graph.num_lanes()):
        lane = graph.get_lane(lane_index)
        x0, y0 = graph.get_waypoint(lane.entry).location
        x1, y1 = graph.get_waypoint(lane.exit).location
        ax.plot([x0, x1], [y0, y1], color="#cccccc", linewidth=3, zorder=1)
    for index in range(graph.num_waypoints()):
        waypoint = graph.get_waypoint(index)
        x, y = waypoint.location
        ax.scatter([x], [y], marker="s" if waypoint.is_holding_point else "o",
                   color="#333333", zorder=2)
        ax.annotate(str(index), (x, y), textcoords="offset points", xytext=(6, 6))

    for trajectory, colour, label in ((planned, "tab:blue", "planned"),
                                      (obstacle, "tab:red", "obstacle")):
        if trajectory is None or trajectory.empty():
            continue
        xs = [float(segment.finish_position[0]) for segment in trajectory]
        ys = [float(segment.finish_position[1]) for segment in trajectory]
        ax.plot(xs, ys, color=colour, linewidth=1.5, label=label, zorder=3)

    ax.set_aspect("equal")
    ax.set_xlabel("x [m]")
    ax.set_ylabel("y [m]")
    ax.legend(loc="lower right")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, bbox_inches="tight")
    plt.close(fig)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    graph = build_reference_graph(DEFAULT_MAP_NAME)
    if args.scenario_lanes:
        add_scenario_lanes(
            graph,
            spur_orientations=None if args.spur_yaw is None else [math.radians(a) for a in args.spur_yaw],
            dock_orientations=None if args.dock_yaw is None else [math.radians(a) for a in args.dock_yaw],
        )

    traits = create_vehicle_traits()
    schedule = ScheduleDatabase()
    obstacle = None
    if args.obstacle_waypoints:
        obstacle = build_obstacle(graph, args.obstacle_waypoints, args.obstacle_times,
                                  args.start_time, traits.profile)
        schedule.insert(obstacle)

    options = PlannerOptions(traits=traits, graph=graph, schedule=schedule)
    goal_yaw = None if args.goal_yaw is None else math.radians(args.goal_yaw)
    result = Planner(options).plan(args.start_time, args.start, math.radians(args.start_yaw),
                                   args.goal, goal_yaw)

    planned = result.solution[0] if result.found else None
    report = {
        "found": result.found,
        "expansions": result.expansions,
        "duration": planned.duration() if planned is not None else None,
        "knots": trajectory_to_dict(planned) if planned is not None else [],
    }
    text = json.dumps(report, indent=2)
    if args.json is not None:
        args.json.parent.mkdir(parents=True, exist_ok=True)
        args.json.write_text(text, encoding="utf-8")
        print(f"Saved trajectory to {args.json}")
    else:
        print(text)

    if args.figure is not None:
        plot_route(graph, planned, obstacle, args.figure)
        print(f"Saved figure to {args.figure}")

    return 0 if result.found else 1


if __name__ == "__main__":
    raise SystemExit(main())
