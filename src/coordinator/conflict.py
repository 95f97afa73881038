"""Pairwise conflict detection between trajectories.

``DetectConflict.between`` answers whether two vehicles following their
trajectories would overlap in space at the same time, and returns the time
intervals where they do.  It is a pure function of its inputs: the planner
calls it many times per request and relies on it being repeatable.

Detection samples the overlapping time window of the two trajectories on an
absolute time grid (multiples of ``ConflictDefaults.sample_step_s``) plus every
segment finish time of either trajectory.  Using absolute sample times makes
the result for a trajectory consistent with the results for the pieces it was
assembled from, which the planner depends on.

Footprints are compared through their characteristic length (the radius of
the enclosing circle).  Agency rules:
    - two AUTONOMOUS footprints never conflict, each vehicle avoids the other
    - two QUEUED footprints in the same queue never conflict
    - every other combination conflicts when the footprints overlap
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from config import DEFAULT_CONFLICT_DEFAULTS, ConflictDefaults
from core.profile import Agency, Profile
from core.trajectory import Trajectory
from physics.spline import Spline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConflictInterval:
    """Closed time interval during which two footprints overlap."""

    start: float
    finish: float

    @property
    def duration(self) -> float:
        return self.finish - self.start


def profiles_interact(first: Profile, second: Profile) -> bool:
    """Whether the agencies of two profiles require mutual exclusion."""
    if first.agency == Agency.AUTONOMOUS and second.agency == Agency.AUTONOMOUS:
        return False
    if first.agency == Agency.QUEUED and second.agency == Agency.QUEUED:
        first_queue = first.get_queue_info()
        second_queue = second.get_queue_info()
        if first_queue is not None and second_queue is not None \
                and first_queue.queue_id == second_queue.queue_id:
            return False
    return True


class DetectConflict:
    """Stateless conflict oracle."""

    @staticmethod
    def broad_phase(first: Trajectory, second: Trajectory) -> bool:
        """Cheap pre-check: same map and overlapping time spans."""
        if first.map_name != second.map_name:
            return False
        if len(first) < 2 or len(second) < 2:
            return False
        return max(first.start_time(), second.start_time()) <= min(first.finish_time(), second.finish_time())

    @staticmethod
    def between(first: Trajectory, second: Trajectory,
                config: Optional[ConflictDefaults] = None) -> List[ConflictInterval]:
        """Return the conflicting time intervals, empty when there are none."""
        if not DetectConflict.broad_phase(first, second):
            return []
        config = config or DEFAULT_CONFLICT_DEFAULTS

        first_segments = list(first)
        second_segments = list(second)
        window_start = max(first_segments[0].finish_time, second_segments[0].finish_time)
        window_end = min(first_segments[-1].finish_time, second_segments[-1].finish_time)

        sample_times = _sample_times(first_segments, second_segments,
                                     window_start, window_end, config.sample_step_s)

        first_spline = Spline.from_segments(first_segments)
        second_spline = Spline.from_segments(second_segments)
        first_xy = first_spline.positions_at(sample_times)[:, :2]
        second_xy = second_spline.positions_at(sample_times)[:, :2]
        distances = np.linalg.norm(first_xy - second_xy, axis=1)

        first_profiles = _profiles_at(first_segments, sample_times)
        second_profiles = _profiles_at(second_segments, sample_times)
        thresholds, interacting = _pairwise_limits(first_profiles, second_profiles)

        colliding = interacting & (distances < thresholds - config.distance_tolerance_m)
        intervals = _collect_intervals(sample_times, colliding)
        if intervals:
            logger.debug(
                f"[CONFLICT] {len(intervals)} interval(s) on map '{first.map_name}', "
                f"first at t={intervals[0].start:.2f}s"
            )
        return intervals


def _sample_times(first_segments: Sequence, second_segments: Sequence,
                  window_start: float, window_end: float, step: float) -> np.ndarray:
    first_index = math.ceil(window_start / step)
    last_index = math.floor(window_end / step)
    grid = np.arange(first_index, last_index + 1, dtype=float) * step
    knots = [
        segment.finish_time
        for segment in (*first_segments, *second_segments)
        if window_start <= segment.finish_time <= window_end
    ]
    samples = np.concatenate([grid, np.array(knots + [window_start, window_end], dtype=float)])
    samples = samples[(samples >= window_start) & (samples <= window_end)]
    return np.unique(samples)


def _profiles_at(segments: Sequence, sample_times: np.ndarray) -> List[Profile]:
    """Profile active at each sample: the one of the segment being driven towards."""
    times = np.array([segment.finish_time for segment in segments], dtype=float)
    indices = np.clip(np.searchsorted(times, sample_times, side="left"), 0, len(segments) - 1)
    return [segments[index].profile for index in indices]


def _pairwise_limits(first_profiles: Sequence[Profile],
                     second_profiles: Sequence[Profile]) -> Tuple[np.ndarray, np.ndarray]:
    cache: Dict[Tuple[int, int], Tuple[float, bool]] = {}
    thresholds = np.empty(len(first_profiles))
    interacting = np.empty(len(first_profiles), dtype=bool)
    for i, (first, second) in enumerate(zip(first_profiles, second_profiles)):
        key = (id(first), id(second))
        if key not in cache:
            cache[key] = (
                first.shape.characteristic_length + second.shape.characteristic_length,
                profiles_interact(first, second),
            )
        thresholds[i], interacting[i] = cache[key]
    return thresholds, interacting


def _collect_intervals(sample_times: np.ndarray, colliding: np.ndarray) -> List[ConflictInterval]:
    intervals: List[ConflictInterval] = []
    run_start: Optional[float] = None
    previous: Optional[float] = None
    for time, hit in zip(sample_times, colliding):
        if hit and run_start is None:
            run_start = float(time)
        elif not hit and run_start is not None:
            intervals.append(ConflictInterval(run_start, float(previous)))
            run_start = None
        previous = time
    if run_start is not None:
        intervals.append(ConflictInterval(run_start, float(previous)))
    return intervals


__all__ = ["ConflictInterval", "DetectConflict", "profiles_interact"]
