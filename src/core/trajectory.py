"""Time-ordered trajectories made of kinematic segments.

A ``Trajectory`` is the planned motion of one vehicle on one map.  It stores
``Segment`` objects ordered by strictly increasing finish time; each segment
describes the state (position, yaw, velocity, footprint) the vehicle reaches
at its finish time, and the motion between two consecutive segments is the
cubic Hermite spline through their states (see ``physics.spline``).

Segments are stable handles.  Changing the finish time of a segment moves it
inside the trajectory so that traversal order always equals time order; the
segments whose relative order did not change are left where they are.  This
lets the planner re-time parts of a route (insert waits, shift the tail)
without rebuilding the trajectory.

Design notes:
    - finish times are float seconds on a caller-chosen clock
    - positions are (x, y, yaw), velocities are (vx, vy, omega)
    - profiles are shared by reference, never copied
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Union

import numpy as np

from core.profile import Profile

VectorLike = Union[Sequence[float], np.ndarray]


class SegmentTimeConflictError(ValueError):
    """Raised when a finish time is already owned by another segment."""


def _as_state_vector(value: VectorLike, label: str) -> np.ndarray:
    vector = np.array(value, dtype=float).reshape(-1)
    if vector.shape != (3,):
        raise ValueError(f"{label} must have exactly 3 components, got {vector.shape[0]}")
    vector.flags.writeable = False
    return vector


def _finish_time_key(segment: "Segment") -> float:
    return segment._finish_time


# ========== Segment ==========

class Segment:
    """Kinematic state reached at ``finish_time``.

    Setters on position/velocity store a private copy of the given vector so
    that segments never alias caller data.  The profile, on the other hand, is
    stored by reference.
    """

    __slots__ = ("_owner", "_finish_time", "_profile", "_position", "_velocity")

    def __init__(self, owner: Optional["Trajectory"], finish_time: float,
                 profile: Profile, position: VectorLike, velocity: VectorLike):
        self._owner = owner
        self._finish_time = float(finish_time)
        self._profile = profile
        self._position = _as_state_vector(position, "position")
        self._velocity = _as_state_vector(velocity, "velocity")

    # ----- accessors -----

    @property
    def trajectory(self) -> Optional["Trajectory"]:
        """Owning trajectory, ``None`` once the segment has been erased."""
        return self._owner

    @property
    def finish_time(self) -> float:
        return self._finish_time

    @property
    def profile(self) -> Profile:
        return self._profile

    @property
    def finish_position(self) -> np.ndarray:
        return self._position

    @property
    def finish_velocity(self) -> np.ndarray:
        return self._velocity

    def get_finish_time(self) -> float:
        return self._finish_time

    def get_profile(self) -> Profile:
        return self._profile

    def get_finish_position(self) -> np.ndarray:
        return self._position

    def get_finish_velocity(self) -> np.ndarray:
        return self._velocity

    # ----- mutators -----

    def set_profile(self, profile: Profile) -> "Segment":
        self._profile = profile
        return self

    def set_finish_position(self, position: VectorLike) -> "Segment":
        self._position = _as_state_vector(position, "position")
        return self

    def set_finish_velocity(self, velocity: VectorLike) -> "Segment":
        self._velocity = _as_state_vector(velocity, "velocity")
        return self

    def set_finish_time(self, new_time: float) -> "Segment":
        """Change the finish time, re-ordering the owning trajectory.

        Raises:
            SegmentTimeConflictError: another segment already finishes at
                ``new_time``.  The trajectory is left untouched.
        """
        if self._owner is None:
            self._finish_time = float(new_time)
        else:
            self._owner._relocate(self, float(new_time))
        return self

    def adjust_finish_times(self, delta: float) -> "Segment":
        """Shift this segment and every later segment by ``delta`` seconds.

        Segments before this one are never touched, and the shifted block is
        not validated against them: a large negative ``delta`` can place the
        block before the untouched head.
        """
        if self._owner is None:
            self._finish_time += float(delta)
        else:
            self._owner._shift_from(self, float(delta))
        return self

    def __repr__(self) -> str:
        x, y, yaw = self._position
        return f"Segment(t={self._finish_time:.3f}, pos=({x:.3f}, {y:.3f}, {yaw:.3f}))"


@dataclass(frozen=True)
class InsertResult:
    """Outcome of ``Trajectory.insert``.

    ``segment`` is the new segment when ``inserted`` is true, otherwise the
    segment that already occupies the requested finish time.
    """

    inserted: bool
    segment: Segment

    def __iter__(self):
        yield self.inserted
        yield self.segment


# ========== Trajectory ==========

class Trajectory:
    """Ordered timeline of segments for one vehicle on one map."""

    def __init__(self, map_name: str = ""):
        self._map_name = map_name
        self._segments: List[Segment] = []

    # ----- map -----

    @property
    def map_name(self) -> str:
        return self._map_name

    @map_name.setter
    def map_name(self, value: str) -> None:
        self._map_name = value

    def get_map_name(self) -> str:
        return self._map_name

    def set_map_name(self, value: str) -> "Trajectory":
        self._map_name = value
        return self

    # ----- mutation -----

    def insert(self, finish_time: float, profile: Profile,
               position: VectorLike, velocity: VectorLike) -> InsertResult:
        """Insert a segment in time order.

        Nothing is modified when a segment with exactly ``finish_time`` is
        already present; ``inserted`` is then ``False``.
        """
        finish_time = float(finish_time)
        existing = self._segment_at(finish_time)
        if existing is not None:
            return InsertResult(inserted=False, segment=existing)

        segment = Segment(self, finish_time, profile, position, velocity)
        index = bisect.bisect_left(self._segments, finish_time, key=_finish_time_key)
        self._segments.insert(index, segment)
        return InsertResult(inserted=True, segment=segment)

    def erase(self, segment: Segment) -> Optional[Segment]:
        """Remove ``segment`` and return the segment that followed it."""
        index = self.index(segment)
        self._segments.pop(index)
        segment._owner = None
        if index < len(self._segments):
            return self._segments[index]
        return None

    def erase_range(self, first: Segment, last: Optional[Segment] = None) -> Optional[Segment]:
        """Remove ``[first, last)``; ``last=None`` erases through the end."""
        start = self.index(first)
        stop = len(self._segments) if last is None else self.index(last)
        if stop < start:
            raise ValueError("erase_range: 'last' precedes 'first'")
        for segment in self._segments[start:stop]:
            segment._owner = None
        del self._segments[start:stop]
        return last

    def clear(self) -> None:
        for segment in self._segments:
            segment._owner = None
        self._segments.clear()

    # ----- lookup -----

    def find(self, time: float) -> Optional[Segment]:
        """First segment whose finish time is at or after ``time``."""
        index = bisect.bisect_left(self._segments, float(time), key=_finish_time_key)
        if index < len(self._segments):
            return self._segments[index]
        return None

    def index(self, segment: Segment) -> int:
        if segment._owner is not self:
            raise ValueError("Segment does not belong to this trajectory")
        index = bisect.bisect_left(self._segments, segment._finish_time, key=_finish_time_key)
        if index < len(self._segments) and self._segments[index] is segment:
            return index
        # Order can only be broken by adjust_finish_times; fall back to a scan.
        for position, candidate in enumerate(self._segments):
            if candidate is segment:
                return position
        raise ValueError("Segment does not belong to this trajectory")

    def begin(self) -> Optional[Segment]:
        return self._segments[0] if self._segments else None

    def front(self) -> Segment:
        if not self._segments:
            raise IndexError("front() called on an empty trajectory")
        return self._segments[0]

    def back(self) -> Segment:
        if not self._segments:
            raise IndexError("back() called on an empty trajectory")
        return self._segments[-1]

    def next_of(self, segment: Segment) -> Optional[Segment]:
        index = self.index(segment) + 1
        return self._segments[index] if index < len(self._segments) else None

    def previous_of(self, segment: Segment) -> Optional[Segment]:
        index = self.index(segment) - 1
        return self._segments[index] if index >= 0 else None

    # ----- summary -----

    def size(self) -> int:
        return len(self._segments)

    def empty(self) -> bool:
        return not self._segments

    def start_time(self) -> Optional[float]:
        return self._segments[0]._finish_time if self._segments else None

    def finish_time(self) -> Optional[float]:
        return self._segments[-1]._finish_time if self._segments else None

    def duration(self) -> float:
        if len(self._segments) < 2:
            return 0.0
        return self._segments[-1]._finish_time - self._segments[0]._finish_time

    def check_time_consistency(self) -> bool:
        """True when traversal order is strictly increasing in time."""
        return all(
            earlier._finish_time < later._finish_time
            for earlier, later in zip(self._segments, self._segments[1:])
        )

    # ----- copying -----

    def copy(self) -> "Trajectory":
        """Duplicate the segment sequence; profiles stay shared."""
        clone = Trajectory(self._map_name)
        clone._segments = [
            Segment(clone, segment._finish_time, segment._profile,
                    segment._position, segment._velocity)
            for segment in self._segments
        ]
        return clone

    def __copy__(self) -> "Trajectory":
        return self.copy()

    def __deepcopy__(self, memo) -> "Trajectory":
        return self.copy()

    # ----- iteration -----

    def __iter__(self) -> Iterator[Segment]:
        return iter(list(self._segments))

    def __reversed__(self) -> Iterator[Segment]:
        return reversed(list(self._segments))

    def __len__(self) -> int:
        return len(self._segments)

    def __getitem__(self, index: int) -> Segment:
        return self._segments[index]

    def __repr__(self) -> str:
        return f"Trajectory(map={self._map_name!r}, segments={len(self._segments)})"

    # ----- internal re-ordering -----

    def _segment_at(self, finish_time: float) -> Optional[Segment]:
        for segment in self._segments:
            if segment._finish_time == finish_time:
                return segment
        return None

    def _relocate(self, segment: Segment, new_time: float) -> None:
        if new_time == segment._finish_time:
            return
        existing = self._segment_at(new_time)
        if existing is not None and existing is not segment:
            raise SegmentTimeConflictError(
                f"Another segment already finishes at t={new_time}"
            )

        self._segments.pop(self.index(segment))
        segment._finish_time = new_time
        index = bisect.bisect_left(self._segments, new_time, key=_finish_time_key)
        self._segments.insert(index, segment)

    def _shift_from(self, segment: Segment, delta: float) -> None:
        start = self.index(segment)
        for shifted in self._segments[start:]:
            shifted._finish_time += delta


__all__ = [
    "InsertResult",
    "Segment",
    "SegmentTimeConflictError",
    "Trajectory",
]
