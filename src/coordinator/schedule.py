"""Schedule database holding the trajectories committed by the fleet.

The database is the shared reservation table of the traffic system: every
trajectory a vehicle commits to is inserted here, and planners query it to
find out which space-time regions are already taken.  Queries return a
consistent snapshot (copies taken under a lock), so concurrent planners never
observe a half-applied insertion and can never mutate committed trajectories.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from core.trajectory import Trajectory

logger = logging.getLogger(__name__)

Query = Callable[[Trajectory], bool]


def query_everything() -> Query:
    """Predicate matching every committed trajectory."""
    return lambda trajectory: True


def query_map(map_name: str) -> Query:
    """Predicate matching trajectories on ``map_name``."""
    return lambda trajectory: trajectory.map_name == map_name


def query_time_window(start: Optional[float] = None, finish: Optional[float] = None) -> Query:
    """Predicate matching trajectories active at some point of ``[start, finish]``."""
    def _matches(trajectory: Trajectory) -> bool:
        if trajectory.empty():
            return False
        if start is not None and trajectory.finish_time() < start:
            return False
        if finish is not None and trajectory.start_time() > finish:
            return False
        return True
    return _matches


@dataclass(frozen=True)
class ScheduleEntry:
    trajectory_id: int
    version: int
    trajectory: Trajectory


class ScheduleDatabase:
    """Thread-safe in-memory store of committed trajectories."""

    def __init__(self) -> None:
        self._entries: Dict[int, ScheduleEntry] = {}
        self._next_id = 0
        self._version = 0
        self._lock = threading.Lock()

    def insert(self, trajectory: Trajectory) -> int:
        """Commit a copy of ``trajectory`` and return its id."""
        if trajectory.empty():
            raise ValueError("Cannot commit an empty trajectory to the schedule")
        snapshot = trajectory.copy()
        with self._lock:
            trajectory_id = self._next_id
            self._next_id += 1
            self._version += 1
            self._entries[trajectory_id] = ScheduleEntry(trajectory_id, self._version, snapshot)
        logger.debug(
            f"[SCHEDULE] Inserted trajectory {trajectory_id} on '{snapshot.map_name}' "
            f"({len(snapshot)} segments, version {self._version})"
        )
        return trajectory_id

    def erase(self, trajectory_id: int) -> None:
        with self._lock:
            if trajectory_id not in self._entries:
                raise ValueError(f"Unknown trajectory id: {trajectory_id}")
            del self._entries[trajectory_id]
            self._version += 1

    def get(self, trajectory_id: int) -> Trajectory:
        with self._lock:
            if trajectory_id not in self._entries:
                raise ValueError(f"Unknown trajectory id: {trajectory_id}")
            return self._entries[trajectory_id].trajectory.copy()

    def query(self, predicate: Optional[Query] = None) -> List[Trajectory]:
        """Snapshot of the committed trajectories accepted by ``predicate``."""
        predicate = predicate or query_everything()
        with self._lock:
            entries = sorted(self._entries.values(), key=lambda entry: entry.trajectory_id)
            return [entry.trajectory.copy() for entry in entries if predicate(entry.trajectory)]

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def latest_version(self) -> int:
        with self._lock:
            return self._version

    def horizon(self, map_name: Optional[str] = None) -> Optional[float]:
        """Latest finish time of any committed trajectory (optionally per map)."""
        with self._lock:
            finish_times = [
                entry.trajectory.finish_time()
                for entry in self._entries.values()
                if map_name is None or entry.trajectory.map_name == map_name
            ]
        return max(finish_times) if finish_times else None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._version += 1

    def __len__(self) -> int:
        return self.size()


__all__ = [
    "Query",
    "ScheduleDatabase",
    "ScheduleEntry",
    "query_everything",
    "query_map",
    "query_time_window",
]
