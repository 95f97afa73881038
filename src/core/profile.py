"""Footprint profiles attached to trajectory segments.

A ``Profile`` couples the footprint ``Shape`` of a vehicle with its agency,
i.e. how strictly the space it occupies must be treated as exclusive by other
traffic participants.

Profiles are shared by reference: every segment that was built with a profile
keeps pointing at the very same object, so changing the agency or shape of a
profile is immediately visible through all of them (and through copies of the
trajectories that hold them).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


# ========== Shapes ==========

@dataclass
class Circle:
    """Circular footprint centred on the vehicle reference point."""

    radius: float

    def __post_init__(self):
        if self.radius <= 0:
            raise ValueError(f"Circle radius must be positive: {self.radius}")

    @property
    def characteristic_length(self) -> float:
        return self.radius


@dataclass
class Box:
    """Rectangular footprint with side lengths ``x`` and ``y``."""

    x: float
    y: float

    def __post_init__(self):
        if self.x <= 0 or self.y <= 0:
            raise ValueError(f"Box dimensions must be positive: ({self.x}, {self.y})")

    @property
    def characteristic_length(self) -> float:
        """Radius of the smallest circle enclosing the box."""
        return math.hypot(self.x, self.y) / 2.0


Shape = Union[Circle, Box]


# ========== Agency ==========

class Agency(Enum):
    """How a profile's occupied space interacts with other vehicles."""

    STRICT = "strict"            # Space is exclusive, others must yield
    AUTONOMOUS = "autonomous"    # Vehicle avoids other autonomous vehicles itself
    QUEUED = "queued"            # Vehicles in the same queue follow each other


@dataclass(frozen=True)
class QueueInfo:
    queue_id: str


class Profile:
    """Mutable footprint + agency description shared between segments."""

    def __init__(self, shape: Shape, agency: Agency = Agency.STRICT,
                 queue_id: Optional[str] = None):
        self._shape = shape
        self._agency = Agency.STRICT
        self._queue_info: Optional[QueueInfo] = None
        if agency == Agency.QUEUED:
            self.set_to_queued(queue_id)
        elif agency == Agency.AUTONOMOUS:
            self.set_to_autonomous()

    # ----- shape -----

    @property
    def shape(self) -> Shape:
        return self._shape

    def get_shape(self) -> Shape:
        return self._shape

    def set_shape(self, shape: Shape) -> "Profile":
        self._shape = shape
        return self

    # ----- agency -----

    @property
    def agency(self) -> Agency:
        return self._agency

    def get_agency(self) -> Agency:
        return self._agency

    def get_queue_info(self) -> Optional[QueueInfo]:
        """Queue membership, only available for queued profiles."""
        return self._queue_info

    def set_to_strict(self) -> "Profile":
        self._agency = Agency.STRICT
        self._queue_info = None
        return self

    def set_to_autonomous(self) -> "Profile":
        self._agency = Agency.AUTONOMOUS
        self._queue_info = None
        return self

    def set_to_queued(self, queue_id: Optional[str]) -> "Profile":
        if not queue_id:
            raise ValueError("A queued profile requires a non-empty queue_id")
        self._agency = Agency.QUEUED
        self._queue_info = QueueInfo(queue_id=str(queue_id))
        return self

    def assign(self, other: "Profile") -> "Profile":
        """Overwrite this profile in place with the contents of ``other``.

        Every segment referencing this profile observes the new values.
        """
        self._shape = other._shape
        self._agency = other._agency
        self._queue_info = other._queue_info
        return self

    def __repr__(self) -> str:
        queue = f", queue={self._queue_info.queue_id}" if self._queue_info else ""
        return f"Profile({self._shape!r}, {self._agency.value}{queue})"


# ========== Factories ==========

def make_strict(shape: Shape) -> Profile:
    return Profile(shape, Agency.STRICT)


def make_autonomous(shape: Shape) -> Profile:
    return Profile(shape, Agency.AUTONOMOUS)


def make_queued(shape: Shape, queue_id: str) -> Profile:
    return Profile(shape, Agency.QUEUED, queue_id)


__all__ = [
    "Agency",
    "Box",
    "Circle",
    "Profile",
    "QueueInfo",
    "Shape",
    "make_autonomous",
    "make_queued",
    "make_strict",
]
