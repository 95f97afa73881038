"""Cubic Hermite interpolation of trajectory states.

Between two consecutive segments the vehicle follows the cubic Hermite
spline defined by their finish times, positions and velocities.  Because the
planner only emits motions whose positions are polynomials of degree <= 2 in
time between knots, the spline reproduces those motions exactly.

Before the first segment and after the last one the vehicle does not exist as
far as this interpolation is concerned; callers are expected to clip queries
to ``[start_time, finish_time]``.
"""

from typing import Iterable, Tuple

import numpy as np


class Spline:
    """Piecewise cubic Hermite curve through (time, position, velocity) knots."""

    def __init__(self, times: np.ndarray, positions: np.ndarray, velocities: np.ndarray):
        self.times = np.asarray(times, dtype=float)
        self.positions = np.asarray(positions, dtype=float).reshape(len(self.times), -1)
        self.velocities = np.asarray(velocities, dtype=float).reshape(len(self.times), -1)
        if len(self.times) == 0:
            raise ValueError("A spline needs at least one knot")

    @classmethod
    def from_segments(cls, segments: Iterable) -> "Spline":
        """Build from objects exposing ``finish_time``/``finish_position``/``finish_velocity``."""
        segments = list(segments)
        times = np.array([segment.finish_time for segment in segments], dtype=float)
        positions = np.array([segment.finish_position for segment in segments], dtype=float)
        velocities = np.array([segment.finish_velocity for segment in segments], dtype=float)
        return cls(times, positions, velocities)

    @property
    def start_time(self) -> float:
        return float(self.times[0])

    @property
    def finish_time(self) -> float:
        return float(self.times[-1])

    def _locate(self, ts: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        k = np.searchsorted(self.times, ts, side="right") - 1
        k = np.clip(k, 0, len(self.times) - 2)
        h = self.times[k + 1] - self.times[k]
        s = np.clip((ts - self.times[k]) / h, 0.0, 1.0)
        return k, h, s

    def positions_at(self, ts: np.ndarray) -> np.ndarray:
        """Vectorised position evaluation, shape ``(len(ts), dims)``."""
        ts = np.atleast_1d(np.asarray(ts, dtype=float))
        if len(self.times) == 1:
            return np.repeat(self.positions[:1], len(ts), axis=0)
        k, h, s = self._locate(ts)
        s2 = s * s
        s3 = s2 * s
        h00 = 2 * s3 - 3 * s2 + 1
        h10 = s3 - 2 * s2 + s
        h01 = -2 * s3 + 3 * s2
        h11 = s3 - s2
        p0, p1 = self.positions[k], self.positions[k + 1]
        v0, v1 = self.velocities[k], self.velocities[k + 1]
        return (h00[:, None] * p0 + (h10 * h)[:, None] * v0
                + h01[:, None] * p1 + (h11 * h)[:, None] * v1)

    def velocities_at(self, ts: np.ndarray) -> np.ndarray:
        """Vectorised velocity evaluation, shape ``(len(ts), dims)``."""
        ts = np.atleast_1d(np.asarray(ts, dtype=float))
        if len(self.times) == 1:
            return np.zeros((len(ts), self.positions.shape[1]))
        k, h, s = self._locate(ts)
        s2 = s * s
        dh00 = 6 * s2 - 6 * s
        dh10 = 3 * s2 - 4 * s + 1
        dh01 = -6 * s2 + 6 * s
        dh11 = 3 * s2 - 2 * s
        p0, p1 = self.positions[k], self.positions[k + 1]
        v0, v1 = self.velocities[k], self.velocities[k + 1]
        return ((dh00 / h)[:, None] * p0 + dh10[:, None] * v0
                + (dh01 / h)[:, None] * p1 + dh11[:, None] * v1)

    def position_at(self, t: float) -> np.ndarray:
        return self.positions_at(np.array([t]))[0]

    def velocity_at(self, t: float) -> np.ndarray:
        return self.velocities_at(np.array([t]))[0]


__all__ = ["Spline"]
