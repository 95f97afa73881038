"""Trajectory, profile, vehicle, and navigation graph primitives."""
