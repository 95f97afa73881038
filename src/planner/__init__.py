"""Time-expanded trajectory planner."""
