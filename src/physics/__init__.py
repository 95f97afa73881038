"""Distance, timing, and interpolation helpers."""
