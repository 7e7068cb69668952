"""Rain monitor: live rain-episode tracking for a single rain sensor."""

__version__ = "1.0.0"
