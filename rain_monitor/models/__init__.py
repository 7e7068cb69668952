# models package init
# Ensure ORM models are importable from a single place.
from rain_monitor.models.rain_history import RainHistory  # noqa: F401
