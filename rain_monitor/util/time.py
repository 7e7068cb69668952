from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo


DEFAULT_TIMEZONE = "Asia/Jakarta"
DISPLAY_FORMAT = "%d/%m/%Y %H:%M:%S"

Clock = Callable[[], datetime]


class TimePolicyError(ValueError):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def require_aware(dt: datetime, field_name: str) -> datetime:
    """
    Strict policy:
    - dt MUST be timezone-aware
    """
    if dt.tzinfo is None or dt.utcoffset() is None:
        raise TimePolicyError(f"{field_name} must be timezone-aware")
    return dt


class TimePolicy:
    """
    Civil time for the sensor site.

    - now() is always expressed in one fixed zone (Asia/Jakarta, UTC+7 by default)
    - format() is presentational only; arithmetic goes through elapsed_seconds()
      on the underlying instants
    """

    def __init__(
        self,
        tz_name: str = DEFAULT_TIMEZONE,
        display_format: str = DISPLAY_FORMAT,
        clock: Optional[Clock] = None,
    ) -> None:
        self.tz = ZoneInfo(tz_name)
        self.display_format = display_format
        self._clock = clock or utcnow

    def now(self) -> datetime:
        return require_aware(self._clock(), "clock").astimezone(self.tz)

    def format(self, dt: datetime) -> str:
        return require_aware(dt, "dt").astimezone(self.tz).strftime(self.display_format)

    def elapsed_seconds(self, since: datetime, until: datetime) -> int:
        # Whole seconds, truncated toward zero; a clock stepping backwards reads as 0.
        delta = require_aware(until, "until") - require_aware(since, "since")
        return max(0, int(delta.total_seconds()))
