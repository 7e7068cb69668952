# services/duration_ticker.py
from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.triggers.interval import IntervalTrigger

from rain_monitor.util.log import get_logger, log_event


logger = get_logger("duration_ticker")

TICKER_JOB_ID = "rain_duration_ticker"


class DurationTicker:
    """
    Single interval job driving duration_update ticks while an episode is active.

    arm() and disarm() are idempotent. The scheduler is owned by the app
    (started on startup, shut down after the ticker is disarmed).
    """

    def __init__(
        self,
        scheduler: Any,
        on_tick: Callable[[], Awaitable[None]],
        interval_seconds: float = 1.0,
    ) -> None:
        self.scheduler = scheduler
        self.on_tick = on_tick
        self.interval_seconds = float(interval_seconds)
        self._job: Optional[Any] = None

    @property
    def armed(self) -> bool:
        return self._job is not None

    def arm(self) -> None:
        if self._job is not None:
            return

        self._job = self.scheduler.add_job(
            self.on_tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=TICKER_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        log_event(
            logger,
            level="INFO",
            event="ticker_armed",
            msg="duration updates started",
            interval_seconds=self.interval_seconds,
        )

    def disarm(self) -> None:
        if self._job is None:
            return

        self._job = None
        try:
            self.scheduler.remove_job(TICKER_JOB_ID)
        except JobLookupError:
            # Already gone (scheduler shut down first).
            pass
        log_event(
            logger,
            level="INFO",
            event="ticker_disarmed",
            msg="duration updates stopped",
        )
