# services/episode_tracker.py
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from rain_monitor.schemas.live_messages import RainStatusSnapshot
from rain_monitor.util.log import error_fields, get_logger, log_event
from rain_monitor.util.time import TimePolicy


logger = get_logger("episode_tracker")


class TrackerState(str, enum.Enum):
    IDLE = "IDLE"
    ACTIVE = "ACTIVE"


@dataclass(frozen=True)
class CompletedEpisodeRecord:
    start_time: str
    end_time: str
    duration: int

    def as_row(self) -> dict:
        return {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
        }


@dataclass
class EpisodeTransition:
    action: str  # "noop"|"started"|"ended"
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    duration: int = 0
    record: Optional[CompletedEpisodeRecord] = None


class EpisodeTracker:
    """
    Rain episode state machine (one sensor, at most one active episode).

    Edge rules:
    - 0 -> 1 while IDLE: episode starts, duration 0.
    - 1 -> 0 while ACTIVE: episode ends, duration frozen, completed record built.
    - Everything else is a no-op (repeats, end with nothing active).
    The last signal is recorded after every call.
    """

    def __init__(self, time_policy: TimePolicy) -> None:
        self.time_policy = time_policy
        self._state = TrackerState.IDLE
        self._started_at: Optional[datetime] = None
        self._last_signal = False

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is TrackerState.ACTIVE

    @property
    def started_at(self) -> Optional[datetime]:
        return self._started_at

    @property
    def last_signal(self) -> bool:
        return self._last_signal

    def on_signal(self, raining: bool) -> EpisodeTransition:
        raining = bool(raining)
        previous = self._last_signal

        if raining and not previous and self._state is TrackerState.IDLE:
            transition = self._start()
        elif not raining and previous and self.is_active and self._started_at is not None:
            transition = self._end()
        else:
            transition = EpisodeTransition(action="noop", started_at=self._started_at)

        self._last_signal = raining
        return transition

    def _start(self) -> EpisodeTransition:
        # A clock failure here propagates; nothing has been mutated yet.
        now = self.time_policy.now()
        self._started_at = now
        self._state = TrackerState.ACTIVE

        log_event(
            logger,
            level="INFO",
            event="episode_started",
            msg="rain episode started",
            started_at=self.time_policy.format(now),
        )
        return EpisodeTransition(action="started", started_at=now, duration=0)

    def _end(self) -> EpisodeTransition:
        started_at = self._started_at
        ended_at = self.time_policy.now()
        duration = self._elapsed(started_at, ended_at)

        record = CompletedEpisodeRecord(
            start_time=self.time_policy.format(started_at),
            end_time=self.time_policy.format(ended_at),
            duration=duration,
        )

        self._started_at = None
        self._state = TrackerState.IDLE

        log_event(
            logger,
            level="INFO",
            event="episode_ended",
            msg="rain episode ended",
            **record.as_row(),
        )
        return EpisodeTransition(
            action="ended",
            started_at=started_at,
            ended_at=ended_at,
            duration=duration,
            record=record,
        )

    def _elapsed(self, since: datetime, until: datetime) -> int:
        try:
            return self.time_policy.elapsed_seconds(since, until)
        except Exception as e:
            log_event(
                logger,
                level="ERROR",
                event="duration_error",
                msg="duration calculation failed, reporting 0",
                error=error_fields(e),
            )
            return 0

    def current_duration(self) -> int:
        started_at = self._started_at
        if not self.is_active or started_at is None:
            return 0

        try:
            now = self.time_policy.now()
        except Exception as e:
            log_event(
                logger,
                level="ERROR",
                event="duration_error",
                msg="clock read failed, reporting 0",
                error=error_fields(e),
            )
            return 0
        return self._elapsed(started_at, now)

    def snapshot(self) -> Optional[dict]:
        """Late-join snapshot, or None while IDLE."""
        if not self.is_active or self._started_at is None:
            return None
        return RainStatusSnapshot(
            startedAt=self.time_policy.format(self._started_at),
            duration=self.current_duration(),
        ).model_dump()
