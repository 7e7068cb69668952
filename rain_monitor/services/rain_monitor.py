# services/rain_monitor.py
from __future__ import annotations

import asyncio
from typing import Any, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from rain_monitor.config.monitor_config import MonitorConfig
from rain_monitor.schemas.live_messages import (
    DurationUpdate,
    RainStatusSnapshot,
    RainStoppedSnapshot,
)
from rain_monitor.services.duration_ticker import DurationTicker
from rain_monitor.services.episode_handoff import EpisodeHandoff, StoreFn
from rain_monitor.services.episode_tracker import EpisodeTracker, EpisodeTransition
from rain_monitor.services.observers import Observer, ObserverRegistry
from rain_monitor.services.rain_history_repo import store_completed_episode
from rain_monitor.util.log import error_fields, get_logger, log_event
from rain_monitor.util.time import TimePolicy


logger = get_logger("rain_monitor")


class RainMonitor:
    """
    Owns all live state: tracker, observer set, ticker, storage handoff.

    Every event (signal, tick, connect, disconnect) runs under one asyncio.Lock,
    so there is at most one active episode and one duration_update stream.
    """

    def __init__(
        self,
        *,
        time_policy: TimePolicy,
        scheduler: Any,
        store: StoreFn,
        tick_interval_seconds: float = 1.0,
        send_timeout_seconds: float = 2.0,
    ) -> None:
        self.time_policy = time_policy
        self.tracker = EpisodeTracker(time_policy)
        self.observers = ObserverRegistry(send_timeout_seconds=send_timeout_seconds)
        self.scheduler = scheduler
        self.ticker = DurationTicker(scheduler, self.tick, interval_seconds=tick_interval_seconds)
        self.handoff = EpisodeHandoff(store)
        self._lock = asyncio.Lock()

    async def handle_signal(self, raining: bool) -> EpisodeTransition:
        async with self._lock:
            transition = self.tracker.on_signal(raining)

            if transition.action == "started":
                self.ticker.arm()
                await self.observers.broadcast(
                    RainStatusSnapshot(
                        startedAt=self.time_policy.format(transition.started_at),
                        duration=0,
                    ).model_dump()
                )

            elif transition.action == "ended":
                self.ticker.disarm()
                self.handoff.submit(transition.record)
                await self.observers.broadcast(
                    RainStoppedSnapshot(
                        startedAt=transition.record.start_time,
                        endedAt=transition.record.end_time,
                        duration=transition.duration,
                    ).model_dump()
                )

            return transition

    async def tick(self) -> None:
        try:
            async with self._lock:
                started_at = self.tracker.started_at
                if not self.tracker.is_active or started_at is None:
                    return

                await self.observers.broadcast(
                    DurationUpdate(
                        duration=self.tracker.current_duration(),
                        startedAt=self.time_policy.format(started_at),
                    ).model_dump()
                )
        except Exception as e:
            log_event(
                logger,
                level="ERROR",
                event="tick_error",
                msg="duration update failed, next tick continues",
                error=error_fields(e),
            )

    async def connect(self, observer: Observer) -> None:
        async with self._lock:
            await self.observers.register(observer, initial=self.tracker.snapshot())

    async def disconnect(self, observer: Observer) -> None:
        async with self._lock:
            self.observers.unregister(observer)

    def shutdown(self) -> None:
        self.ticker.disarm()
        log_event(
            logger,
            level="INFO",
            event="monitor_shutdown",
            msg="rain monitor stopped",
            raining=self.tracker.is_active,
            pending_store=self.handoff.pending,
        )


def build_monitor(
    cfg: MonitorConfig,
    *,
    scheduler: Optional[Any] = None,
    store: Optional[StoreFn] = None,
    time_policy: Optional[TimePolicy] = None,
) -> RainMonitor:
    return RainMonitor(
        time_policy=time_policy
        or TimePolicy(tz_name=cfg.timezone(), display_format=cfg.display_format()),
        scheduler=scheduler or AsyncIOScheduler(),
        store=store or store_completed_episode,
        tick_interval_seconds=cfg.tick_interval_seconds(),
        send_timeout_seconds=cfg.send_timeout_seconds(),
    )
