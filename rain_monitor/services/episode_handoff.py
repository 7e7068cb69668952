# services/episode_handoff.py
from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Set

from rain_monitor.services.episode_tracker import CompletedEpisodeRecord
from rain_monitor.util.log import error_fields, get_logger, log_event


logger = get_logger("episode_handoff")

StoreFn = Callable[[CompletedEpisodeRecord], Any]


class EpisodeHandoff:
    """
    Fire-and-forget submission of completed episodes to storage.

    Policy: at-most-once, no retry, no replay queue. The outcome is only logged;
    a failure log carries the full record so it can be reconstructed by hand.
    """

    def __init__(self, store: StoreFn) -> None:
        self.store = store
        self._pending: Set[asyncio.Future] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, record: CompletedEpisodeRecord) -> asyncio.Future:
        loop = asyncio.get_running_loop()

        log_event(
            logger,
            level="INFO",
            event="episode_store_attempt",
            msg="saving completed episode",
            **record.as_row(),
        )

        t0 = time.monotonic()
        try:
            fut = loop.run_in_executor(None, self.store, record)
        except Exception as e:
            # Executor unavailable (e.g. during shutdown); reported by _done like any failure.
            fut = loop.create_future()
            fut.set_exception(e)
        self._pending.add(fut)

        def _done(f: asyncio.Future) -> None:
            self._pending.discard(f)
            duration_ms = int((time.monotonic() - t0) * 1000)

            if f.cancelled():
                log_event(
                    logger,
                    level="ERROR",
                    event="episode_store_error",
                    msg="episode save cancelled, record lost",
                    duration_ms=duration_ms,
                    record=record.as_row(),
                )
                return

            e = f.exception()
            if e is not None:
                log_event(
                    logger,
                    level="ERROR",
                    event="episode_store_error",
                    msg="episode save failed, record lost",
                    duration_ms=duration_ms,
                    record=record.as_row(),
                    error=error_fields(e),
                )
                return

            log_event(
                logger,
                level="INFO",
                event="episode_store_ok",
                msg="episode saved",
                duration_ms=duration_ms,
                row_id=f.result(),
                record=record.as_row(),
            )

        fut.add_done_callback(_done)
        return fut
