# services/observers.py
from __future__ import annotations

import asyncio
from typing import Any, Optional, Protocol, Set

from fastapi.websockets import WebSocketState

from rain_monitor.util.log import error_fields, get_logger, log_event


logger = get_logger("observers")


class Observer(Protocol):
    client_state: WebSocketState

    async def send_json(self, data: Any) -> None:
        ...


def _is_open(observer: Observer) -> bool:
    return getattr(observer, "client_state", None) == WebSocketState.CONNECTED


class ObserverRegistry:
    """
    Live observer set with independent per-observer delivery.

    Sends run concurrently and each is bounded by send_timeout_seconds, so a
    peer that stops reading cannot hold up the others. A failed or timed out
    send drops that observer (no retry); nothing is raised to the caller.
    Observers that are not open are skipped.
    """

    def __init__(self, send_timeout_seconds: float = 2.0) -> None:
        self.send_timeout_seconds = float(send_timeout_seconds)
        self._observers: Set[Observer] = set()

    def __len__(self) -> int:
        return len(self._observers)

    def __contains__(self, observer: object) -> bool:
        return observer in self._observers

    async def register(self, observer: Observer, initial: Optional[dict] = None) -> None:
        self._observers.add(observer)
        log_event(
            logger,
            level="INFO",
            event="observer_registered",
            msg="observer connected",
            observers=len(self._observers),
            initial_snapshot=initial is not None,
        )
        if initial is not None:
            await self._deliver(observer, initial)

    def unregister(self, observer: Observer) -> None:
        if observer not in self._observers:
            return
        self._observers.discard(observer)
        log_event(
            logger,
            level="INFO",
            event="observer_unregistered",
            msg="observer disconnected",
            observers=len(self._observers),
        )

    async def broadcast(self, payload: dict) -> int:
        results = await asyncio.gather(
            *(self._deliver(observer, payload) for observer in list(self._observers)),
            return_exceptions=True,
        )
        return sum(1 for r in results if r is True)

    async def _deliver(self, observer: Observer, payload: dict) -> bool:
        if not _is_open(observer):
            return False

        try:
            await asyncio.wait_for(observer.send_json(payload), timeout=self.send_timeout_seconds)
        except asyncio.TimeoutError as e:
            self._observers.discard(observer)
            log_event(
                logger,
                level="WARNING",
                event="observer_send_timeout",
                msg="observer did not take the message in time, observer dropped",
                timeout_seconds=self.send_timeout_seconds,
                observers=len(self._observers),
                error=error_fields(e),
            )
            return False
        except Exception as e:
            self._observers.discard(observer)
            log_event(
                logger,
                level="WARNING",
                event="observer_send_failed",
                msg="delivery to observer failed, observer dropped",
                observers=len(self._observers),
                error=error_fields(e),
            )
            return False
        return True
