import asyncio
import os
import threading
from datetime import datetime, timedelta, timezone

# In-memory storage and no background ticks for the whole test session.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "0"

import pytest
from apscheduler.jobstores.base import JobLookupError
from fastapi.websockets import WebSocketState

from rain_monitor.config.monitor_config import MonitorConfig
from rain_monitor.db import Base, engine
from rain_monitor.services.rain_monitor import build_monitor
from rain_monitor.util.time import TimePolicy
import rain_monitor.models  # noqa: F401


class FakeClock:
    def __init__(self, start: datetime):
        self.current = start
        self.fail = False

    def __call__(self) -> datetime:
        if self.fail:
            raise OSError("clock unavailable")
        return self.current

    def advance(self, seconds: float) -> None:
        self.current = self.current + timedelta(seconds=seconds)


class FakeObserver:
    def __init__(self, fail: bool = False):
        self.client_state = WebSocketState.CONNECTED
        self.fail = fail
        self.attempts = 0
        self.messages = []

    async def send_json(self, data):
        self.attempts += 1
        if self.fail:
            raise ConnectionResetError("socket closed")
        self.messages.append(data)


class StalledObserver:
    """Open socket whose peer never reads: send_json never completes."""

    def __init__(self):
        self.client_state = WebSocketState.CONNECTED
        self.attempts = 0

    async def send_json(self, data):
        self.attempts += 1
        await asyncio.Event().wait()


class FakeJob:
    def __init__(self, func, job_id):
        self.func = func
        self.id = job_id


class FakeScheduler:
    def __init__(self):
        self.jobs = {}
        self.added = 0
        self.removed = 0
        self.running = False
        self.calls = []

    def add_job(self, func, trigger=None, id=None, **kwargs):
        self.calls.append("add_job")
        self.added += 1
        job = FakeJob(func, id)
        self.jobs[id] = job
        return job

    def remove_job(self, job_id):
        self.calls.append("remove_job")
        if job_id not in self.jobs:
            raise JobLookupError(job_id)
        self.removed += 1
        del self.jobs[job_id]

    def start(self):
        self.calls.append("start")
        self.running = True

    def shutdown(self, wait=True):
        self.calls.append("shutdown")
        self.running = False


class RecordingStore:
    """Storage callable; runs in executor threads like the real one."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.records = []
        self.calls = 0
        self.called = threading.Event()
        self._lock = threading.Lock()

    def __call__(self, record):
        with self._lock:
            self.calls += 1
        self.called.set()
        if self.fail:
            raise RuntimeError("storage unavailable")
        with self._lock:
            self.records.append(record)
            return len(self.records)


# 2024-01-01 10:00:00 in Asia/Jakarta
T0 = datetime(2024, 1, 1, 3, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def time_policy(clock):
    return TimePolicy(clock=clock)


@pytest.fixture
def fake_scheduler():
    return FakeScheduler()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def monitor_config():
    return MonitorConfig(
        raw={
            "live": {"send_timeout_seconds": 0.2},
            "storage": {"create_tables_on_startup": False},
        }
    )


@pytest.fixture
def monitor(monitor_config, fake_scheduler, store, time_policy):
    return build_monitor(
        monitor_config,
        scheduler=fake_scheduler,
        store=store,
        time_policy=time_policy,
    )


@pytest.fixture
def db_tables():
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
