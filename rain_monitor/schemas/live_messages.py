# schemas/live_messages.py
"""Messages pushed to live observers over the WebSocket."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


STATUS_RAINING = "hujan"
STATUS_STOPPED = "berhenti"


class RainStatusSnapshot(BaseModel):
    """Episode start (duration 0) and late-join snapshot."""

    status: Literal["hujan"] = STATUS_RAINING
    startedAt: str
    duration: int


class DurationUpdate(BaseModel):
    type: Literal["duration_update"] = "duration_update"
    duration: int
    isRaining: bool = True
    startedAt: str


class RainStoppedSnapshot(BaseModel):
    status: Literal["berhenti"] = STATUS_STOPPED
    startedAt: str
    endedAt: str
    duration: int
