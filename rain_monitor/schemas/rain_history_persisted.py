# schemas/rain_history_persisted.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RainHistoryPersisted(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Row id")
    start_time: str  # DD/MM/YYYY HH:mm:ss
    end_time: str
    duration: int  # seconds
    created_at: Optional[datetime] = None
