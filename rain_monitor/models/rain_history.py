# models/rain_history.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from rain_monitor.db import Base
from rain_monitor.util.time import utcnow


class RainHistory(Base):
    __tablename__ = "rain_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Display format (DD/MM/YYYY HH:mm:ss, site civil time), not sortable.
    start_time: Mapped[str] = mapped_column(String(32), nullable=False)
    end_time: Mapped[str] = mapped_column(String(32), nullable=False)

    # seconds
    duration: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


Index("ix_rain_history_created_at", RainHistory.created_at)
