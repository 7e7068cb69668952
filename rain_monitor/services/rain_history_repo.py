# services/rain_history_repo.py
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rain_monitor.db import SessionLocal
from rain_monitor.models.rain_history import RainHistory
from rain_monitor.services.episode_tracker import CompletedEpisodeRecord
from rain_monitor.util.log import error_fields, get_logger, log_event
from rain_monitor.util.time import utcnow


logger = get_logger("rain_history")


def create_rain_history(db: Session, *, record: CompletedEpisodeRecord) -> RainHistory:
    row = RainHistory(
        start_time=record.start_time,
        end_time=record.end_time,
        duration=record.duration,
        created_at=utcnow(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def list_rain_history(db: Session) -> list[RainHistory]:
    q = select(RainHistory).order_by(RainHistory.id.desc())
    return list(db.execute(q).scalars().all())


def count_rain_history(db: Session) -> int:
    return int(db.execute(select(func.count()).select_from(RainHistory)).scalar_one())


def store_completed_episode(record: CompletedEpisodeRecord) -> int:
    """Storage callable for EpisodeHandoff; runs in an executor thread."""
    db = SessionLocal()
    try:
        return create_rain_history(db, record=record).id
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def validate_rain_history_table() -> bool:
    """
    Boot-time check that rain_history is readable.
    Only warns: the live path does not depend on storage.
    """
    db = SessionLocal()
    try:
        rows = count_rain_history(db)
    except SQLAlchemyError as e:
        log_event(
            logger,
            level="ERROR",
            event="storage_validation_failed",
            msg="rain_history table is not accessible; check DATABASE_URL and run rain-monitor-init-db",
            error=error_fields(e),
        )
        return False
    finally:
        db.close()

    log_event(
        logger,
        level="INFO",
        event="storage_validated",
        msg="rain_history table is accessible",
        rows=rows,
    )
    return True
