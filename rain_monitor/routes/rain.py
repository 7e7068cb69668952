# routes/rain.py

from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rain_monitor.db import get_db
from rain_monitor.schemas.rain_history_persisted import RainHistoryPersisted
from rain_monitor.schemas.rain_signal import RainSignal
from rain_monitor.services.rain_history_repo import list_rain_history
from rain_monitor.services.rain_monitor import RainMonitor
from rain_monitor.util.log import error_fields, get_logger, log_event

router = APIRouter(tags=["rain"])

logger = get_logger("api")


def get_monitor(request: Request) -> RainMonitor:
    return request.app.state.monitor


@router.post("/rain")
async def receive_rain_signal(signal: RainSignal, monitor: RainMonitor = Depends(get_monitor)):
    try:
        transition = await monitor.handle_signal(signal.raining)
    except Exception as e:
        log_event(
            logger,
            level="ERROR",
            event="rain_signal_error",
            msg="error processing rain status",
            is_raining=signal.isRaining,
            error=error_fields(e),
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return {"received": True, "action": transition.action}


# Pass-through to storage; newest first, no paging.
@router.get("/history", response_model=List[RainHistoryPersisted])
def get_history(db: Session = Depends(get_db)):
    try:
        rows = list_rain_history(db)
    except SQLAlchemyError as e:
        log_event(
            logger,
            level="ERROR",
            event="history_error",
            msg="error fetching rain history",
            error=error_fields(e),
        )
        return JSONResponse(status_code=500, content={"error": "Database error", "details": str(e)})

    log_event(
        logger,
        level="INFO",
        event="history_fetched",
        msg="fetched rain history",
        rows=len(rows),
    )
    return rows
