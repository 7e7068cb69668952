# rain_monitor/main.py
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rain_monitor.config.monitor_config import (
    MonitorConfig,
    load_monitor_config,
    scheduler_enabled,
)
from rain_monitor.db import create_tables
from rain_monitor.routes.live import router as live_router
from rain_monitor.routes.rain import router as rain_router
from rain_monitor.services.rain_history_repo import validate_rain_history_table
from rain_monitor.services.rain_monitor import RainMonitor, build_monitor
from rain_monitor.util.log import get_logger, log_event

logger = get_logger("api")


def create_app(
    cfg: Optional[MonitorConfig] = None,
    monitor: Optional[RainMonitor] = None,
    *,
    enable_scheduler: Optional[bool] = None,
    validate_storage: bool = True,
) -> FastAPI:
    cfg = cfg or load_monitor_config()
    monitor = monitor or build_monitor(cfg)
    run_scheduler = scheduler_enabled() if enable_scheduler is None else enable_scheduler

    app = FastAPI(title="Rain Monitor")
    app.state.monitor = monitor
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_allow_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(rain_router)
    app.include_router(live_router)

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "raining": monitor.tracker.is_active,
            "observers": len(monitor.observers),
        }

    @app.on_event("startup")
    async def on_startup():
        if validate_storage:
            if cfg.create_tables_on_startup():
                create_tables()
            validate_rain_history_table()

        log_event(
            logger,
            level="INFO",
            event="server_started",
            msg="rain monitor started",
            host=cfg.server_host(),
            port=cfg.server_port(),
            timezone=cfg.timezone(),
            scheduler_enabled=run_scheduler,
        )

        if not run_scheduler:
            # Ticks can be switched off locally (e.g. during manual testing).
            return
        if not monitor.scheduler.running:
            monitor.scheduler.start()

    @app.on_event("shutdown")
    def on_shutdown():
        # Ticker first, so no tick fires once shutdown has begun.
        monitor.shutdown()
        if monitor.scheduler.running:
            monitor.scheduler.shutdown(wait=False)

    return app


app = create_app()


def run() -> None:
    import uvicorn

    cfg = load_monitor_config()
    uvicorn.run(app, host=cfg.server_host(), port=cfg.server_port())


if __name__ == "__main__":
    run()
