from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable

import uvicorn
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from . import config
from .logging_setup import configure_logging
from .pipeline import run_all, seed_sources
from .storage import SupabaseEventStore

logger = logging.getLogger(__name__)


class TriggerOutcome(str, Enum):
    STARTED = "started"
    ALREADY_RUNNING = "already_running"


class ScrapeController:
    """
    Owns the single "run in progress" guard. Both the timer and the HTTP
    trigger go through here; a second run is rejected, never queued.
    """

    def __init__(self, run: Callable[[], Any]) -> None:
        self._run = run
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def trigger(self) -> TriggerOutcome:
        """Start a run in a background thread unless one is active."""
        if not self._lock.acquire(blocking=False):
            return TriggerOutcome.ALREADY_RUNNING
        thread = threading.Thread(target=self._run_and_release, name="scrape-run", daemon=True)
        try:
            thread.start()
        except Exception:
            self._lock.release()
            raise
        return TriggerOutcome.STARTED

    def run_if_idle(self) -> bool:
        """Inline run for the scheduler thread. False when skipped."""
        if not self._lock.acquire(blocking=False):
            logger.info("[worker] scheduled run skipped: scrape already in progress")
            return False
        self._run_and_release()
        return True

    def _run_and_release(self) -> None:
        try:
            self._run()
        except Exception:
            logger.exception("[worker] scrape run failed")
        finally:
            self._lock.release()


def cron_expression(hours: int) -> str:
    """Every N hours on the hour. N must be 1..24."""
    if not 1 <= hours <= 24:
        raise ValueError(f"SCRAPE_INTERVAL_HOURS must be between 1 and 24, got {hours}")
    if hours == 24:
        return "0 0 * * *"
    return f"0 */{hours} * * *"


def create_app(controller: ScrapeController) -> FastAPI:
    app = FastAPI(title="Lecture Seeker Worker", version="0.1.0")

    @app.post("/scrape")
    def scrape() -> JSONResponse:
        outcome = controller.trigger()
        if outcome is TriggerOutcome.ALREADY_RUNNING:
            return JSONResponse(status_code=409, content={"error": "Scrape already in progress"})
        logger.info("[worker] on-demand scrape triggered via HTTP")
        return JSONResponse(status_code=202, content={"status": "started"})

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "scraping": controller.is_running}

    return app


def build_scheduler(controller: ScrapeController, hours: int) -> BackgroundScheduler:
    expr = cron_expression(hours)
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        controller.run_if_idle,
        CronTrigger.from_crontab(expr, timezone="UTC"),
        id="scrape-all",
        max_instances=1,
        coalesce=True,
    )
    logger.info("[worker] scheduling scrapes: %s (UTC)", expr)
    return scheduler


def main() -> None:
    configure_logging(config.LOG_LEVEL)
    logger.info("[worker] starting")

    store = SupabaseEventStore()
    seed_sources(store)

    controller = ScrapeController(lambda: run_all(store))
    scheduler = build_scheduler(controller, config.SCRAPE_INTERVAL_HOURS)

    # Background so /health answers while the first run is in flight.
    if config.SCRAPE_ON_START:
        controller.trigger()

    scheduler.start()
    try:
        uvicorn.run(create_app(controller), host=config.WORKER_HOST, port=config.WORKER_PORT, log_config=None)
    finally:
        scheduler.shutdown(wait=False)
        logger.info("[worker] stopped")


if __name__ == "__main__":
    main()
