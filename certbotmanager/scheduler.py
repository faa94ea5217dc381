"""A background scheduler that runs one job on a cron schedule."""

from __future__ import annotations

import logging
import threading
import traceback
from collections.abc import Callable
from datetime import datetime

from certbotmanager.cronexpr import CronParseError, CronSchedule, parse
from certbotmanager.logsetup import component_logger

log = logging.getLogger(__name__)


class SchedulerError(Exception):
    """Raised when the scheduler cannot be set up."""


class Scheduler:
    """Runs a job on a schedule, skipping a run while the previous one is still going."""

    def __init__(self, schedule: CronSchedule, job: Callable[[], None], entry_id: int = 1) -> None:
        self.schedule = schedule
        self.entry_id = entry_id
        self._job = job
        self._stop_event = threading.Event()
        self._running = threading.Lock()
        self._workers: list[threading.Thread] = []
        self._thread: threading.Thread | None = None
        self._cron_log = component_logger(logging.INFO, "cron")

    def _start(self) -> None:
        self._thread = threading.Thread(target=self._loop, name="cron-scheduler", daemon=True)
        self._thread.start()

    def _loop(self) -> None:
        due = self.schedule.next(datetime.now().astimezone())
        while due is not None:
            delay = (due - datetime.now().astimezone()).total_seconds()
            if self._stop_event.wait(max(delay, 0.0)):
                return
            self._dispatch()
            due = self.schedule.next(max(due, datetime.now().astimezone()))
        self._stop_event.wait()

    def _dispatch(self) -> None:
        if not self._running.acquire(blocking=False):
            return
        self._workers = [worker for worker in self._workers if worker.is_alive()]
        worker = threading.Thread(target=self._run_job, name="cron-job", daemon=True)
        self._workers.append(worker)
        worker.start()

    def _run_job(self) -> None:
        try:
            self._job()
        except Exception as exc:
            self._cron_log.write(f"panic, error={exc!r}, stack=...\n{traceback.format_exc()}")
        finally:
            self._running.release()

    def stop(self) -> None:
        """Stop scheduling and wait for a running job to finish."""
        if self._thread is None:
            log.warning("Scheduler is not running, cannot stop.")
            return
        log.info("Stopping cron scheduler gracefully...")
        self._stop_event.set()
        self._thread.join()
        self._thread = None
        for worker in self._workers:
            worker.join()
        self._workers.clear()
        log.info("Cron scheduler stopped.")


def setup_and_start_scheduler(expression: str, job: Callable[[], None]) -> Scheduler:
    """Schedule the job with the cron expression and start running it in the background."""
    if not expression:
        raise SchedulerError("cron expression cannot be empty")

    log.info("--- Setting up Cron Scheduler ---")
    log.info("Scheduling job with cron expression: %s", expression)
    try:
        schedule = parse(expression)
    except CronParseError as exc:
        log.error(
            "Failed to add job to cron scheduler (expression: '%s'): %s", expression, exc
        )
        raise SchedulerError(
            f"failed to add job to cron scheduler (expression: '{expression}'): {exc}"
        ) from exc

    scheduler = Scheduler(schedule, job)
    log.info("Renewal job added with ID: %d", scheduler.entry_id)
    scheduler._start()
    log.info("Cron scheduler started.")
    return scheduler