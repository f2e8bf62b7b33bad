"""Recurring execution of Sicredi sync passes."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Set

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .errors import SyncError
from .models import SyncResult
from .service import SyncService

logger = logging.getLogger(__name__)

MIN_INTERVAL_MINUTES = 5
MAX_INTERVAL_MINUTES = 1440
DEFAULT_INTERVAL_MINUTES = 30


def validate_interval(interval_minutes: int) -> int:
    """Check that an interval is a whole number of minutes between 5 minutes and 24 hours."""
    if isinstance(interval_minutes, bool) or not isinstance(interval_minutes, int):
        raise ValueError(f"interval_minutes must be an integer, got {interval_minutes!r}")
    if not MIN_INTERVAL_MINUTES <= interval_minutes <= MAX_INTERVAL_MINUTES:
        raise ValueError(
            f"interval_minutes must be between {MIN_INTERVAL_MINUTES} "
            f"and {MAX_INTERVAL_MINUTES}, got {interval_minutes}"
        )
    return interval_minutes


def create_scheduler() -> AsyncIOScheduler:
    """Build the in-memory asyncio scheduler that drives sync passes."""
    return AsyncIOScheduler(
        jobstores={"default": MemoryJobStore()},
        executors={"default": AsyncIOExecutor()},
        job_defaults={
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": 30,
        },
        timezone="UTC",
    )


@dataclass
class SyncSession:
    """State of one started auto-sync; discarded when it is stopped."""
    interval_minutes: int
    scheduler: AsyncIOScheduler
    job_id: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_running: bool = True
    passes_started: int = 0
    passes_skipped: int = 0
    last_result: Optional[SyncResult] = None
    last_error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "isRunning": self.is_running,
            "intervalMinutes": self.interval_minutes,
            "startedAt": self.started_at.isoformat(),
            "passesStarted": self.passes_started,
            "passesSkipped": self.passes_skipped,
            "lastError": self.last_error,
        }


class SyncScheduler:
    """Starts and stops the recurring sync of one SyncService.

    Each tick launches the pass as its own task, so stopping the scheduler
    never cancels a pass that is already running. A tick that finds the
    previous pass still holding the service lock is skipped.
    """

    JOB_ID = "sicredi-sync"

    def __init__(
        self,
        service: SyncService,
        scheduler_factory: Callable[[], AsyncIOScheduler] = create_scheduler,
    ):
        self.service = service
        self._scheduler_factory = scheduler_factory
        self._session: Optional[SyncSession] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def session(self) -> Optional[SyncSession]:
        return self._session

    def is_running(self) -> bool:
        return self._session is not None and self._session.is_running

    def start(self, interval_minutes: int = DEFAULT_INTERVAL_MINUTES) -> SyncSession:
        """Start auto-sync: one pass now, then one every ``interval_minutes``.

        Must be called from a running event loop. Calling it while a session is
        already running does nothing and returns that session.

        Raises:
            ValueError: If ``interval_minutes`` is outside 5..1440.
        """
        validate_interval(interval_minutes)

        if self._session is not None:
            logger.warning(
                f"Sicredi auto-sync already running every {self._session.interval_minutes} minutes; "
                f"start ignored"
            )
            return self._session

        scheduler = self._scheduler_factory()
        scheduler.add_job(
            self._tick,
            trigger=IntervalTrigger(minutes=interval_minutes),
            id=self.JOB_ID,
            name=self.JOB_ID,
            replace_existing=True,
            next_run_time=datetime.now(timezone.utc),
        )
        self._session = SyncSession(
            interval_minutes=interval_minutes,
            scheduler=scheduler,
            job_id=self.JOB_ID,
        )
        scheduler.start()

        logger.info(f"Sicredi auto-sync started every {interval_minutes} minutes")
        return self._session

    def stop(self) -> bool:
        """Stop auto-sync. Returns False if it was not running.

        A pass already in flight runs to completion.
        """
        session = self._session
        if session is None:
            logger.warning("Sicredi auto-sync is not running; stop ignored")
            return False

        logger.info("Stopping Sicredi auto-sync")
        session.is_running = False
        session.scheduler.shutdown(wait=False)
        self._session = None
        return True

    async def drain(self) -> None:
        """Wait for every pass launched by a tick to finish."""
        if not self._tasks:
            return
        logger.info(f"Waiting for {len(self._tasks)} Sicredi sync pass(es) to finish")
        await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _tick(self) -> None:
        session = self._session
        if session is None:
            return
        if self.service.is_syncing:
            session.passes_skipped += 1
            logger.warning("Previous Sicredi sync pass still running; tick skipped")
            return

        session.passes_started += 1
        task = asyncio.create_task(self._run_pass(session))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_pass(self, session: SyncSession) -> None:
        try:
            session.last_result = await self.service.perform_sync()
            session.last_error = None
        except SyncError as e:
            session.last_error = e.message
            logger.error(f"Scheduled Sicredi sync failed: [{e.code}] {e.message}")
        except Exception as e:
            session.last_error = str(e)
            logger.exception("Scheduled Sicredi sync crashed")
