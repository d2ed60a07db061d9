"""APScheduler-based scheduler for periodic index resyncs.

Each scheduled job runs a full import of one indexer, so objects changed or
removed since the last run are reflected in the index.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from indexbridge.indexer import Indexer

logger = logging.getLogger(__name__)


def run_resync(indexer: Indexer) -> bool:
    """Run one full import for ``indexer``."""
    ok = indexer.import_()
    if not ok:
        logger.warning("Resync of %s reported failed batches", indexer.name)
    return ok


class ResyncScheduler:
    """Schedules periodic resyncs of indexers using a BackgroundScheduler."""

    def __init__(self) -> None:
        self._scheduler = BackgroundScheduler()
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    def start(self) -> None:
        """Start the underlying scheduler if not already started."""
        if not self._started:
            self._scheduler.start(paused=False)
            self._started = True

    def shutdown(self, *, wait: bool = True) -> None:
        """Shut down the scheduler."""
        if self._started:
            self._scheduler.shutdown(wait=wait)
            self._started = False

    def schedule_resync(
        self,
        indexer: Indexer,
        *,
        interval: timedelta = timedelta(minutes=15),
        job_id: Optional[str] = None,
        replace_existing: bool = True,
    ) -> str:
        """Schedule periodic execution of `run_resync` for ``indexer``.

        Parameters
        ----------
        indexer: Indexer
            The indexer to resync.
        interval: timedelta
            How often to run the resync job (default 15 minutes).
        job_id: Optional[str]
            Explicit job id to allow replacing/canceling; defaults to
            ``resync:<indexer name>``.
        replace_existing: bool
            If True, replace any existing job with the same id.

        Returns the job id.
        """
        job_id = job_id or f"resync:{indexer.name}"
        trigger = IntervalTrigger(seconds=int(interval.total_seconds()))
        self._scheduler.add_job(
            run_resync,
            trigger=trigger,
            args=[indexer],
            id=job_id,
            name=f"Resync {indexer.name}",
            replace_existing=replace_existing,
            max_instances=1,
            coalesce=True,
        )
        return job_id

    def job_ids(self) -> list[str]:
        """Ids of all scheduled jobs."""
        return [job.id for job in self._scheduler.get_jobs()]
