# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Scheduled garbage collection.

Runs a garbage collection pass on a fixed interval and keeps the
outcome of the last run for status reporting.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..models.results import GarbageCollectionResult

logger = logging.getLogger(__name__)

RunCallback = Callable[[Optional[asyncio.Event]], Awaitable[GarbageCollectionResult]]


class GarbageCollectionScheduler:
    """Runs garbage collection periodically using APScheduler.

    Stopping the scheduler sets the cancellation event handed to the
    run callback, so an in-flight pass skips its remaining calls.

    Usage::

        scheduler = GarbageCollectionScheduler(
            run_callback=orchestrator.run,
            interval_minutes=60,
        )
        await scheduler.start()
        # ... host runs ...
        await scheduler.stop()
    """

    JOB_ID = "garbage_collection"

    def __init__(
        self,
        run_callback: RunCallback,
        interval_minutes: int = 60,
        enabled: bool = True,
        run_on_start: bool = True,
    ):
        """Initialize the scheduler.

        Args:
            run_callback: Async function running one pass.
                          Signature: async (Optional[asyncio.Event]) -> GarbageCollectionResult
            interval_minutes: Minutes between passes (default: 60)
            enabled: Whether the scheduler is active (default: True)
            run_on_start: Run the first pass immediately instead of
                          waiting a full interval (default: True)
        """
        if interval_minutes < 1:
            raise ValueError("interval_minutes must be at least 1")

        self._run_callback = run_callback
        self._interval_minutes = interval_minutes
        self._enabled = enabled
        self._run_on_start = run_on_start
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._cancellation = asyncio.Event()
        self._running = False
        self._last_run: Optional[datetime] = None
        self._last_status: Optional[str] = None
        self._last_error: Optional[str] = None
        self._last_result: Optional[GarbageCollectionResult] = None
        self._run_count: int = 0

    async def start(self) -> bool:
        """Start the scheduler.

        Returns:
            True if started successfully, False if disabled or failed.
        """
        if not self._enabled:
            logger.info("GarbageCollectionScheduler: disabled via configuration")
            return False

        try:
            self._cancellation.clear()
            job_options: dict[str, Any] = {}
            if self._run_on_start:
                job_options["next_run_time"] = datetime.now(timezone.utc)

            self._scheduler = AsyncIOScheduler()
            self._scheduler.add_job(
                self._run_collection,
                trigger=IntervalTrigger(minutes=self._interval_minutes),
                id=self.JOB_ID,
                name="Leaked Resource Garbage Collection",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
                **job_options,
            )
            self._scheduler.start()
            self._running = True

            logger.info(
                f"GarbageCollectionScheduler: started "
                f"(interval: {self._interval_minutes} minutes)"
            )
            return True

        except Exception as e:
            logger.error(f"GarbageCollectionScheduler: failed to start: {e}")
            self._running = False
            return False

    async def stop(self) -> None:
        """Stop the scheduler and cancel any pass in flight."""
        self._cancellation.set()
        if self._scheduler and self._running:
            try:
                self._scheduler.shutdown(wait=False)
                self._running = False
                logger.info("GarbageCollectionScheduler: stopped")
            except Exception as e:
                logger.warning(f"GarbageCollectionScheduler: error during shutdown: {e}")

    async def _run_collection(self) -> None:
        """Execute one garbage collection pass.

        This is the job function called by APScheduler.
        """
        start_time = datetime.now(timezone.utc)
        logger.info("GarbageCollectionScheduler: starting scheduled garbage collection")

        try:
            result = await self._run_callback(self._cancellation)

            elapsed = (datetime.now(timezone.utc) - start_time).total_seconds()
            self._last_run = start_time
            self._last_result = result
            self._last_status = "success" if not result.failed_collectors else "partial"
            self._last_error = (
                f"Failed collectors: {', '.join(result.failed_collectors)}"
                if result.failed_collectors else None
            )
            self._run_count += 1

            logger.info(
                f"GarbageCollectionScheduler: run complete "
                f"(leaked={result.total_leaked}, cleaned={result.total_cleaned}, "
                f"failed_collectors={len(result.failed_collectors)}, "
                f"elapsed={elapsed:.1f}s)"
            )

        except Exception as e:
            elapsed = (datetime.now(timezone.utc) - start_time).total_seconds()
            self._last_run = start_time
            self._last_status = "error"
            self._last_error = str(e)

            logger.error(
                f"GarbageCollectionScheduler: run failed after {elapsed:.1f}s: {e}"
            )

    async def run_now(self) -> Optional[GarbageCollectionResult]:
        """Trigger an immediate garbage collection pass."""
        logger.info("GarbageCollectionScheduler: manual run triggered")
        await self._run_collection()
        return self._last_result if self._last_status != "error" else None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def last_run(self) -> Optional[datetime]:
        """Timestamp of the last run."""
        return self._last_run

    @property
    def last_status(self) -> Optional[str]:
        """Status of the last run: 'success', 'partial' or 'error'."""
        return self._last_status

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def run_count(self) -> int:
        return self._run_count

    def get_status(self) -> dict[str, Any]:
        """Get scheduler status for health reporting."""
        next_run = None
        if self._scheduler and self._running:
            job = self._scheduler.get_job(self.JOB_ID)
            if job and job.next_run_time:
                next_run = job.next_run_time.isoformat()

        return {
            "enabled": self._enabled,
            "running": self._running,
            "interval_minutes": self._interval_minutes,
            "next_run": next_run,
            "last_run": self._last_run.isoformat() if self._last_run else None,
            "last_status": self._last_status,
            "last_error": self._last_error,
            "run_count": self._run_count,
        }
