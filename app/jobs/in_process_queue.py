"""In-process ingestion queue using asyncio.

Runs jobs strictly one at a time in FIFO order. State lives in memory only:
jobs do not survive a restart, and a multi-process deployment needs an
external queue instead.
"""

import asyncio
import logging
from collections import deque
from datetime import datetime
from typing import Callable, Deque, Dict, Optional

from app.jobs.dispatcher import JobDispatcher
from app.jobs.models import IngestionJob, JobStatus

logger = logging.getLogger(__name__)

JobHandler = Callable[[IngestionJob], None]


class InProcessQueue(JobDispatcher):
    """Local async job queue with a single drain task."""

    def __init__(self, handlers: Dict[str, JobHandler]):
        """
        handlers: job_type -> callable(job) -> None
            Synchronous functions that do the work. Each is called in a
            thread executor so file I/O does not block the event loop.
            Raising marks the job failed.
        """
        self._handlers = dict(handlers)
        self._jobs: Dict[str, IngestionJob] = {}
        self._pending: Deque[str] = deque()
        self._current: Optional[str] = None
        self._drain_task: Optional[asyncio.Task] = None
        self._running = False
        self._idle = asyncio.Event()
        self._idle.set()

    async def enqueue(self, job: IngestionJob) -> str:
        job.status = JobStatus.PENDING
        self._jobs[job.id] = job
        self._pending.append(job.id)
        self._idle.clear()
        self._schedule_drain()
        return job.id

    async def get_status(self, job_id: str) -> Optional[IngestionJob]:
        job = self._jobs.get(job_id)
        return job.model_copy() if job else None

    async def start(self) -> None:
        self._running = True
        logger.info("Ingestion queue started (%d job(s) waiting)", len(self._pending))
        self._schedule_drain()

    async def stop(self) -> None:
        self._running = False
        if self._drain_task and not self._drain_task.done():
            self._drain_task.cancel()
            try:
                await self._drain_task
            except asyncio.CancelledError:
                pass
        # Nothing runs after stop; release anyone blocked in wait_idle
        self._idle.set()
        logger.info("Ingestion queue stopped (%d job(s) left pending)", len(self._pending))

    async def wait_idle(self) -> None:
        await self._idle.wait()

    def pending_count(self) -> int:
        return len(self._pending)

    def is_draining(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    def _schedule_drain(self) -> None:
        """Start a drain task unless one is already active."""
        if not self._running or self.is_draining():
            return
        self._drain_task = asyncio.get_running_loop().create_task(self._drain_loop())

    def _claim_next(self) -> Optional[IngestionJob]:
        while self._pending:
            job = self._jobs.get(self._pending.popleft())
            if job is not None and job.status == JobStatus.PENDING:
                return job
        return None

    async def _drain_loop(self) -> None:
        """Process jobs one at a time until nothing is pending."""
        while self._running:
            job = self._claim_next()
            if job is None:
                break
            await self._execute(job)
            # Yield to other tasks between jobs
            await asyncio.sleep(0)

        if not self._pending and self._current is None:
            self._idle.set()

    async def _execute(self, job: IngestionJob) -> None:
        job.status = JobStatus.PROCESSING
        job.started_at = datetime.utcnow()
        self._current = job.id
        logger.info("Job %s (%s) started for track %s", job.id, job.job_type, job.track_id)

        try:
            handler = self._handlers.get(job.job_type)
            if handler is None:
                raise ValueError(f"No handler registered for job type '{job.job_type}'")
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, handler, job)
            job.status = JobStatus.COMPLETED
            logger.info("Job %s completed", job.id)
        except Exception as e:
            job.status = JobStatus.FAILED
            job.error = f"{type(e).__name__}: {str(e)}"
            logger.error("Job %s failed: %s", job.id, job.error, exc_info=True)
        finally:
            job.completed_at = datetime.utcnow()
            self._current = None
