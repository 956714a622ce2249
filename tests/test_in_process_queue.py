"""Tests for the in-process FIFO ingestion queue."""

import asyncio
import threading
import time

from app.jobs.in_process_queue import InProcessQueue
from app.jobs.models import IngestionJob, JobStatus, PROCESS_AUDIO


def _job(n: int) -> IngestionJob:
    return IngestionJob(track_id=f"track-{n}", original_path=f"/uploads/{n}.mp3")


class Recorder:
    """Handler that records call order and peak concurrency."""

    def __init__(self, delay: float = 0.01, fail_on=()):
        self.order = []
        self.active = 0
        self.peak = 0
        self.delay = delay
        self.fail_on = set(fail_on)
        self._lock = threading.Lock()

    def __call__(self, job: IngestionJob) -> None:
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            time.sleep(self.delay)
            self.order.append(job.track_id)
            if job.track_id in self.fail_on:
                raise RuntimeError(f"boom on {job.track_id}")
        finally:
            with self._lock:
                self.active -= 1


def test_jobs_run_once_each_in_submission_order_one_at_a_time():
    recorder = Recorder()

    async def scenario():
        queue = InProcessQueue(handlers={PROCESS_AUDIO: recorder})
        await queue.start()
        for n in range(10):
            await queue.enqueue(_job(n))
        await queue.wait_idle()
        await queue.stop()

    asyncio.run(scenario())

    assert recorder.order == [f"track-{n}" for n in range(10)]
    assert recorder.peak == 1


def test_enqueue_returns_before_the_job_runs():
    recorder = Recorder(delay=0.05)

    async def scenario():
        queue = InProcessQueue(handlers={PROCESS_AUDIO: recorder})
        await queue.start()
        job = _job(1)
        job_id = await queue.enqueue(job)
        status_after_enqueue = (await queue.get_status(job_id)).status
        await queue.wait_idle()
        final = await queue.get_status(job_id)
        await queue.stop()
        return job.id, job_id, status_after_enqueue, final

    expected_id, job_id, early, final = asyncio.run(scenario())

    assert job_id == expected_id
    assert early == JobStatus.PENDING
    assert final.status == JobStatus.COMPLETED
    assert final.started_at is not None
    assert final.completed_at is not None


def test_enqueue_while_draining_does_not_start_second_drain():
    recorder = Recorder(delay=0.02)

    async def scenario():
        queue = InProcessQueue(handlers={PROCESS_AUDIO: recorder})
        await queue.start()
        await queue.enqueue(_job(1))
        first_task = queue._drain_task
        await asyncio.sleep(0.005)
        await queue.enqueue(_job(2))
        await queue.enqueue(_job(3))
        same_task = queue._drain_task is first_task
        await queue.wait_idle()
        await queue.stop()
        return same_task

    assert asyncio.run(scenario()) is True
    assert recorder.order == ["track-1", "track-2", "track-3"]
    assert recorder.peak == 1


def test_failed_job_is_recorded_and_drain_continues():
    recorder = Recorder(fail_on={"track-2"})

    async def scenario():
        queue = InProcessQueue(handlers={PROCESS_AUDIO: recorder})
        await queue.start()
        ids = [await queue.enqueue(_job(n)) for n in (1, 2, 3)]
        await queue.wait_idle()
        jobs = [await queue.get_status(i) for i in ids]
        await queue.stop()
        return jobs

    jobs = asyncio.run(scenario())

    assert [j.status for j in jobs] == [
        JobStatus.COMPLETED,
        JobStatus.FAILED,
        JobStatus.COMPLETED,
    ]
    assert jobs[1].error == "RuntimeError: boom on track-2"
    assert recorder.order == ["track-1", "track-2", "track-3"]


def test_unknown_job_type_fails():
    async def scenario():
        queue = InProcessQueue(handlers={})
        await queue.start()
        job_id = await queue.enqueue(_job(1))
        await queue.wait_idle()
        job = await queue.get_status(job_id)
        await queue.stop()
        return job

    job = asyncio.run(scenario())
    assert job.status == JobStatus.FAILED
    assert "No handler registered" in job.error


def test_jobs_enqueued_before_start_wait_for_start():
    recorder = Recorder()

    async def scenario():
        queue = InProcessQueue(handlers={PROCESS_AUDIO: recorder})
        await queue.enqueue(_job(1))
        await queue.enqueue(_job(2))
        await asyncio.sleep(0.05)
        ran_before_start = list(recorder.order)
        assert queue.pending_count() == 2
        await queue.start()
        await queue.wait_idle()
        await queue.stop()
        return ran_before_start

    assert asyncio.run(scenario()) == []
    assert recorder.order == ["track-1", "track-2"]


def test_get_status_unknown_job():
    async def scenario():
        queue = InProcessQueue(handlers={})
        return await queue.get_status("missing")

    assert asyncio.run(scenario()) is None


def test_stop_mid_job_releases_wait_idle():
    recorder = Recorder(delay=0.2)

    async def scenario():
        queue = InProcessQueue(handlers={PROCESS_AUDIO: recorder})
        await queue.start()
        job_id = await queue.enqueue(_job(1))
        await asyncio.sleep(0.02)
        await queue.stop()
        await asyncio.wait_for(queue.wait_idle(), timeout=1.0)
        return await queue.get_status(job_id)

    job = asyncio.run(scenario())
    assert job.status == JobStatus.PROCESSING
