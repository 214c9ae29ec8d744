"""Job scheduler - starts and supervises one replication worker per job."""

import asyncio
import logging
from collections.abc import Callable

from postdb.application.replication.engine import ReplicationEngine
from postdb.application.replication.job_store import ReplicationJobStore
from postdb.domain.entities import ReplicationJob
from postdb.domain.value_objects import JobState

logger = logging.getLogger(__name__)

EngineFactory = Callable[[ReplicationJob], ReplicationEngine]


class JobScheduler:
    """Discovers jobs and keeps at most one live worker per job id.

    The first scan picks up NEW and RUNNING jobs (RUNNING means the job was
    active when the process last stopped). Later polls only look for NEW
    jobs. Live workers are tracked in memory so a job whose state has not
    yet been written as RUNNING is never started twice.

    Only one scheduler process may own a job collection.
    """

    def __init__(
        self,
        job_store: ReplicationJobStore,
        engine_factory: EngineFactory,
        poll_interval: float = 30.0,
    ) -> None:
        self._job_store = job_store
        self._engine_factory = engine_factory
        self._poll_interval = poll_interval
        self._workers: dict[str, tuple[ReplicationEngine, asyncio.Task]] = {}
        self._stopping = asyncio.Event()

    @property
    def active_job_ids(self) -> set[str]:
        return set(self._workers)

    async def poll(self, initial: bool = False) -> list[str]:
        """Start workers for discovered jobs; returns the ids started."""
        states = [JobState.NEW, JobState.RUNNING] if initial else [JobState.NEW]
        jobs = await self._job_store.find(states)
        started = []
        for job in jobs:
            if self._start_worker(job):
                started.append(job.id)
        return started

    def _start_worker(self, job: ReplicationJob) -> bool:
        if job.id in self._workers:
            return False
        engine = self._engine_factory(job)
        task = asyncio.create_task(engine.run(), name=f"replication-{job.id}")
        self._workers[job.id] = (engine, task)
        task.add_done_callback(lambda t, job_id=job.id: self._on_worker_done(job_id, t))
        logger.info("Started worker for job %s", job.short_id)
        return True

    def _on_worker_done(self, job_id: str, task: asyncio.Task) -> None:
        current = self._workers.get(job_id)
        if current is not None and current[1] is task:
            del self._workers[job_id]
        if not task.cancelled() and task.exception() is not None:
            logger.error("Worker for job %s crashed", job_id, exc_info=task.exception())

    async def run(self) -> None:
        """Initial scan, then poll every ``poll_interval`` seconds until shutdown.

        A failing initial scan propagates (the process must not start);
        later poll failures are logged and retried on the next tick.
        """
        await self.poll(initial=True)
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self._poll_interval)
            except asyncio.TimeoutError:
                pass
            if self._stopping.is_set():
                break
            try:
                await self.poll()
            except Exception:
                logger.exception("Polling for new replication jobs failed")

    def stop(self) -> None:
        """Make ``run`` return after the current poll."""
        self._stopping.set()

    async def shutdown(self) -> None:
        """Stop polling and let every worker finish its batch in flight."""
        self.stop()
        workers = list(self._workers.values())
        for engine, _ in workers:
            engine.stop()
        if workers:
            await asyncio.gather(*(task for _, task in workers), return_exceptions=True)
        logger.info("Scheduler stopped (%d workers)", len(workers))

    async def wait_idle(self) -> None:
        """Wait until no worker is live (one-off runs)."""
        while self._workers:
            tasks = [task for _, task in self._workers.values()]
            await asyncio.gather(*tasks, return_exceptions=True)
