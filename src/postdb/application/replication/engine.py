"""Replication engine - one worker per job driving pull -> apply -> checkpoint.

A producer task reads batches from the job's change source into a bounded
queue; the worker consumes them strictly in order. Each batch is applied to
the target collection in a single transaction, and only after that
transaction commits is the job's cursor checkpointed. A crash replays at
most the batch in flight; target writes are upserts and tombstones.

Stopping is cooperative and happens between batches only:

    - an operator sets the job document to ``cancelled``; the worker sees it
      at the next checkpoint (or long-poll heartbeat) and ends the job;
    - the process calls :meth:`ReplicationEngine.stop` on shutdown; the worker
      exits and leaves the job ``running`` so it resumes on the next start.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Literal

from postdb.application.ports import RemoteChangeSource
from postdb.application.replication.job_store import ReplicationJobStore
from postdb.application.use_cases.collection.create_collection import CreateCollectionUseCase
from postdb.application.use_cases.document.document_store import DocumentStore
from postdb.domain.entities import ChangeEntry, ReplicationJob
from postdb.domain.exceptions import CollectionExists, SourceUnavailable, ValidationError
from postdb.domain.value_objects import JobState, is_reserved, validate_id

logger = logging.getLogger(__name__)

TargetExistsPolicy = Literal["ignore", "warn"]

# Resolves a job's source descriptor to (change source, source collection).
SourceOpener = Callable[[str], tuple[RemoteChangeSource, str]]

_END = object()
_STOPPED = object()


class ReplicationEngine:
    """Worker for a single replication job."""

    def __init__(
        self,
        job: ReplicationJob,
        *,
        job_store: ReplicationJobStore,
        document_store: DocumentStore,
        create_collection: CreateCollectionUseCase,
        open_source: SourceOpener,
        batch_size: int = 5000,
        queue_size: int = 2,
        target_exists_policy: TargetExistsPolicy = "ignore",
    ) -> None:
        self._job = job
        self._job_store = job_store
        self._documents = document_store
        self._create_collection = create_collection
        self._open_source = open_source
        self._batch_size = batch_size
        self._queue_size = queue_size
        self._target_exists_policy = target_exists_policy
        self._stop = asyncio.Event()

    @property
    def job(self) -> ReplicationJob:
        return self._job

    def stop(self) -> None:
        """Stop after the batch in flight; the job stays RUNNING."""
        self._stop.set()

    async def run(self) -> ReplicationJob:
        """Run the job until it completes, fails, is cancelled or stopped."""
        job = self._job
        source: RemoteChangeSource | None = None
        try:
            await self._job_store.mark_running(job)
            if job.state.is_terminal:
                logger.info("%s is already %s, not starting", job.short_id, job.state)
                return job
            logger.info("%s starting from %s", job.short_id, job.cursor[:10])
            source, collection = self._open_source(job.source)
            if job.create_target:
                await self._create_target(job.target)
            completed = await self._replicate(source, collection)
        except Exception:
            logger.exception("%s failed", job.short_id)
            return await self._finish(JobState.ERROR)
        finally:
            if source is not None:
                await source.aclose()

        if completed:
            return await self._finish(JobState.COMPLETED)
        return job

    async def _finish(self, state: JobState) -> ReplicationJob:
        try:
            await self._job_store.finish(self._job, state)
        except Exception:
            logger.exception("%s could not persist state %s", self._job.short_id, state)
            self._job.state = state
        job = self._job
        logger.info("%s ended: %s (%d docs)", job.short_id, job.state, job.doc_count)
        return self._job

    async def _create_target(self, target: str) -> None:
        try:
            await self._create_collection.execute(target)
            logger.info("%s created target %s", self._job.short_id, target)
        except CollectionExists:
            if self._target_exists_policy == "warn":
                logger.warning("%s target %s already exists", self._job.short_id, target)
            else:
                logger.debug("%s target %s already present", self._job.short_id, target)

    async def _replicate(self, source: RemoteChangeSource, collection: str) -> bool:
        """Consume the feed; True when a one-off feed is exhausted."""
        job = self._job
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        feed = source.open_feed(
            collection,
            job.cursor,
            include_body=True,
            exclude_origin_cluster=job.exclude or None,
            continuous=job.continuous,
            batch_size=self._batch_size,
        )
        producer = asyncio.create_task(self._pull(feed, queue))
        try:
            while True:
                item = await self._next(queue)
                if item is _STOPPED:
                    logger.info("%s stopping, job left running", job.short_id)
                    return False
                if item is _END:
                    if job.continuous:
                        raise SourceUnavailable(f"Continuous feed closed: {job.source}")
                    return True
                if isinstance(item, BaseException):
                    raise item

                if item:
                    applied = await self._apply(item)
                    await self._job_store.checkpoint(job, str(item[-1].sequence), applied)
                    logger.info("%s %d changes, %d applied", job.short_id, len(item), applied)
                else:
                    await self._job_store.refresh(job)

                if job.state is JobState.CANCELLED:
                    logger.info("%s cancelled", job.short_id)
                    return False
        finally:
            producer.cancel()
            await asyncio.gather(producer, return_exceptions=True)

    async def _pull(self, feed: AsyncIterator[list[ChangeEntry]], queue: asyncio.Queue) -> None:
        try:
            async for batch in feed:
                await queue.put(batch)
        except Exception as e:
            await queue.put(e)
            return
        await queue.put(_END)

    async def _next(self, queue: asyncio.Queue) -> object:
        """Next queued item, or _STOPPED once stop() was called."""
        if self._stop.is_set():
            return _STOPPED
        getter = asyncio.ensure_future(queue.get())
        stopper = asyncio.ensure_future(self._stop.wait())
        try:
            done, _ = await asyncio.wait({getter, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (getter, stopper):
                if not task.done():
                    task.cancel()
        if getter in done:
            return getter.result()
        return _STOPPED

    async def _apply(self, batch: list[ChangeEntry]) -> int:
        """Write one batch to the target in a single transaction."""
        target = self._job.target
        applied = 0
        async with self._documents.transaction() as uow:
            for entry in batch:
                if is_reserved(entry.id):
                    continue
                try:
                    validate_id(entry.id)
                except ValidationError:
                    logger.warning("%s skipping invalid id %r", self._job.short_id, entry.id)
                    continue
                origin = entry.origin_cluster or self._documents.cluster_id
                if entry.deleted:
                    sequence = await self._documents.delete(
                        target, entry.id, origin, uow=uow, missing_ok=True
                    )
                    if sequence is None:
                        continue
                else:
                    await self._documents.put(target, entry.id, entry.body or {}, origin, uow=uow)
                applied += 1
        return applied
