"""Replication job store - job documents kept in the ``_replicator`` collection."""

import logging
from typing import Literal

from postdb.application.use_cases.collection.create_collection import CreateCollectionUseCase
from postdb.application.use_cases.document.document_store import DocumentStore
from postdb.application.use_cases.query.query_engine import QueryEngine
from postdb.domain.entities import CollectionSchema, IndexDefinition, ReplicationJob
from postdb.domain.exceptions import CollectionExists, NotFound, ValidationError
from postdb.domain.value_objects import JOB_COLLECTION, JobState, validate_id

logger = logging.getLogger(__name__)

JOB_SCHEMA = CollectionSchema(
    name=JOB_COLLECTION,
    indexes=(IndexDefinition(name="state", field="state"),),
)

DocCountPolicy = Literal["accumulate", "reset"]

_PAGE_SIZE = 500


class ReplicationJobStore:
    """Durable job state on top of DocumentStore.

    Transitions are written before the work they announce starts, and
    ``checkpoint``/``finish`` re-read the stored job under a row lock so a
    CANCELLED state written by an operator is never overwritten.
    """

    def __init__(
        self,
        document_store: DocumentStore,
        query_engine: QueryEngine,
        create_collection: CreateCollectionUseCase,
        doc_count_policy: DocCountPolicy = "accumulate",
    ) -> None:
        self._documents = document_store
        self._query = query_engine
        self._create_collection = create_collection
        self._doc_count_policy = doc_count_policy

    async def ensure_collection(self) -> None:
        """Create ``_replicator`` unless it already exists."""
        try:
            await self._create_collection.execute(JOB_COLLECTION, JOB_SCHEMA.to_mapping())
            logger.info("Created job collection %s", JOB_COLLECTION)
        except CollectionExists:
            pass

    async def _save(self, job: ReplicationJob, uow: object | None = None) -> None:
        await self._documents.put(JOB_COLLECTION, job.id, job.to_body(), uow=uow)

    async def get(self, job_id: str) -> ReplicationJob:
        document = await self._documents.get(JOB_COLLECTION, job_id)
        try:
            return ReplicationJob.from_body(document.id, document.body)
        except ValueError as e:
            raise ValidationError(f"Malformed job document {job_id}: {e}") from e

    async def _find_or_none(self, job_id: str) -> ReplicationJob | None:
        try:
            return await self.get(job_id)
        except NotFound:
            return None

    async def find(self, states: list[JobState]) -> list[ReplicationJob]:
        """Jobs currently in any of ``states``; malformed job documents are skipped."""
        jobs: list[ReplicationJob] = []
        for state in states:
            offset = 0
            while True:
                docs = await self._query.query(
                    JOB_COLLECTION,
                    "state",
                    key=state.value,
                    limit=_PAGE_SIZE,
                    offset=offset,
                )
                for doc in docs:
                    try:
                        jobs.append(ReplicationJob.from_body(doc.id, doc.body))
                    except ValueError:
                        logger.warning("Skipping malformed job document %s", doc.id)
                if len(docs) < _PAGE_SIZE:
                    break
                offset += _PAGE_SIZE
        return jobs

    async def submit(
        self,
        source: str,
        target: str,
        *,
        continuous: bool = False,
        create_target: bool = False,
        exclude: str | None = None,
        restart: bool = False,
    ) -> ReplicationJob:
        """Create or resubmit the job for ``(source, target)``.

        A NEW or RUNNING job is returned unchanged. A finished job goes back
        to NEW, keeping its cursor unless ``restart`` is set.
        """
        if not source or not isinstance(source, str):
            raise ValidationError("Missing source")
        if not target or not isinstance(target, str):
            raise ValidationError("Missing target")
        job_id = ReplicationJob.make_id(source, target)
        validate_id(job_id)

        existing = await self._find_or_none(job_id)
        if existing is not None and not existing.state.is_terminal:
            return existing

        job = ReplicationJob(
            id=job_id,
            source=source,
            target=target,
            continuous=continuous,
            create_target=create_target,
            exclude=self._documents.cluster_id if exclude is None else exclude,
        )
        if existing is not None:
            if not restart:
                job.cursor = existing.cursor
            if self._doc_count_policy == "accumulate":
                job.doc_count = existing.doc_count
        await self._save(job)
        logger.info("Submitted replication job %s: %s -> %s", job.short_id, source, target)
        return job

    async def cancel(self, job_id: str) -> ReplicationJob:
        """Mark a job CANCELLED; a running worker stops at its next checkpoint."""
        async with self._documents.transaction() as uow:
            document = await self._documents.get(JOB_COLLECTION, job_id, uow=uow, lock=True)
            job = ReplicationJob.from_body(document.id, document.body)
            if job.state.is_terminal:
                return job
            job.state = JobState.CANCELLED
            await self._save(job, uow=uow)
        logger.info("Cancelled replication job %s", job.short_id)
        return job

    async def mark_running(self, job: ReplicationJob) -> ReplicationJob:
        """Persist RUNNING unless the stored job already reached a terminal state.

        In that case ``job`` takes the stored state and nothing is written.
        """
        async with self._documents.transaction() as uow:
            document = await self._documents.get(JOB_COLLECTION, job.id, uow=uow, lock=True)
            stored = ReplicationJob.from_body(document.id, document.body)
            if stored.state.is_terminal:
                job.state = stored.state
                return job
            job.state = JobState.RUNNING
            await self._save(job, uow=uow)
        return job

    async def refresh(self, job: ReplicationJob) -> ReplicationJob:
        """Pick up an external state change (cancellation) without writing."""
        stored = await self.get(job.id)
        if stored.state is JobState.CANCELLED:
            job.state = JobState.CANCELLED
        return job

    async def checkpoint(self, job: ReplicationJob, cursor: str, applied: int) -> ReplicationJob:
        """Persist ``cursor`` and ``doc_count += applied`` in one write."""
        async with self._documents.transaction() as uow:
            document = await self._documents.get(JOB_COLLECTION, job.id, uow=uow, lock=True)
            if document.body.get("state") == JobState.CANCELLED.value:
                job.state = JobState.CANCELLED
            job.cursor = cursor
            job.doc_count += applied
            await self._save(job, uow=uow)
        return job

    async def finish(self, job: ReplicationJob, state: JobState) -> ReplicationJob:
        """Move to a terminal state unless the job was cancelled meanwhile."""
        async with self._documents.transaction() as uow:
            try:
                document = await self._documents.get(
                    JOB_COLLECTION, job.id, uow=uow, lock=True
                )
                cancelled = document.body.get("state") == JobState.CANCELLED.value
            except NotFound:
                cancelled = False
            job.state = JobState.CANCELLED if cancelled else state
            await self._save(job, uow=uow)
        return job
