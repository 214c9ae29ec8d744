"""Application entry points and composition root."""

import asyncio
import logging
import signal
from dataclasses import dataclass

import falcon.asgi
from psycopg_pool import AsyncConnectionPool

from postdb.application.replication import (
    JobScheduler,
    ReplicationEngine,
    ReplicationJobStore,
)
from postdb.application.use_cases.changes.change_feed import ChangeFeed
from postdb.application.use_cases.collection.create_collection import CreateCollectionUseCase
from postdb.application.use_cases.collection.describe_collection import (
    DescribeCollectionUseCase,
    ListCollectionsUseCase,
)
from postdb.application.use_cases.collection.drop_collection import DropCollectionUseCase
from postdb.application.use_cases.document.bulk_docs import BulkDocsUseCase
from postdb.application.use_cases.document.document_store import DocumentStore
from postdb.application.use_cases.query.query_engine import QueryEngine
from postdb.config import Settings, get_settings
from postdb.domain.entities import ReplicationJob
from postdb.infrastructure.persistence.postgres.connection import create_pool, open_pool
from postdb.infrastructure.persistence.postgres.unit_of_work import create_uow_factory
from postdb.infrastructure.remote.source_factory import create_source_opener
from postdb.interfaces.api.app import create_app
from postdb.interfaces.api.middleware.pool_lifespan import PoolLifespanMiddleware
from postdb.interfaces.api.resources.all_docs import AllDocsResource
from postdb.interfaces.api.resources.bulk_docs import BulkDocsResource
from postdb.interfaces.api.resources.changes import ChangesResource
from postdb.interfaces.api.resources.databases import DatabaseResource
from postdb.interfaces.api.resources.documents import DocumentResource
from postdb.interfaces.api.resources.health import HealthResource
from postdb.interfaces.api.resources.purge import PurgeResource
from postdb.interfaces.api.resources.query import QueryResource
from postdb.interfaces.api.resources.replicate import ReplicateResource
from postdb.interfaces.api.resources.server import (
    AllDbsResource,
    ServerInfoResource,
    UuidsResource,
)
from postdb.logging_config import setup_logging

logger = logging.getLogger(__name__)


@dataclass
class Core:
    """Use cases shared by the HTTP server and the replicator."""

    document_store: DocumentStore
    change_feed: ChangeFeed
    query_engine: QueryEngine
    create_collection: CreateCollectionUseCase
    job_store: ReplicationJobStore


def build_core(settings: Settings, uow_factory) -> Core:
    document_store = DocumentStore(uow_factory, cluster_id=settings.cluster_id)
    query_engine = QueryEngine(document_store)
    create_collection = CreateCollectionUseCase(
        unit_of_work_factory=uow_factory,
        default_index_count=settings.default_index_count,
    )
    return Core(
        document_store=document_store,
        change_feed=ChangeFeed(document_store, poll_interval=settings.changes_poll_interval),
        query_engine=query_engine,
        create_collection=create_collection,
        job_store=ReplicationJobStore(
            document_store,
            query_engine,
            create_collection,
            doc_count_policy=settings.replication_doc_count_policy,
        ),
    )


def create_postdb_app(
    settings: Settings | None = None,
    pool: AsyncConnectionPool | None = None,
    uow_factory=None,
) -> falcon.asgi.App:
    """Composition root - build Falcon app with all dependencies.

    Tests pass ``uow_factory`` (and no pool) to run against in-memory storage.
    """
    settings = settings or get_settings()
    middleware = []
    if uow_factory is None:
        pool = pool or create_pool(
            settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
        )
        uow_factory = create_uow_factory(pool)
    if pool is not None:
        middleware.append(PoolLifespanMiddleware(pool))

    core = build_core(settings, uow_factory)
    documents = core.document_store

    return create_app(
        server_info_resource=ServerInfoResource(settings.cluster_id),
        health_resource=HealthResource(pool),
        all_dbs_resource=AllDbsResource(ListCollectionsUseCase(uow_factory)),
        uuids_resource=UuidsResource(),
        database_resource=DatabaseResource(
            core.create_collection,
            DescribeCollectionUseCase(uow_factory),
            DropCollectionUseCase(uow_factory, documents),
            documents,
        ),
        document_resource=DocumentResource(documents),
        all_docs_resource=AllDocsResource(documents),
        bulk_docs_resource=BulkDocsResource(BulkDocsUseCase(documents)),
        changes_resource=ChangesResource(
            core.change_feed, longpoll_timeout=settings.changes_longpoll_timeout
        ),
        query_resource=QueryResource(core.query_engine, documents),
        purge_resource=PurgeResource(documents),
        replicate_resource=ReplicateResource(core.job_store),
        middleware=middleware,
    )


def create_scheduler(core: Core, settings: Settings) -> JobScheduler:
    """Wire engines and the scheduler around ``core``."""
    open_source = create_source_opener(
        core.change_feed,
        http_timeout=settings.replication_http_timeout,
        longpoll_timeout=settings.changes_longpoll_timeout,
    )

    def engine_factory(job: ReplicationJob) -> ReplicationEngine:
        return ReplicationEngine(
            job,
            job_store=core.job_store,
            document_store=core.document_store,
            create_collection=core.create_collection,
            open_source=open_source,
            batch_size=settings.replication_batch_size,
            queue_size=settings.replication_queue_size,
            target_exists_policy=settings.replication_target_exists_policy,
        )

    return JobScheduler(
        core.job_store,
        engine_factory,
        poll_interval=settings.replication_poll_interval,
    )


def run_server(settings: Settings | None = None) -> None:
    """Run uvicorn server."""
    import uvicorn

    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)
    app = create_postdb_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


async def run_replicator(
    settings: Settings | None = None,
    *,
    submit: dict | None = None,
    exit_when_idle: bool = False,
) -> None:
    """Run the job scheduler until SIGINT/SIGTERM (or until idle).

    ``submit`` holds ``ReplicationJobStore.submit`` arguments for a job to
    record before scheduling starts. An unreachable database aborts startup.
    """
    settings = settings or get_settings()
    pool = create_pool(
        settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )
    await open_pool(pool)
    try:
        core = build_core(settings, create_uow_factory(pool))
        await core.job_store.ensure_collection()
        if submit:
            job = await core.job_store.submit(**submit)
            logger.info("Job %s is %s", job.id, job.state)

        scheduler = create_scheduler(core, settings)
        if exit_when_idle:
            await scheduler.poll(initial=True)
            await scheduler.wait_idle()
            return

        loop = asyncio.get_running_loop()

        def signal_handler() -> None:
            logger.info("Received shutdown signal")
            scheduler.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)
        try:
            await scheduler.run()
        finally:
            await scheduler.shutdown()
    finally:
        await pool.close()
