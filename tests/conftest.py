"""Pytest fixtures for postdb tests."""

from __future__ import annotations

import copy
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Any

import pytest

from postdb.application.replication import ReplicationEngine, ReplicationJobStore
from postdb.application.replication.local_source import LocalChangeSource
from postdb.application.use_cases.changes.change_feed import ChangeFeed
from postdb.application.use_cases.collection.create_collection import CreateCollectionUseCase
from postdb.application.use_cases.document.document_store import DocumentStore
from postdb.application.use_cases.query.query_engine import QueryEngine
from postdb.domain.entities import CollectionSchema, Document
from postdb.domain.exceptions import CollectionExists, TransientStorageError


# --- Fake storage ---


class FakeStorage:
    """Committed state shared by every unit of work of one node."""

    def __init__(self) -> None:
        self.schemas: dict[str, CollectionSchema] = {}
        self.tables: dict[str, dict[str, Document]] = {}
        self.fail_on_ids: set[str] = set()
        self.commits = 0
        self.rollbacks = 0

    def snapshot(self) -> tuple:
        return copy.deepcopy((self.schemas, self.tables))

    def restore(self, state: tuple) -> None:
        self.schemas, self.tables = state


class FakeDocumentRepository:
    """In-memory document repository with max+1 sequence assignment."""

    def __init__(self, storage: FakeStorage) -> None:
        self._storage = storage

    def _table(self, collection: str) -> dict[str, Document]:
        return self._storage.tables[collection]

    def _next_seq(self, collection: str) -> int:
        return max((d.sequence for d in self._table(collection).values()), default=0) + 1

    async def upsert(
        self,
        collection: str,
        doc_id: str,
        body: dict[str, Any],
        index_values: dict[str, str | None],
        origin_cluster: str,
    ) -> int:
        if doc_id in self._storage.fail_on_ids:
            raise TransientStorageError(f"injected failure for {doc_id}")
        seq = self._next_seq(collection)
        self._table(collection)[doc_id] = Document(
            id=doc_id,
            sequence=seq,
            body=copy.deepcopy(body),
            deleted=False,
            index_values=dict(index_values),
            origin_cluster=origin_cluster,
        )
        return seq

    async def tombstone(self, collection: str, doc_id: str, origin_cluster: str) -> int | None:
        current = self._table(collection).get(doc_id)
        if current is None:
            return None
        seq = self._next_seq(collection)
        self._table(collection)[doc_id] = replace(
            current,
            sequence=seq,
            body={},
            deleted=True,
            index_values={},
            origin_cluster=origin_cluster,
        )
        return seq

    async def get(self, collection: str, doc_id: str, for_update: bool = False) -> Document | None:
        document = self._table(collection).get(doc_id)
        return copy.deepcopy(document)

    async def purge(self, collection: str, doc_ids: list[str]) -> list[str]:
        table = self._table(collection)
        return [doc_id for doc_id in doc_ids if table.pop(doc_id, None) is not None]

    async def all_docs(
        self,
        collection: str,
        *,
        start_key: str,
        end_key: str,
        limit: int,
        offset: int = 0,
    ) -> list[Document]:
        rows = sorted(
            (
                d
                for d in self._table(collection).values()
                if not d.deleted and start_key <= d.id <= end_key
            ),
            key=lambda d: d.id,
        )
        return copy.deepcopy(rows[offset : offset + limit])

    async def changes(
        self,
        collection: str,
        *,
        since: int,
        limit: int | None = None,
        exclude_origin_cluster: str | None = None,
    ) -> list[Document]:
        rows = sorted(
            (
                d
                for d in self._table(collection).values()
                if d.sequence > since
                and not (exclude_origin_cluster and d.origin_cluster == exclude_origin_cluster)
            ),
            key=lambda d: d.sequence,
        )
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def query(
        self,
        collection: str,
        index_name: str,
        *,
        key: str | None = None,
        start_key: str | None = None,
        end_key: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Document]:
        def matches(d: Document) -> bool:
            value = d.index_values.get(index_name)
            if d.deleted or value is None:
                return False
            if key is not None:
                return value == key
            return start_key <= value <= end_key

        rows = sorted(
            (d for d in self._table(collection).values() if matches(d)),
            key=lambda d: (d.index_values[index_name], d.id),
        )
        return copy.deepcopy(rows[offset : offset + limit])


class FakeCollectionRepository:
    """In-memory collection catalog."""

    def __init__(self, storage: FakeStorage) -> None:
        self._storage = storage

    async def get_schema(self, name: str) -> CollectionSchema | None:
        return self._storage.schemas.get(name)

    async def create(self, schema: CollectionSchema) -> CollectionSchema:
        if schema.name in self._storage.schemas:
            raise CollectionExists(f"Collection already exists: {schema.name}")
        self._storage.schemas[schema.name] = schema
        self._storage.tables[schema.name] = {}
        return schema

    async def drop(self, name: str) -> bool:
        self._storage.tables.pop(name, None)
        return self._storage.schemas.pop(name, None) is not None

    async def list_names(self) -> list[str]:
        return list(self._storage.schemas)

    async def stats(self, name: str) -> dict[str, int]:
        rows = self._storage.tables[name].values()
        return {
            "doc_count": sum(1 for d in rows if not d.deleted),
            "doc_del_count": sum(1 for d in rows if d.deleted),
            "update_seq": max((d.sequence for d in rows), default=0),
            "size": 0,
        }


# --- Fake UnitOfWork ---


class FakeUnitOfWork:
    """In-memory Unit of Work over a shared FakeStorage."""

    def __init__(self, storage: FakeStorage) -> None:
        self._storage = storage
        self.documents = FakeDocumentRepository(storage)
        self.collections = FakeCollectionRepository(storage)

    async def commit(self) -> None:
        self._storage.commits += 1

    async def rollback(self) -> None:
        self._storage.rollbacks += 1


def make_uow_factory(storage: FakeStorage):
    """Factory mirroring the PostgreSQL one: commit on success, undo on error."""

    @asynccontextmanager
    async def _factory() -> AsyncIterator[FakeUnitOfWork]:
        state = storage.snapshot()
        uow = FakeUnitOfWork(storage)
        try:
            yield uow
            await uow.commit()
        except BaseException:
            storage.restore(state)
            await uow.rollback()
            raise

    return _factory


class Node:
    """One postdb node wired over in-memory storage."""

    def __init__(self, cluster_id: str = "", default_index_count: int = 3) -> None:
        self.storage = FakeStorage()
        self.uow_factory = make_uow_factory(self.storage)
        self.store = DocumentStore(self.uow_factory, cluster_id=cluster_id)
        self.feed = ChangeFeed(self.store, poll_interval=0.01)
        self.query = QueryEngine(self.store)
        self.create_collection = CreateCollectionUseCase(
            self.uow_factory, default_index_count=default_index_count
        )
        self.job_store = ReplicationJobStore(self.store, self.query, self.create_collection)

    def source(self, longpoll_timeout: float = 0.05) -> LocalChangeSource:
        return LocalChangeSource(self.feed, longpoll_timeout=longpoll_timeout)

    def engine(self, job, source_node: "Node", **kwargs: Any) -> ReplicationEngine:
        """Engine on this node pulling from ``source_node``; the descriptor's last
        path segment names the source collection."""

        def open_source(descriptor: str):
            return source_node.source(), descriptor.rstrip("/").rsplit("/", 1)[-1]

        return ReplicationEngine(
            job,
            job_store=self.job_store,
            document_store=self.store,
            create_collection=self.create_collection,
            open_source=open_source,
            **kwargs,
        )


# --- Fixtures ---


@pytest.fixture
def storage() -> FakeStorage:
    """Fresh in-memory storage for each test."""
    return FakeStorage()


@pytest.fixture
def uow_factory(storage: FakeStorage):
    """Factory returning async context manager with FakeUnitOfWork."""
    return make_uow_factory(storage)


@pytest.fixture
def document_store(uow_factory) -> DocumentStore:
    return DocumentStore(uow_factory, cluster_id="node-a")


@pytest.fixture
def create_collection(uow_factory) -> CreateCollectionUseCase:
    return CreateCollectionUseCase(unit_of_work_factory=uow_factory)


@pytest.fixture
def change_feed(document_store: DocumentStore) -> ChangeFeed:
    return ChangeFeed(document_store, poll_interval=0.01)


@pytest.fixture
def query_engine(document_store: DocumentStore) -> QueryEngine:
    return QueryEngine(document_store)


@pytest.fixture
def node_a() -> Node:
    return Node(cluster_id="node-a")


@pytest.fixture
def node_b() -> Node:
    return Node(cluster_id="node-b")
