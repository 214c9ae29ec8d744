"""Document store - per-collection CRUD with sequence assignment."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from postdb.application.ports import UnitOfWork
from postdb.domain.entities import CollectionSchema, Document, strip_reserved
from postdb.domain.exceptions import NotFound, ValidationError
from postdb.domain.value_objects import (
    MAX_KEY,
    validate_collection_name,
    validate_id,
    validate_limit,
    validate_offset,
)


class DocumentStore:
    """Single source of truth for documents.

    Every operation runs in its own unit of work unless ``uow`` is passed, in
    which case it joins the caller's transaction. Writes made without an
    explicit ``origin_cluster`` are tagged with this node's cluster id.
    """

    def __init__(self, unit_of_work_factory: type, cluster_id: str = "") -> None:
        self._uow_factory = unit_of_work_factory
        self._cluster_id = cluster_id
        self._schemas: dict[str, CollectionSchema] = {}

    @property
    def cluster_id(self) -> str:
        return self._cluster_id

    def transaction(self):
        """Open a unit of work that several operations can share via ``uow=``."""
        return self._uow_factory()

    @asynccontextmanager
    async def _scope(self, uow: UnitOfWork | None) -> AsyncIterator[UnitOfWork]:
        if uow is not None:
            yield uow
            return
        async with self._uow_factory() as own:
            yield own

    async def schema(self, collection: str, *, uow: UnitOfWork | None = None) -> CollectionSchema:
        """Declared indexes of ``collection``; NotFound if it does not exist."""
        validate_collection_name(collection)
        cached = self._schemas.get(collection)
        if cached is not None:
            return cached
        async with self._scope(uow) as u:
            schema = await u.collections.get_schema(collection)
        if schema is None:
            raise NotFound("Collection", collection)
        self._schemas[collection] = schema
        return schema

    def forget_schema(self, collection: str) -> None:
        self._schemas.pop(collection, None)

    async def put(
        self,
        collection: str,
        doc_id: str,
        body: dict[str, Any],
        origin_cluster: str | None = None,
        *,
        uow: UnitOfWork | None = None,
    ) -> int:
        """Insert or replace ``doc_id``; returns the newly assigned sequence."""
        validate_collection_name(collection)
        validate_id(doc_id)
        if not isinstance(body, dict):
            raise ValidationError("Document body must be a JSON object")
        origin = self._cluster_id if origin_cluster is None else origin_cluster
        async with self._scope(uow) as u:
            schema = await self.schema(collection, uow=u)
            return await u.documents.upsert(
                collection,
                doc_id,
                strip_reserved(body),
                schema.project(body),
                origin,
            )

    async def delete(
        self,
        collection: str,
        doc_id: str,
        origin_cluster: str | None = None,
        *,
        uow: UnitOfWork | None = None,
        missing_ok: bool = False,
    ) -> int | None:
        """Tombstone ``doc_id``; returns the new sequence.

        Deleting a tombstone advances its sequence again. An id that never
        existed raises NotFound, or returns None when ``missing_ok``.
        """
        validate_collection_name(collection)
        validate_id(doc_id)
        origin = self._cluster_id if origin_cluster is None else origin_cluster
        async with self._scope(uow) as u:
            await self.schema(collection, uow=u)
            sequence = await u.documents.tombstone(collection, doc_id, origin)
        if sequence is None and not missing_ok:
            raise NotFound("Document", doc_id)
        return sequence

    async def get(
        self,
        collection: str,
        doc_id: str,
        *,
        uow: UnitOfWork | None = None,
        lock: bool = False,
    ) -> Document:
        """Current live document; NotFound if absent or tombstoned."""
        validate_collection_name(collection)
        validate_id(doc_id)
        async with self._scope(uow) as u:
            await self.schema(collection, uow=u)
            document = await u.documents.get(collection, doc_id, for_update=lock)
        if document is None or document.deleted:
            raise NotFound("Document", doc_id)
        return document

    async def purge(self, collection: str, doc_ids: list[str]) -> list[str]:
        """Hard-delete ``doc_ids`` in one transaction; returns the ids removed."""
        validate_collection_name(collection)
        for doc_id in doc_ids:
            validate_id(doc_id)
        async with self._uow_factory() as uow:
            await self.schema(collection, uow=uow)
            return await uow.documents.purge(collection, list(dict.fromkeys(doc_ids)))

    async def list(
        self,
        collection: str,
        *,
        start_key: str | None = None,
        end_key: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Document]:
        """Live documents ordered by id within inclusive ``[start_key, end_key]``."""
        validate_collection_name(collection)
        validate_limit(limit)
        validate_offset(offset)
        async with self._uow_factory() as uow:
            await self.schema(collection, uow=uow)
            return await uow.documents.all_docs(
                collection,
                start_key=start_key if start_key is not None else "",
                end_key=end_key if end_key is not None else MAX_KEY,
                limit=limit,
                offset=offset,
            )
