"""Document repository port."""

from typing import Any, Protocol

from postdb.domain.entities import Document


class DocumentRepository(Protocol):
    """Port for per-collection document rows.

    Every mutation assigns ``max(sequence) + 1`` within the collection.
    """

    async def upsert(
        self,
        collection: str,
        doc_id: str,
        body: dict[str, Any],
        index_values: dict[str, str | None],
        origin_cluster: str,
    ) -> int: ...

    async def tombstone(
        self, collection: str, doc_id: str, origin_cluster: str
    ) -> int | None: ...

    async def get(
        self, collection: str, doc_id: str, for_update: bool = False
    ) -> Document | None: ...

    async def purge(self, collection: str, doc_ids: list[str]) -> list[str]: ...

    async def all_docs(
        self,
        collection: str,
        *,
        start_key: str,
        end_key: str,
        limit: int,
        offset: int = 0,
    ) -> list[Document]: ...

    async def changes(
        self,
        collection: str,
        *,
        since: int,
        limit: int | None = None,
        exclude_origin_cluster: str | None = None,
    ) -> list[Document]: ...

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
    ) -> list[Document]: ...
