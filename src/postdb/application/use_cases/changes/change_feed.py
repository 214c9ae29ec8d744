"""Change feed - ordered, resumable read of a collection's mutations."""

import asyncio

from postdb.application.use_cases.document.document_store import DocumentStore
from postdb.domain.entities import ChangeEntry
from postdb.domain.value_objects import validate_limit, validate_since


class ChangeFeed:
    """Read view over DocumentStore ordered by sequence.

    Callers page through the feed by passing the last sequence they saw as
    the next ``since``. There is no push mode; ``wait`` polls.
    """

    def __init__(self, document_store: DocumentStore, poll_interval: float = 1.0) -> None:
        self._documents = document_store
        self._poll_interval = poll_interval

    async def read(
        self,
        collection: str,
        since: int | str = 0,
        limit: int | None = None,
        include_body: bool = False,
        exclude_origin_cluster: str | None = None,
    ) -> list[ChangeEntry]:
        """Entries with ``sequence > since`` in ascending order, at most ``limit``."""
        since_seq = validate_since(since)
        validate_limit(limit, required=False)
        schema = await self._documents.schema(collection)
        async with self._documents.transaction() as uow:
            rows = await uow.documents.changes(
                collection,
                since=since_seq,
                limit=limit,
                exclude_origin_cluster=exclude_origin_cluster or None,
            )
        return [
            ChangeEntry(
                id=row.id,
                sequence=row.sequence,
                deleted=row.deleted,
                origin_cluster=row.origin_cluster,
                body=row.to_external(schema) if include_body else None,
            )
            for row in rows
        ]

    async def wait(
        self,
        collection: str,
        since: int | str = 0,
        limit: int | None = None,
        include_body: bool = False,
        exclude_origin_cluster: str | None = None,
        timeout: float = 30.0,
    ) -> list[ChangeEntry]:
        """Long-poll: return as soon as entries exist, or [] after ``timeout`` seconds."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            entries = await self.read(
                collection,
                since,
                limit=limit,
                include_body=include_body,
                exclude_origin_cluster=exclude_origin_cluster,
            )
            if entries:
                return entries
            remaining = deadline - loop.time()
            if remaining <= 0:
                return []
            await asyncio.sleep(min(self._poll_interval, remaining))
