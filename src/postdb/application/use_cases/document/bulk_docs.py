"""Bulk docs use case - independent per-item writes."""

from typing import Any
from uuid import uuid4

from postdb.application.dto.bulk_dto import BulkItemResult
from postdb.application.use_cases.document.document_store import DocumentStore
from postdb.domain.exceptions import PostDBError
from postdb.domain.value_objects import REVISION


class BulkDocsUseCase:
    """Write many documents, each in its own transaction.

    Unlike a replication batch this is not all-or-nothing: a failing item is
    reported in its result slot and the remaining items are still written.
    """

    def __init__(self, document_store: DocumentStore) -> None:
        self._documents = document_store

    async def execute(self, collection: str, docs: list[Any]) -> list[BulkItemResult]:
        """Apply ``docs`` in order. ``_deleted: true`` entries are tombstoned."""
        # Unknown collection fails the whole request.
        await self._documents.schema(collection)
        results: list[BulkItemResult] = []
        for doc in docs:
            if not isinstance(doc, dict):
                results.append(BulkItemResult(ok=False, error="Document must be a JSON object"))
                continue
            if doc.get("_deleted"):
                doc_id = doc.get("_id")
                if not doc_id:
                    results.append(BulkItemResult(ok=False, error="missing or invalid _id"))
                    continue
            else:
                doc_id = doc.get("_id") or uuid4().hex
            try:
                if doc.get("_deleted"):
                    await self._documents.delete(collection, doc_id)
                else:
                    await self._documents.put(collection, doc_id, doc)
            except PostDBError as e:
                results.append(BulkItemResult(ok=False, id=str(doc_id), error=str(e)))
                continue
            results.append(BulkItemResult(ok=True, id=doc_id, rev=REVISION))
        return results
