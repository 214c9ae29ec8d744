"""Query engine - point and range lookups over one declared index."""

from typing import Any

from postdb.application.use_cases.document.document_store import DocumentStore
from postdb.domain.entities import Document, to_index_value
from postdb.domain.exceptions import ValidationError
from postdb.domain.value_objects import MAX_KEY, validate_limit, validate_offset


def _as_key(value: Any, name: str) -> str:
    key = to_index_value(value)
    if key is None:
        raise ValidationError(f"Invalid {name} parameter")
    return key


class QueryEngine:
    """Index lookups; tombstones never match."""

    def __init__(self, document_store: DocumentStore) -> None:
        self._documents = document_store

    async def query(
        self,
        collection: str,
        index_name: str,
        *,
        key: Any = None,
        start_key: Any = None,
        end_key: Any = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Document]:
        """Documents whose ``index_name`` value equals ``key`` or lies in the range.

        Exactly one of ``key`` or ``start_key``/``end_key`` must be given. An
        omitted range bound defaults to ``""`` (low) or MAX_KEY (high).
        """
        has_range = start_key is not None or end_key is not None
        if key is None and not has_range:
            raise ValidationError("missing range/key")
        if key is not None and has_range:
            raise ValidationError("key and startkey/endkey are mutually exclusive")
        validate_limit(limit)
        validate_offset(offset)

        schema = await self._documents.schema(collection)
        if schema.get_index(index_name) is None:
            raise ValidationError(f"Unknown index {index_name!r} for {collection}")

        async with self._documents.transaction() as uow:
            if key is not None:
                return await uow.documents.query(
                    collection,
                    index_name,
                    key=_as_key(key, "key"),
                    limit=limit,
                    offset=offset,
                )
            return await uow.documents.query(
                collection,
                index_name,
                start_key=_as_key(start_key, "startkey") if start_key is not None else "",
                end_key=_as_key(end_key, "endkey") if end_key is not None else MAX_KEY,
                limit=limit,
                offset=offset,
            )
