"""Document entity."""

from dataclasses import dataclass, field
from typing import Any

from postdb.domain.entities.collection_schema import CollectionSchema
from postdb.domain.value_objects.identifiers import REVISION, is_reserved


def strip_reserved(body: dict[str, Any]) -> dict[str, Any]:
    """Drop top-level ``_``-prefixed keys before storage."""
    return {k: v for k, v in body.items() if not is_reserved(k)}


@dataclass
class Document:
    """Current state of one id in a collection; a tombstone when ``deleted``."""

    id: str
    sequence: int
    body: dict[str, Any] = field(default_factory=dict)
    deleted: bool = False
    index_values: dict[str, str | None] = field(default_factory=dict)
    origin_cluster: str = ""

    def to_external(self, schema: CollectionSchema | None = None) -> dict[str, Any]:
        """CouchDB-style representation with ``_id``/``_rev`` and reserved index fields."""
        doc = dict(self.body)
        doc["_id"] = self.id
        doc["_rev"] = REVISION
        if self.deleted:
            doc["_deleted"] = True
            return doc
        if schema is not None:
            for index in schema.indexes:
                value = self.index_values.get(index.name)
                if index.reserved_source and value is not None:
                    doc[index.field] = value
        return doc
