"""Domain entities."""

from postdb.domain.entities.change_entry import ChangeEntry
from postdb.domain.entities.collection_schema import (
    CollectionSchema,
    IndexDefinition,
    to_index_value,
)
from postdb.domain.entities.document import Document, strip_reserved
from postdb.domain.entities.replication_job import ReplicationJob

__all__ = [
    "ChangeEntry",
    "CollectionSchema",
    "Document",
    "IndexDefinition",
    "ReplicationJob",
    "strip_reserved",
    "to_index_value",
]
