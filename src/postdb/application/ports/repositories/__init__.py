"""Repository ports."""

from postdb.application.ports.repositories.collection_repository import (
    CollectionRepository,
)
from postdb.application.ports.repositories.document_repository import DocumentRepository

__all__ = [
    "CollectionRepository",
    "DocumentRepository",
]
