"""Domain exceptions."""


class PostDBError(Exception):
    """Base exception for postdb."""

    pass


class ValidationError(PostDBError):
    """Validation failed for input data (names, ids, query parameters)."""

    pass


class NotFound(PostDBError):
    """Requested resource was not found."""

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"{kind} not found: {key}")
        self.kind = kind
        self.key = key


class CollectionExists(PostDBError):
    """Collection with the same name already exists."""

    pass


class TransientStorageError(PostDBError):
    """Connection or transaction failure in the storage layer."""

    pass


class SourceUnavailable(PostDBError):
    """Remote change feed could not be read."""

    pass
