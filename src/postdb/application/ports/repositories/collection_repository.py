"""Collection repository port."""

from typing import Protocol

from postdb.domain.entities import CollectionSchema


class CollectionRepository(Protocol):
    """Port for the collection catalog and per-collection storage."""

    async def get_schema(self, name: str) -> CollectionSchema | None: ...

    async def create(self, schema: CollectionSchema) -> CollectionSchema: ...

    async def drop(self, name: str) -> bool: ...

    async def list_names(self) -> list[str]: ...

    async def stats(self, name: str) -> dict[str, int]: ...
