"""Remote change source port."""

from collections.abc import AsyncIterator
from typing import Protocol

from postdb.domain.entities import ChangeEntry


class RemoteChangeSource(Protocol):
    """Ordered change stream of a (possibly remote) collection.

    ``open_feed`` yields batches in ascending sequence order. A non-continuous
    feed ends once caught up. A continuous feed never ends; it yields an empty
    batch whenever a long-poll round returns nothing.
    """

    def open_feed(
        self,
        collection: str,
        since: str,
        *,
        include_body: bool = True,
        exclude_origin_cluster: str | None = None,
        continuous: bool = False,
        batch_size: int = 5000,
    ) -> AsyncIterator[list[ChangeEntry]]: ...

    async def aclose(self) -> None: ...
