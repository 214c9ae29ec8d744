"""Change source reading a collection of this node."""

from collections.abc import AsyncIterator

from postdb.application.use_cases.changes.change_feed import ChangeFeed
from postdb.domain.entities import ChangeEntry


class LocalChangeSource:
    """RemoteChangeSource over the in-process ChangeFeed."""

    def __init__(self, change_feed: ChangeFeed, longpoll_timeout: float = 30.0) -> None:
        self._feed = change_feed
        self._longpoll_timeout = longpoll_timeout

    async def open_feed(
        self,
        collection: str,
        since: str,
        *,
        include_body: bool = True,
        exclude_origin_cluster: str | None = None,
        continuous: bool = False,
        batch_size: int = 5000,
    ) -> AsyncIterator[list[ChangeEntry]]:
        cursor = since
        while True:
            if continuous:
                entries = await self._feed.wait(
                    collection,
                    cursor,
                    limit=batch_size,
                    include_body=include_body,
                    exclude_origin_cluster=exclude_origin_cluster,
                    timeout=self._longpoll_timeout,
                )
            else:
                entries = await self._feed.read(
                    collection,
                    cursor,
                    limit=batch_size,
                    include_body=include_body,
                    exclude_origin_cluster=exclude_origin_cluster,
                )
                if not entries:
                    return
            if entries:
                cursor = str(entries[-1].sequence)
            yield entries

    async def aclose(self) -> None:
        pass
