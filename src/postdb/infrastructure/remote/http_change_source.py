"""HTTP change source - reads another node's ``/{db}/_changes`` endpoint."""

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from postdb.domain.entities import ChangeEntry
from postdb.domain.exceptions import SourceUnavailable

logger = logging.getLogger(__name__)


def parse_change(row: dict[str, Any]) -> ChangeEntry:
    """Build a ChangeEntry from one ``results`` row of the wire format."""
    try:
        return ChangeEntry(
            id=str(row["id"]),
            sequence=int(row["seq"]),
            deleted=bool(row.get("deleted", False)),
            origin_cluster=str(row.get("clusterid") or ""),
            body=row.get("doc"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise SourceUnavailable(f"Malformed change row: {row!r}") from e


class HttpChangeSource:
    """RemoteChangeSource speaking the ``_changes`` wire protocol over HTTP.

    One-off feeds use ``feed=normal`` and stop at the first empty page.
    Continuous feeds use ``feed=longpoll`` and yield an empty batch whenever
    the server's long-poll times out.
    """

    def __init__(
        self,
        base_url: str,
        *,
        auth: tuple[str, str] | None = None,
        timeout: float = 60.0,
        longpoll_timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            auth=auth,
            timeout=timeout,
        )
        self._longpoll_timeout = longpoll_timeout

    async def _fetch(self, collection: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.get(f"/{collection}/_changes", params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SourceUnavailable(f"Could not read changes of {collection}: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise SourceUnavailable(f"Unexpected _changes response for {collection}")
        return data

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
            params: dict[str, Any] = {
                "since": cursor,
                "limit": batch_size,
                "include_docs": "true" if include_body else "false",
            }
            if exclude_origin_cluster:
                params["exclude"] = exclude_origin_cluster
            if continuous:
                params["feed"] = "longpoll"
                params["timeout"] = int(self._longpoll_timeout * 1000)
            data = await self._fetch(collection, params)
            entries = [parse_change(row) for row in data["results"]]
            if entries:
                cursor = str(entries[-1].sequence)
            elif not continuous:
                return
            logger.debug(
                "Fetched %d changes of %s since %s", len(entries), collection, params["since"]
            )
            yield entries

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
