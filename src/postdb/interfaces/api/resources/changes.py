"""Changes resource: the wire protocol read by HTTP change sources."""

import falcon.asgi

from postdb.application.use_cases.changes.change_feed import ChangeFeed
from postdb.domain.entities import ChangeEntry
from postdb.domain.exceptions import ValidationError
from postdb.domain.value_objects import REVISION, validate_since


def change_to_wire(entry: ChangeEntry) -> dict:
    row = {
        "id": entry.id,
        "seq": entry.sequence,
        "deleted": entry.deleted,
        "clusterid": entry.origin_cluster,
        "changes": [{"rev": REVISION}],
    }
    if entry.body is not None:
        row["doc"] = entry.body
    return row


class ChangesResource:
    """GET /{db}/_changes?since=&limit=&include_docs=&exclude=&feed=&timeout=

    ``feed=longpoll`` waits up to ``timeout`` milliseconds for a change.
    """

    def __init__(self, change_feed: ChangeFeed, longpoll_timeout: float = 30.0) -> None:
        self._feed = change_feed
        self._longpoll_timeout = longpoll_timeout

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response, db: str) -> None:
        since = validate_since(req.get_param("since", default="0"))
        limit = req.get_param_as_int("limit")
        include_docs = req.get_param_as_bool("include_docs", default=False)
        exclude = req.get_param("exclude")
        feed = req.get_param("feed", default="normal")

        if feed == "longpoll":
            timeout_ms = req.get_param_as_int("timeout", min_value=0)
            timeout = self._longpoll_timeout if timeout_ms is None else timeout_ms / 1000
            entries = await self._feed.wait(
                db,
                since,
                limit=limit,
                include_body=include_docs,
                exclude_origin_cluster=exclude,
                timeout=timeout,
            )
        elif feed == "normal":
            entries = await self._feed.read(
                db,
                since,
                limit=limit,
                include_body=include_docs,
                exclude_origin_cluster=exclude,
            )
        else:
            raise ValidationError(f"Unsupported feed: {feed}")

        resp.media = {
            "results": [change_to_wire(entry) for entry in entries],
            "last_seq": entries[-1].sequence if entries else since,
        }
        resp.status = falcon.HTTP_200
