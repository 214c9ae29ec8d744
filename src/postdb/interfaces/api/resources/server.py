"""Server-level endpoints: welcome, database list, uuids."""

from uuid import uuid4

import falcon.asgi

from postdb import __version__
from postdb.application.use_cases.collection.describe_collection import ListCollectionsUseCase
from postdb.domain.exceptions import ValidationError
from postdb.domain.value_objects import is_reserved

MAX_UUIDS = 100


class ServerInfoResource:
    """GET / - server information."""

    def __init__(self, cluster_id: str = "") -> None:
        self._cluster_id = cluster_id

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        resp.media = {
            "postdb": "Welcome",
            "version": __version__,
            "cluster_id": self._cluster_id,
        }
        resp.status = falcon.HTTP_200


class AllDbsResource:
    """GET /_all_dbs - user collections (reserved ones are hidden)."""

    def __init__(self, list_collections: ListCollectionsUseCase) -> None:
        self._list_collections = list_collections

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        names = await self._list_collections.execute()
        resp.media = [name for name in names if not is_reserved(name)]
        resp.status = falcon.HTTP_200


class UuidsResource:
    """GET /_uuids?count=N - fresh document ids."""

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        count = req.get_param_as_int("count", default=1)
        if count < 1 or count > MAX_UUIDS:
            raise ValidationError("invalid count parameter")
        resp.media = {"uuids": [uuid4().hex for _ in range(count)]}
        resp.status = falcon.HTTP_200
