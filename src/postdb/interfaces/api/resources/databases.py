"""Collection (database) resource: create, info, drop, and POST a new document."""

from dataclasses import asdict
from uuid import uuid4

import falcon.asgi

from postdb.application.use_cases.collection.create_collection import CreateCollectionUseCase
from postdb.application.use_cases.collection.describe_collection import DescribeCollectionUseCase
from postdb.application.use_cases.collection.drop_collection import DropCollectionUseCase
from postdb.application.use_cases.document.document_store import DocumentStore
from postdb.domain.exceptions import ValidationError
from postdb.domain.value_objects import REVISION


class DatabaseResource:
    """PUT/GET/DELETE/POST /{db}."""

    def __init__(
        self,
        create_collection: CreateCollectionUseCase,
        describe_collection: DescribeCollectionUseCase,
        drop_collection: DropCollectionUseCase,
        document_store: DocumentStore,
    ) -> None:
        self._create = create_collection
        self._describe = describe_collection
        self._drop = drop_collection
        self._documents = document_store

    async def on_put(self, req: falcon.asgi.Request, resp: falcon.asgi.Response, db: str) -> None:
        """Create a collection. Optional body: ``{"indexes": {name: field}}``."""
        body = await req.get_media(default_when_empty=None) or {}
        if not isinstance(body, dict):
            raise ValidationError("Invalid JSON")
        schema = await self._create.execute(db, body.get("indexes"))
        resp.media = {"ok": True, "indexes": schema.to_mapping()}
        resp.status = falcon.HTTP_201

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response, db: str) -> None:
        info = await self._describe.execute(db)
        data = asdict(info)
        resp.media = {
            "db_name": data.pop("name"),
            "instance_start_time": "0",
            "sizes": {"file": info.size, "active": info.doc_count},
            **data,
        }
        resp.status = falcon.HTTP_200

    async def on_delete(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, db: str
    ) -> None:
        await self._drop.execute(db)
        resp.media = {"ok": True}
        resp.status = falcon.HTTP_200

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response, db: str) -> None:
        """Store a document under ``_id`` or a generated id."""
        body = await req.get_media(default_when_empty=None)
        if not isinstance(body, dict):
            raise ValidationError("Invalid JSON")
        doc_id = body.get("_id") or uuid4().hex
        await self._documents.put(db, doc_id, body)
        resp.media = {"ok": True, "id": doc_id, "rev": REVISION}
        resp.status = falcon.HTTP_201
