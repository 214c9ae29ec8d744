"""Single document resource."""

import falcon.asgi

from postdb.application.use_cases.document.document_store import DocumentStore
from postdb.domain.exceptions import ValidationError
from postdb.domain.value_objects import REVISION


class DocumentResource:
    """GET/PUT/DELETE /{db}/{doc_id}."""

    def __init__(self, document_store: DocumentStore) -> None:
        self._documents = document_store

    async def on_get(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, db: str, doc_id: str
    ) -> None:
        document = await self._documents.get(db, doc_id)
        schema = await self._documents.schema(db)
        resp.media = document.to_external(schema)
        resp.status = falcon.HTTP_200

    async def on_put(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, db: str, doc_id: str
    ) -> None:
        body = await req.get_media(default_when_empty=None)
        if not isinstance(body, dict):
            raise ValidationError("Invalid JSON")
        await self._documents.put(db, doc_id, body)
        resp.media = {"ok": True, "id": doc_id, "rev": REVISION}
        resp.status = falcon.HTTP_201

    async def on_delete(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, db: str, doc_id: str
    ) -> None:
        await self._documents.delete(db, doc_id)
        resp.media = {"ok": True, "id": doc_id, "rev": REVISION}
        resp.status = falcon.HTTP_200
