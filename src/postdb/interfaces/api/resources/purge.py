"""Purge resource: permanent removal without a tombstone."""

import falcon.asgi

from postdb.application.use_cases.document.document_store import DocumentStore
from postdb.domain.exceptions import ValidationError
from postdb.domain.value_objects import REVISION


class PurgeResource:
    """POST /{db}/_purge with ``{doc_id: [revs], ...}``; revisions are ignored."""

    def __init__(self, document_store: DocumentStore) -> None:
        self._documents = document_store

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response, db: str) -> None:
        body = await req.get_media(default_when_empty=None)
        if not isinstance(body, dict) or not body:
            raise ValidationError("Invalid purge request")
        purged = await self._documents.purge(db, list(body))
        resp.media = {"purge_seq": None, "purged": {doc_id: [REVISION] for doc_id in purged}}
        resp.status = falcon.HTTP_201
