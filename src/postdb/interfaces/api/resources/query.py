"""Secondary-index query resource."""

import falcon.asgi

from postdb.application.use_cases.document.document_store import DocumentStore
from postdb.application.use_cases.query.query_engine import QueryEngine
from postdb.domain.exceptions import ValidationError


class QueryResource:
    """POST /{db}/_query with ``{index, key | startkey/endkey, limit, offset}``."""

    def __init__(self, query_engine: QueryEngine, document_store: DocumentStore) -> None:
        self._query = query_engine
        self._documents = document_store

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response, db: str) -> None:
        body = await req.get_media(default_when_empty=None)
        if not isinstance(body, dict):
            raise ValidationError("Invalid query")
        index = body.get("index")
        if not index or not isinstance(index, str):
            raise ValidationError('Missing Parameter "index"')

        documents = await self._query.query(
            db,
            index,
            key=body.get("key"),
            start_key=body.get("startkey"),
            end_key=body.get("endkey"),
            limit=body.get("limit", 100),
            offset=body.get("offset", 0),
        )
        schema = await self._documents.schema(db)
        resp.media = {"docs": [document.to_external(schema) for document in documents]}
        resp.status = falcon.HTTP_200
