"""Bulk docs resource."""

from dataclasses import asdict

import falcon.asgi

from postdb.application.use_cases.document.bulk_docs import BulkDocsUseCase
from postdb.domain.exceptions import ValidationError


class BulkDocsResource:
    """POST /{db}/_bulk_docs with ``{"docs": [...]}``."""

    def __init__(self, bulk_docs: BulkDocsUseCase) -> None:
        self._bulk_docs = bulk_docs

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response, db: str) -> None:
        body = await req.get_media(default_when_empty=None)
        docs = body.get("docs") if isinstance(body, dict) else None
        if not isinstance(docs, list) or not docs:
            raise ValidationError("Invalid docs parameter")
        results = await self._bulk_docs.execute(db, docs)
        resp.media = [
            {k: v for k, v in asdict(result).items() if v is not None} for result in results
        ]
        resp.status = falcon.HTTP_201
