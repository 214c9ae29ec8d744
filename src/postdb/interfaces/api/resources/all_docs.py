"""All-docs resource: documents ordered by id."""

import json

import falcon.asgi

from postdb.application.use_cases.document.document_store import DocumentStore
from postdb.domain.exceptions import ValidationError
from postdb.domain.value_objects import REVISION


def json_param(req: falcon.asgi.Request, name: str) -> object:
    """Query parameter given as JSON (``startkey="a"``); bare strings are accepted too."""
    raw = req.get_param(name)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def int_param(req: falcon.asgi.Request, name: str, default: int | None) -> int | None:
    value = json_param(req, name)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Invalid {name} parameter")
    return value


def str_param(req: falcon.asgi.Request, name: str) -> str | None:
    value = json_param(req, name)
    if value is None:
        return None
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ValidationError(f"Invalid {name} parameter")
    return str(value)


class AllDocsResource:
    """GET /{db}/_all_docs?startkey=&endkey=&limit=&offset=&include_docs="""

    def __init__(self, document_store: DocumentStore) -> None:
        self._documents = document_store

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response, db: str) -> None:
        include_docs = req.get_param_as_bool("include_docs", default=False)
        offset = int_param(req, "offset", 0)
        documents = await self._documents.list(
            db,
            start_key=str_param(req, "startkey"),
            end_key=str_param(req, "endkey"),
            limit=int_param(req, "limit", 100),
            offset=offset,
        )
        schema = await self._documents.schema(db) if include_docs else None
        rows = []
        for document in documents:
            row = {"id": document.id, "key": document.id, "value": {"rev": REVISION}}
            if include_docs:
                row["doc"] = document.to_external(schema)
            rows.append(row)
        resp.media = {"offset": offset, "rows": rows}
        resp.status = falcon.HTTP_200
