"""Falcon error handlers mapping domain exceptions to HTTP responses."""

import logging

import falcon
import falcon.asgi

from postdb.domain.exceptions import (
    CollectionExists,
    NotFound,
    SourceUnavailable,
    TransientStorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _handler(status: str):
    async def handle(
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        ex: Exception,
        params: dict,
    ) -> None:
        resp.status = status
        resp.media = {"error": str(ex)}

    return handle


async def log_exception(
    req: falcon.asgi.Request,
    resp: falcon.asgi.Response,
    ex: Exception,
    params: dict,
) -> None:
    """Last-resort handler: log with traceback, answer 500."""
    logger.error("Unhandled error on %s %s", req.method, req.path, exc_info=ex)
    resp.status = falcon.HTTP_500
    resp.media = {"error": "Internal Server Error"}


def register_error_handlers(app: falcon.asgi.App) -> None:
    """Install handlers; Falcon picks the most specific matching class."""
    app.add_error_handler(Exception, log_exception)
    app.add_error_handler(ValidationError, _handler(falcon.HTTP_400))
    app.add_error_handler(NotFound, _handler(falcon.HTTP_404))
    app.add_error_handler(CollectionExists, _handler(falcon.HTTP_412))
    app.add_error_handler(TransientStorageError, _handler(falcon.HTTP_503))
    app.add_error_handler(SourceUnavailable, _handler(falcon.HTTP_503))
