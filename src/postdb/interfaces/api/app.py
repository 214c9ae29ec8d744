"""Falcon ASGI application."""

import falcon.asgi
from falcon.asgi import App

from postdb.interfaces.api.errors import register_error_handlers
from postdb.interfaces.api.resources.all_docs import AllDocsResource
from postdb.interfaces.api.resources.bulk_docs import BulkDocsResource
from postdb.interfaces.api.resources.changes import ChangesResource
from postdb.interfaces.api.resources.databases import DatabaseResource
from postdb.interfaces.api.resources.documents import DocumentResource
from postdb.interfaces.api.resources.health import HealthResource
from postdb.interfaces.api.resources.purge import PurgeResource
from postdb.interfaces.api.resources.query import QueryResource
from postdb.interfaces.api.resources.replicate import ReplicateResource
from postdb.interfaces.api.resources.server import (
    AllDbsResource,
    ServerInfoResource,
    UuidsResource,
)


def create_app(
    *,
    server_info_resource: ServerInfoResource,
    health_resource: HealthResource,
    all_dbs_resource: AllDbsResource,
    uuids_resource: UuidsResource,
    database_resource: DatabaseResource,
    document_resource: DocumentResource,
    all_docs_resource: AllDocsResource,
    bulk_docs_resource: BulkDocsResource,
    changes_resource: ChangesResource,
    query_resource: QueryResource,
    purge_resource: PurgeResource,
    replicate_resource: ReplicateResource,
    middleware: list | None = None,
) -> App:
    """Create Falcon ASGI app with routes and error handlers."""
    app = falcon.asgi.App(middleware=middleware or [])
    register_error_handlers(app)
    app.add_route("/", server_info_resource)
    app.add_route("/v1/health", health_resource)
    app.add_route("/v1/health/ready", health_resource, suffix="ready")
    app.add_route("/_all_dbs", all_dbs_resource)
    app.add_route("/_uuids", uuids_resource)
    app.add_route("/_replicate", replicate_resource)
    app.add_route("/_replicate/{job_id}", replicate_resource, suffix="job")
    app.add_route("/{db}", database_resource)
    app.add_route("/{db}/_all_docs", all_docs_resource)
    app.add_route("/{db}/_bulk_docs", bulk_docs_resource)
    app.add_route("/{db}/_changes", changes_resource)
    app.add_route("/{db}/_query", query_resource)
    app.add_route("/{db}/_purge", purge_resource)
    app.add_route("/{db}/{doc_id}", document_resource)
    return app
