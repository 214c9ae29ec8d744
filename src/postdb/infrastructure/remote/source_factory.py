"""Resolve replication source descriptors to change sources."""

from urllib.parse import unquote, urlsplit

from postdb.application.ports import RemoteChangeSource
from postdb.application.replication.local_source import LocalChangeSource
from postdb.application.use_cases.changes.change_feed import ChangeFeed
from postdb.domain.exceptions import ValidationError
from postdb.domain.value_objects import validate_collection_name
from postdb.infrastructure.remote.http_change_source import HttpChangeSource


def create_source_opener(
    change_feed: ChangeFeed,
    *,
    http_timeout: float = 60.0,
    longpoll_timeout: float = 30.0,
):
    """Return ``open_source(descriptor) -> (source, collection)``.

    ``http(s)://[user:pass@]host[:port][/prefix]/collection`` reads a remote
    node over HTTP; a bare collection name reads a collection of this node.
    """

    def open_source(descriptor: str) -> tuple[RemoteChangeSource, str]:
        parts = urlsplit(descriptor)
        if parts.scheme in ("http", "https"):
            segments = [s for s in parts.path.split("/") if s]
            if not parts.hostname or not segments:
                raise ValidationError(f"Invalid source URL: {descriptor}")
            collection = unquote(segments[-1])
            netloc = parts.hostname
            if parts.port:
                netloc = f"{netloc}:{parts.port}"
            prefix = "/".join(segments[:-1])
            base_url = f"{parts.scheme}://{netloc}/{prefix}".rstrip("/")
            auth = None
            if parts.username:
                auth = (unquote(parts.username), unquote(parts.password or ""))
            source = HttpChangeSource(
                base_url,
                auth=auth,
                timeout=http_timeout,
                longpoll_timeout=longpoll_timeout,
            )
            return source, collection
        if parts.scheme:
            raise ValidationError(f"Unsupported source: {descriptor}")
        return (
            LocalChangeSource(change_feed, longpoll_timeout=longpoll_timeout),
            validate_collection_name(descriptor),
        )

    return open_source
