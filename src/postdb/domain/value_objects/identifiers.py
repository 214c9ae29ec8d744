"""Document id and collection name rules."""

import re

from postdb.domain.exceptions import ValidationError

RESERVED_PREFIX = "_"

# Revision reported externally; there is one current body per id, no history.
REVISION = "0-1"

# Highest key used when the upper bound of a range is omitted.
MAX_KEY = "\ufff0"

JOB_COLLECTION = "_replicator"
CATALOG_TABLE = "_collections"
RESERVED_COLLECTIONS = frozenset({JOB_COLLECTION})

_TOKEN = re.compile(r"[A-Za-z0-9_-]+")
_INDEX_NAME = re.compile(r"[A-Za-z][A-Za-z0-9_]*")

MAX_ID_LENGTH = 255
MAX_COLLECTION_NAME_LENGTH = 63


def is_reserved(name: str) -> bool:
    """True for metadata names such as ``_design/x`` or ``_rev``."""
    return name.startswith(RESERVED_PREFIX)


def validate_id(doc_id: str) -> str:
    """Return ``doc_id`` or raise ValidationError."""
    if not isinstance(doc_id, str) or not doc_id:
        raise ValidationError("Missing document id")
    if len(doc_id) > MAX_ID_LENGTH or not _TOKEN.fullmatch(doc_id) or is_reserved(doc_id):
        raise ValidationError(f"Invalid document id: {doc_id!r}")
    return doc_id


def validate_collection_name(name: str) -> str:
    """Return ``name`` or raise ValidationError. Reserved collections are allowed."""
    if name in RESERVED_COLLECTIONS:
        return name
    if (
        not isinstance(name, str)
        or not name
        or len(name) > MAX_COLLECTION_NAME_LENGTH
        or not _TOKEN.fullmatch(name)
        or is_reserved(name)
    ):
        raise ValidationError(f"Invalid collection name: {name!r}")
    return name


def validate_index_name(name: str) -> str:
    if not isinstance(name, str) or len(name) > 63 or not _INDEX_NAME.fullmatch(name):
        raise ValidationError(f"Invalid index name: {name!r}")
    return name
