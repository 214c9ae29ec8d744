"""Domain value objects."""

from postdb.domain.value_objects.identifiers import (
    JOB_COLLECTION,
    MAX_KEY,
    RESERVED_PREFIX,
    REVISION,
    is_reserved,
    validate_collection_name,
    validate_id,
    validate_index_name,
)
from postdb.domain.value_objects.job_state import JobState
from postdb.domain.value_objects.paging import (
    validate_limit,
    validate_offset,
    validate_since,
)

__all__ = [
    "JOB_COLLECTION",
    "JobState",
    "MAX_KEY",
    "RESERVED_PREFIX",
    "REVISION",
    "is_reserved",
    "validate_collection_name",
    "validate_id",
    "validate_index_name",
    "validate_limit",
    "validate_offset",
    "validate_since",
]
