"""Bulk write DTOs."""

from dataclasses import dataclass


@dataclass
class BulkItemResult:
    """Outcome of one document in a bulk request."""

    ok: bool
    id: str | None = None
    rev: str | None = None
    error: str | None = None
