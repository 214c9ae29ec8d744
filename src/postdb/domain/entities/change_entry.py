"""Change feed entry."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ChangeEntry:
    """One mutation in a collection's change feed."""

    id: str
    sequence: int
    deleted: bool = False
    origin_cluster: str = ""
    body: dict[str, Any] | None = None
