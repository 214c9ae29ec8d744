"""Replication job entity."""

import hashlib
from dataclasses import dataclass
from typing import Any

from postdb.domain.value_objects.job_state import JobState


@dataclass
class ReplicationJob:
    """Replication of ``source`` into local collection ``target``.

    ``cursor`` is the last applied source sequence and is unrelated to the
    sequence of the job document itself.
    """

    id: str
    source: str
    target: str
    continuous: bool = False
    create_target: bool = False
    state: JobState = JobState.NEW
    cursor: str = "0"
    doc_count: int = 0
    exclude: str = ""

    @staticmethod
    def make_id(source: str, target: str) -> str:
        """Deterministic id so resubmitting the same pair yields the same job."""
        return hashlib.sha256(f"{source}\n{target}".encode("utf-8")).hexdigest()[:32]

    @property
    def short_id(self) -> str:
        return self.id[:6] + ".."

    def to_body(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "continuous": self.continuous,
            "create_target": self.create_target,
            "state": self.state.value,
            "cursor": self.cursor,
            "doc_count": self.doc_count,
            "exclude": self.exclude,
        }

    @classmethod
    def from_body(cls, job_id: str, body: dict[str, Any]) -> "ReplicationJob":
        """Build from a stored job document; missing fields take defaults.

        Raises ValueError for fields of the wrong type or value.
        """
        try:
            return cls(
                id=job_id,
                source=str(body.get("source", "")),
                target=str(body.get("target", "")),
                continuous=bool(body.get("continuous", False)),
                create_target=bool(body.get("create_target", False)),
                state=JobState(body.get("state") or JobState.NEW),
                cursor=str(body.get("cursor") or "0"),
                doc_count=int(body.get("doc_count") or 0),
                exclude=str(body.get("exclude") or ""),
            )
        except TypeError as e:
            raise ValueError(str(e)) from e
