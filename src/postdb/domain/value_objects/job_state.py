"""Replication job states."""

from enum import StrEnum


class JobState(StrEnum):
    """Lifecycle of a replication job: NEW -> RUNNING -> terminal."""

    NEW = "new"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.ERROR, JobState.CANCELLED)
