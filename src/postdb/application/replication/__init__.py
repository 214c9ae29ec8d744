"""Collection replication: job store, per-job engine, scheduler."""

from postdb.application.replication.engine import ReplicationEngine
from postdb.application.replication.job_store import ReplicationJobStore
from postdb.application.replication.local_source import LocalChangeSource
from postdb.application.replication.scheduler import JobScheduler

__all__ = [
    "JobScheduler",
    "LocalChangeSource",
    "ReplicationEngine",
    "ReplicationJobStore",
]
