"""Application ports."""

from postdb.application.ports.remote_change_source import RemoteChangeSource
from postdb.application.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = [
    "RemoteChangeSource",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
