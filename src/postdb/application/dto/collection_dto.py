"""Collection DTOs."""

from dataclasses import dataclass, field


@dataclass
class CollectionInfo:
    """Collection summary for the info endpoint."""

    name: str
    doc_count: int
    doc_del_count: int
    update_seq: int
    size: int
    indexes: dict[str, str] = field(default_factory=dict)
