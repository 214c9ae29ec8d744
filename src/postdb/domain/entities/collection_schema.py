"""Collection schema - declared secondary indexes."""

from dataclasses import dataclass
from typing import Any

from postdb.domain.exceptions import ValidationError
from postdb.domain.value_objects.identifiers import is_reserved, validate_index_name


def to_index_value(value: Any) -> str | None:
    """Scalars become strings; objects, arrays and null are not indexable."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


@dataclass(frozen=True)
class IndexDefinition:
    """Index ``name`` projects the body field at dotted path ``field``."""

    name: str
    field: str

    def extract(self, body: dict[str, Any]) -> str | None:
        value: Any = body
        for part in self.field.split("."):
            if not isinstance(value, dict) or part not in value:
                return None
            value = value[part]
        return to_index_value(value)

    @property
    def reserved_source(self) -> bool:
        """Source field is a top-level reserved key, stripped from stored bodies."""
        return "." not in self.field and is_reserved(self.field)


@dataclass(frozen=True)
class CollectionSchema:
    """Indexes of one collection, fixed at creation time."""

    name: str
    indexes: tuple[IndexDefinition, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for index in self.indexes:
            validate_index_name(index.name)
            if not index.field:
                raise ValidationError(f"Index {index.name!r} has no source field")
            if index.name in seen:
                raise ValidationError(f"Duplicate index name: {index.name!r}")
            seen.add(index.name)

    @classmethod
    def from_mapping(cls, name: str, indexes: dict[str, str]) -> "CollectionSchema":
        """Build from ``{index_name: field_path}``."""
        return cls(
            name=name,
            indexes=tuple(IndexDefinition(name=k, field=v) for k, v in indexes.items()),
        )

    @classmethod
    def default(cls, name: str, count: int = 3) -> "CollectionSchema":
        """Legacy layout: ``i1..iN`` sourced from reserved ``_i1.._iN`` body keys."""
        return cls(
            name=name,
            indexes=tuple(
                IndexDefinition(name=f"i{n}", field=f"_i{n}") for n in range(1, count + 1)
            ),
        )

    def to_mapping(self) -> dict[str, str]:
        return {index.name: index.field for index in self.indexes}

    def get_index(self, index_name: str) -> IndexDefinition | None:
        for index in self.indexes:
            if index.name == index_name:
                return index
        return None

    def project(self, body: dict[str, Any]) -> dict[str, str | None]:
        """Compute index values for a document body."""
        return {index.name: index.extract(body) for index in self.indexes}
