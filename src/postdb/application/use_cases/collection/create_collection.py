"""Create collection use case."""

from postdb.domain.entities import CollectionSchema
from postdb.domain.exceptions import CollectionExists, ValidationError
from postdb.domain.value_objects import validate_collection_name


class CreateCollectionUseCase:
    """Create a collection with its index schema fixed at creation time."""

    def __init__(self, unit_of_work_factory: type, default_index_count: int = 3) -> None:
        self._uow_factory = unit_of_work_factory
        self._default_index_count = default_index_count

    async def execute(
        self, name: str, indexes: dict[str, str] | None = None
    ) -> CollectionSchema:
        """Create collection ``name``.

        ``indexes`` maps index name to a dotted body field path. Without it the
        collection gets the default ``i1..iN`` indexes over ``_i1.._iN``.
        """
        validate_collection_name(name)
        if indexes is None:
            schema = CollectionSchema.default(name, self._default_index_count)
        else:
            if not isinstance(indexes, dict) or not all(
                isinstance(v, str) for v in indexes.values()
            ):
                raise ValidationError("indexes must map index names to field paths")
            schema = CollectionSchema.from_mapping(name, indexes)

        async with self._uow_factory() as uow:
            if await uow.collections.get_schema(name) is not None:
                raise CollectionExists(f"Collection already exists: {name}")
            return await uow.collections.create(schema)
