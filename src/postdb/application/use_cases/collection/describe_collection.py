"""Collection info and listing use cases."""

from postdb.application.dto.collection_dto import CollectionInfo
from postdb.domain.exceptions import NotFound
from postdb.domain.value_objects import validate_collection_name


class DescribeCollectionUseCase:
    """Counts, update sequence and size of one collection."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(self, name: str) -> CollectionInfo:
        validate_collection_name(name)
        async with self._uow_factory() as uow:
            schema = await uow.collections.get_schema(name)
            if schema is None:
                raise NotFound("Collection", name)
            stats = await uow.collections.stats(name)
        return CollectionInfo(
            name=name,
            doc_count=stats["doc_count"],
            doc_del_count=stats["doc_del_count"],
            update_seq=stats["update_seq"],
            size=stats["size"],
            indexes=schema.to_mapping(),
        )


class ListCollectionsUseCase:
    """Names of all collections, sorted."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(self) -> list[str]:
        async with self._uow_factory() as uow:
            return sorted(await uow.collections.list_names())
