"""Drop collection use case."""

from postdb.application.use_cases.document.document_store import DocumentStore
from postdb.domain.exceptions import NotFound
from postdb.domain.value_objects import validate_collection_name


class DropCollectionUseCase:
    """Drop a collection and all of its documents."""

    def __init__(self, unit_of_work_factory: type, document_store: DocumentStore) -> None:
        self._uow_factory = unit_of_work_factory
        self._documents = document_store

    async def execute(self, name: str) -> None:
        validate_collection_name(name)
        async with self._uow_factory() as uow:
            dropped = await uow.collections.drop(name)
        self._documents.forget_schema(name)
        if not dropped:
            raise NotFound("Collection", name)
