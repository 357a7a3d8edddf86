"""
Base repository class for entity store access.

Provides a common abstraction layer for all repositories, encapsulating
datastore access and the mapping between stored records and entity models.
"""

from typing import Generic, Optional, TypeVar

from .datastore import Datastore, Query
from .entity import Entity
from .keys import Key


E = TypeVar("E", bound=Entity)


class BaseRepository(Generic[E]):
    """
    Base class for all repositories.

    Provides common functionality for entity operations:
    - Datastore access via self._db
    - Record <-> entity mapping for the repository's entity class

    Subclasses set ``entity_class`` and implement domain-specific lookups
    on top of the protected helpers.

    Example:
        class ThreadRepository(BaseRepository[Thread]):
            entity_class = Thread

            async def get_by_key(self, key: Key) -> Optional[Thread]:
                return await self._get(key)
    """

    entity_class: type[E]

    def __init__(self, db: Datastore) -> None:
        """
        Initialize the repository with a datastore.

        Args:
            db: Datastore instance for entity operations.
        """
        self._db = db

    @property
    def datastore(self) -> Datastore:
        return self._db

    def _new_query(self) -> Query:
        return Query(kind=self.entity_class.kind)

    async def _get(self, key: Key, transactional: bool = False) -> Optional[E]:
        record = await self._db.get(key, transactional=transactional)
        if record is None:
            return None
        return self.entity_class.from_record(record.key, record.data, record.version)

    async def _get_multi(self, keys: list[Key]) -> list[Optional[E]]:
        records = await self._db.get_multi(keys)
        return [
            self.entity_class.from_record(r.key, r.data, r.version) if r else None
            for r in records
        ]

    async def _query(self, query: Query) -> list[E]:
        records = await self._db.query(query)
        return [self.entity_class.from_record(r.key, r.data, r.version) for r in records]

    async def _save(self, entity: E) -> E:
        key = entity.key or await self._db.allocate_key(self.entity_class.kind)
        await self._db.put(key, entity.to_record(), entity.version)
        entity.mark_stored(key)
        return entity

    async def _save_multi(self, entities: list[E]) -> list[E]:
        items = []
        for entity in entities:
            key = entity.key or await self._db.allocate_key(self.entity_class.kind)
            items.append((key, entity.to_record(), entity.version))
        await self._db.put_multi(items)
        for entity, (key, _, _) in zip(entities, items):
            entity.mark_stored(key)
        return entities

    async def _delete(self, entity: E) -> None:
        if entity.key is None:
            return
        await self._db.delete(entity.key, entity.version)
