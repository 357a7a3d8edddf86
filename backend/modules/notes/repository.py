"""
Note store.
"""

from shared.keys import Key
from shared.repository import BaseRepository

from .models import Note


class NoteRepository(BaseRepository[Note]):
    """Repository for notes."""

    entity_class = Note

    async def get_by_owner(self, owner: Key) -> list[Note]:
        query = self._new_query().where("owner", owner).order("created_at", descending=True)
        return await self._query(query)

    async def commit(self, note: Note) -> Note:
        return await self._save(note)

    async def commit_multi(self, notes: list[Note]) -> list[Note]:
        return await self._save_multi(notes)
