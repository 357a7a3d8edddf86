"""Tests for shared/repository.py."""

from typing import ClassVar

import pytest

from shared.datastore import MemoryDatastore
from shared.entity import Entity
from shared.keys import Key
from shared.repository import BaseRepository


class Widget(Entity):
    kind: ClassVar[str] = "Widget"

    name: str = ""
    tags: list[str] = []


class WidgetRepository(BaseRepository[Widget]):
    entity_class = Widget

    async def get(self, key: Key):
        return await self._get(key)

    async def tagged(self, tag: str) -> list[Widget]:
        return await self._query(self._new_query().where_contains("tags", tag).order("name"))


@pytest.fixture
def repo() -> WidgetRepository:
    return WidgetRepository(MemoryDatastore())


class TestBaseRepository:
    """Tests for BaseRepository base class."""

    def test_init_stores_datastore(self):
        """Should store the datastore in _db attribute."""
        store = MemoryDatastore()
        repo = WidgetRepository(store)
        assert repo._db is store
        assert repo.datastore is store

    @pytest.mark.asyncio
    async def test_save_allocates_key(self, repo):
        widget = await repo._save(Widget(name="a"))

        assert widget.key.kind == "Widget"
        assert widget.version is None
        loaded = await repo.get(widget.key)
        assert loaded.name == "a"
        assert loaded.version == 1

    @pytest.mark.asyncio
    async def test_missing(self, repo):
        assert await repo.get(Key(kind="Widget", id=404)) is None

    @pytest.mark.asyncio
    async def test_get_multi_keeps_order(self, repo):
        first, second = await repo._save_multi([Widget(name="a"), Widget(name="b")])

        loaded = await repo._get_multi([second.key, Key(kind="Widget", id=404), first.key])

        assert [w.name if w else None for w in loaded] == ["b", None, "a"]

    @pytest.mark.asyncio
    async def test_query(self, repo):
        await repo._save_multi(
            [Widget(name="c", tags=["x"]), Widget(name="a", tags=["x", "y"]), Widget(name="b", tags=["y"])]
        )

        assert [w.name for w in await repo.tagged("x")] == ["a", "c"]

    @pytest.mark.asyncio
    async def test_delete(self, repo):
        widget = await repo._save(Widget(name="a"))

        await repo._delete(widget)
        await repo._delete(Widget(name="never stored"))

        assert await repo.get(widget.key) is None
