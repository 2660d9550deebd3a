"""Unit tests for the in-memory tiddler store."""

import pytest
import pytest_asyncio

from tiddlynet.core.store import (
    ContainerKind,
    MemoryStore,
    RecipeNotFound,
    StoredTiddler,
    TiddlerIn,
)

BAGS = ContainerKind.BAGS
RECIPES = ContainerKind.RECIPES


@pytest.fixture
def store():
    return MemoryStore()


# ============================================================
# Bags
# ============================================================


class TestBagOperations:
    @pytest.mark.asyncio
    async def test_put_creates_bag(self, store):
        await store.put_tiddler(BAGS, "common", "Note", TiddlerIn(text="hi"), "alice")
        assert await store.list_bags() == ["common"]

    @pytest.mark.asyncio
    async def test_put_then_get(self, store):
        body = TiddlerIn(text="hi", tags=["a"], type="text/plain", fields={"k": "v"})
        await store.put_tiddler(BAGS, "common", "Note", body, "alice")
        tiddler = await store.get_tiddler(BAGS, "common", "Note")
        assert tiddler is not None
        assert tiddler.text == "hi"
        assert tiddler.tags == ["a"]
        assert tiddler.type == "text/plain"
        assert tiddler.fields == {"k": "v"}
        assert tiddler.bag == "common"

    @pytest.mark.asyncio
    async def test_server_owned_metadata(self, store):
        first = await store.put_tiddler(BAGS, "b", "Note", TiddlerIn(text="1"), "alice")
        assert first.revision == 1
        assert first.creator == "alice"
        assert first.modifier == "alice"
        assert first.created == first.modified

        second = await store.put_tiddler(BAGS, "b", "Note", TiddlerIn(text="2"), "bob")
        assert second.revision == 2
        assert second.creator == "alice"
        assert second.created == first.created
        assert second.modifier == "bob"
        assert second.modified >= first.modified

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get_tiddler(BAGS, "b", "Nothing") is None

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.put_tiddler(BAGS, "b", "Note", TiddlerIn(), "alice")
        assert await store.delete_tiddler(BAGS, "b", "Note") is True
        assert await store.get_tiddler(BAGS, "b", "Note") is None
        assert await store.delete_tiddler(BAGS, "b", "Note") is False

    @pytest.mark.asyncio
    async def test_tiddler_exists(self, store):
        assert store.tiddler_exists(BAGS, "b", "Note") is False
        await store.put_tiddler(BAGS, "b", "Note", TiddlerIn(), "alice")
        assert store.tiddler_exists(BAGS, "b", "Note") is True


# ============================================================
# Recipes
# ============================================================


class TestRecipeOperations:
    @pytest_asyncio.fixture
    async def recipe_store(self, store):
        await store.create_recipe("default", ["system", "content"])
        await store.put_tiddler(BAGS, "system", "Shared", TiddlerIn(text="system"), "a")
        await store.put_tiddler(BAGS, "system", "SystemOnly", TiddlerIn(text="s"), "a")
        await store.put_tiddler(BAGS, "content", "Shared", TiddlerIn(text="content"), "a")
        return store

    @pytest.mark.asyncio
    async def test_create_recipe_creates_bags(self, store):
        await store.create_recipe("default", ["system", "content"])
        assert await store.list_bags() == ["content", "system"]

    @pytest.mark.asyncio
    async def test_last_bag_wins(self, recipe_store):
        tiddler = await recipe_store.get_tiddler(RECIPES, "default", "Shared")
        assert tiddler.text == "content"
        assert tiddler.bag == "content"

    @pytest.mark.asyncio
    async def test_falls_through_to_earlier_bag(self, recipe_store):
        tiddler = await recipe_store.get_tiddler(RECIPES, "default", "SystemOnly")
        assert tiddler.bag == "system"

    @pytest.mark.asyncio
    async def test_put_goes_to_last_bag(self, recipe_store):
        stored = await recipe_store.put_tiddler(
            RECIPES, "default", "New", TiddlerIn(text="n"), "a"
        )
        assert stored.bag == "content"
        assert await recipe_store.get_tiddler(BAGS, "content", "New") is not None

    @pytest.mark.asyncio
    async def test_delete_resolves_bag(self, recipe_store):
        assert await recipe_store.delete_tiddler(RECIPES, "default", "Shared") is True
        tiddler = await recipe_store.get_tiddler(RECIPES, "default", "Shared")
        assert tiddler.bag == "system"

    @pytest.mark.asyncio
    async def test_unknown_recipe(self, store):
        with pytest.raises(RecipeNotFound):
            await store.get_tiddler(RECIPES, "missing", "Note")
        with pytest.raises(RecipeNotFound):
            await store.put_tiddler(RECIPES, "missing", "Note", TiddlerIn(), "a")

    @pytest.mark.asyncio
    async def test_empty_recipe_is_unknown(self, store):
        await store.create_recipe("empty", [])
        with pytest.raises(RecipeNotFound):
            await store.get_tiddler(RECIPES, "empty", "Note")


# ============================================================
# Documents
# ============================================================


class TestToDocument:
    def test_compact_timestamps(self):
        from datetime import datetime, timezone

        dt = datetime(2021, 6, 15, 14, 30, 22, 500000, tzinfo=timezone.utc)
        doc = StoredTiddler(title="T", bag="b", created=dt, modified=dt).to_document()
        assert doc["created"] == "20210615143022500"
        assert doc["modified"] == "20210615143022500"
        assert doc["render"] is None

    def test_missing_timestamps(self):
        doc = StoredTiddler(title="T", bag="b").to_document(render="<p></p>")
        assert doc["created"] is None
        assert doc["render"] == "<p></p>"
        assert doc["revision"] == 0
