"""Storage abstraction for the reference tiddler server."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from tiddlynet.core.timestamps import datetime_to_timestamp


class ContainerKind(str, Enum):
    """First path segment of a tiddler URI."""

    BAGS = "bags"
    RECIPES = "recipes"


class RecipeNotFound(LookupError):
    """The named recipe does not exist or lists no bags."""


class TiddlerIn(BaseModel):
    """Body accepted on PUT."""

    title: str | None = None
    text: str | None = None
    tags: list[str] | None = None
    type: str | None = None
    fields: dict[str, str] | None = None


class StoredTiddler(BaseModel):
    """A tiddler as held by the server, with server-owned metadata."""

    title: str
    bag: str
    text: str | None = None
    tags: list[str] = Field(default_factory=list)
    type: str | None = None
    fields: dict[str, str] = Field(default_factory=dict)
    modifier: str | None = None
    modified: datetime | None = None
    creator: str | None = None
    created: datetime | None = None
    revision: int = 0

    def to_document(self, render: str | None = None) -> dict[str, Any]:
        """Return the JSON document served on GET."""
        data = self.model_dump(exclude={"modified", "created"})
        data["modified"] = _timestamp(self.modified)
        data["created"] = _timestamp(self.created)
        data["render"] = render
        return data


def _timestamp(dt: datetime | None) -> str | None:
    return datetime_to_timestamp(dt) if dt is not None else None


class TiddlerStore(ABC):
    """Abstract base class for tiddler storage."""

    @abstractmethod
    async def get_tiddler(
        self, kind: ContainerKind, name: str, title: str
    ) -> StoredTiddler | None:
        """Get a tiddler. Returns None if not found."""
        ...

    @abstractmethod
    async def put_tiddler(
        self,
        kind: ContainerKind,
        name: str,
        title: str,
        body: TiddlerIn,
        modifier: str,
    ) -> StoredTiddler:
        """Create or replace a tiddler."""
        ...

    @abstractmethod
    async def delete_tiddler(self, kind: ContainerKind, name: str, title: str) -> bool:
        """Delete a tiddler. Returns True if deleted, False if not found."""
        ...

    @abstractmethod
    def tiddler_exists(self, kind: ContainerKind, name: str, title: str) -> bool:
        """Check if a tiddler is visible through a container.

        Synchronous so it can be used as a renderer callback.
        """
        ...

    @abstractmethod
    async def list_bags(self) -> list[str]:
        """List all bag names."""
        ...

    @abstractmethod
    async def create_recipe(self, name: str, bags: list[str]) -> None:
        """Create or replace a recipe as an ordered list of bags."""
        ...


class MemoryStore(TiddlerStore):
    """In-memory storage implementation.

    Bags spring into existence on first write. A recipe reads from the
    last of its bags that holds the title and writes to its last bag.
    """

    def __init__(self) -> None:
        self.bags: dict[str, dict[str, StoredTiddler]] = {}
        self.recipes: dict[str, list[str]] = {}

    def _recipe_bags(self, name: str) -> list[str]:
        bags = self.recipes.get(name)
        if not bags:
            raise RecipeNotFound(name)
        return bags

    def _resolve_bag(self, kind: ContainerKind, name: str, title: str) -> str | None:
        """Return the bag that holds ``title`` for this container, if any."""
        if kind == ContainerKind.BAGS:
            return name if title in self.bags.get(name, {}) else None
        for bag in reversed(self._recipe_bags(name)):
            if title in self.bags.get(bag, {}):
                return bag
        return None

    async def get_tiddler(
        self, kind: ContainerKind, name: str, title: str
    ) -> StoredTiddler | None:
        bag = self._resolve_bag(kind, name, title)
        if bag is None:
            return None
        return self.bags[bag][title]

    async def put_tiddler(
        self,
        kind: ContainerKind,
        name: str,
        title: str,
        body: TiddlerIn,
        modifier: str,
    ) -> StoredTiddler:
        bag = name if kind == ContainerKind.BAGS else self._recipe_bags(name)[-1]
        tiddlers = self.bags.setdefault(bag, {})
        previous = tiddlers.get(title)

        now = datetime.now(timezone.utc)
        tiddler = StoredTiddler(
            title=title,
            bag=bag,
            text=body.text,
            tags=body.tags or [],
            type=body.type,
            fields=body.fields or {},
            modifier=modifier,
            modified=now,
            creator=previous.creator if previous else modifier,
            created=previous.created if previous else now,
            revision=previous.revision + 1 if previous else 1,
        )
        tiddlers[title] = tiddler
        return tiddler

    async def delete_tiddler(self, kind: ContainerKind, name: str, title: str) -> bool:
        bag = self._resolve_bag(kind, name, title)
        if bag is None:
            return False
        del self.bags[bag][title]
        return True

    def tiddler_exists(self, kind: ContainerKind, name: str, title: str) -> bool:
        return self._resolve_bag(kind, name, title) is not None

    async def list_bags(self) -> list[str]:
        return sorted(self.bags)

    async def create_recipe(self, name: str, bags: list[str]) -> None:
        for bag in bags:
            self.bags.setdefault(bag, {})
        self.recipes[name] = list(bags)
