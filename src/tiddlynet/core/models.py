"""Data models for TiddlyNet."""

import json
from datetime import datetime
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, Field

from tiddlynet.core.errors import ConfigurationError
from tiddlynet.core.timestamps import timestamp_to_datetime

# Characters left alone by JavaScript's encodeURIComponent, beyond
# the letters, digits and "_.-~" that quote() never escapes.
URI_COMPONENT_SAFE = "!*'()"

# Keys sent to the server. Authorship and revision are server-owned.
WIRE_FIELDS = {"title", "text", "tags", "type", "fields"}


def quote_component(value: str) -> str:
    """Percent-encode a single path segment."""
    return quote(value, safe=URI_COMPONENT_SAFE)


def _decode_time(value: str | None) -> datetime | None:
    if not value:
        return None
    return timestamp_to_datetime(value)


class Tiddler(BaseModel):
    """A titled document stored in a bag or recipe on a TiddlyWeb host."""

    title: str = Field(frozen=True)

    host: str | None = None
    bag: str | None = None
    recipe: str | None = None

    modifier: str | None = None
    modified: datetime | None = None
    creator: str | None = None
    created: datetime | None = None

    text: str | None = None
    render: str | None = None

    type: str | None = None
    revision: int | str | None = None

    tags: list[str] = Field(default_factory=list)
    fields: dict[str, str] = Field(default_factory=dict)

    def __init__(self, title: str, **data: Any) -> None:
        super().__init__(title=title, **data)

    @property
    def container(self) -> str:
        """Return the ``bags/<bag>`` or ``recipes/<recipe>`` path segment."""
        if self.bag:
            return "bags/" + quote_component(self.bag)
        if self.recipe:
            return "recipes/" + quote_component(self.recipe)
        raise ConfigurationError("no container data provided, bag or recipe required")

    def uri(self) -> str:
        """Return the absolute URI of this tiddler.

        Bag wins over recipe when both are set. Raises ConfigurationError
        when host or container is missing.
        """
        if not self.host:
            raise ConfigurationError("host required")
        host = self.host.rstrip("/")
        return f"{host}/{self.container}/tiddlers/{quote_component(self.title)}"

    def to_dict(self) -> dict[str, Any]:
        """Return the representation sent to the server on PUT."""
        return self.model_dump(include=WIRE_FIELDS)

    def to_json(self) -> str:
        """Serialize the PUT representation to a JSON string."""
        return json.dumps(self.to_dict())

    def from_json(self, data: dict[str, Any]) -> "Tiddler":
        """Overwrite server-managed fields from a decoded JSON document.

        Addressing fields (title, host, bag, recipe) are left alone.
        Timestamps are decoded first so a ParseError leaves the tiddler
        unchanged.
        """
        modified = _decode_time(data.get("modified"))
        created = _decode_time(data.get("created"))

        self.text = data.get("text")
        self.render = data.get("render")
        self.tags = list(data.get("tags") or [])
        self.type = data.get("type")
        self.fields = dict(data.get("fields") or {})
        self.modifier = data.get("modifier")
        self.modified = modified
        self.creator = data.get("creator")
        self.created = created
        self.revision = data.get("revision")
        return self

    @classmethod
    def from_server(
        cls,
        title: str,
        data: dict[str, Any],
        host: str | None = None,
        bag: str | None = None,
        recipe: str | None = None,
    ) -> "Tiddler":
        """Build a new tiddler from a server document."""
        tiddler = cls(title, host=host, bag=bag, recipe=recipe)
        return tiddler.from_json(data)
