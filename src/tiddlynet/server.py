"""Reference TiddlyWeb-style tiddler server (FastAPI application).

Serves the bag/recipe tiddler URIs from a TiddlerStore so the client
can be exercised without a real TiddlyWeb installation.
"""

import logging
from contextlib import asynccontextmanager
from urllib.parse import quote, unquote

from fastapi import FastAPI, HTTPException, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.types import ASGIApp, Receive, Scope, Send

from tiddlynet.config import settings
from tiddlynet.core.render import render_text
from tiddlynet.core.store import (
    ContainerKind,
    MemoryStore,
    RecipeNotFound,
    StoredTiddler,
    TiddlerIn,
    TiddlerStore,
)

logger = logging.getLogger(__name__)

TIDDLER_PATH = "/{kind}/{name}/tiddlers/{title:path}"


class RecipeIn(BaseModel):
    """Body accepted when creating a recipe."""

    bags: list[str]


class ContainerNameMiddleware:
    """Route bag and recipe names on their raw, still-encoded form.

    The router sees the decoded path, so a ``%2F`` inside a bag name
    would split it into two segments. The name segment is re-quoted
    here and unquoted again by the handlers.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        raw_path = scope.get("raw_path") if scope["type"] == "http" else None
        if raw_path:
            segments = raw_path.split(b"?", 1)[0].decode("latin-1").split("/")
            if len(segments) > 2 and segments[1] in ("bags", "recipes"):
                segments = [unquote(segment) for segment in segments]
                segments[2] = quote(segments[2], safe="")
                scope = dict(scope, path="/".join(segments))
        await self.app(scope, receive, send)


def _etag(tiddler: StoredTiddler) -> str:
    return f'"{tiddler.bag}/{tiddler.title}/{tiddler.revision}"'


def create_app(store: TiddlerStore | None = None) -> FastAPI:
    """Build the application around ``store`` (a fresh MemoryStore by default)."""
    store = store if store is not None else MemoryStore()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("%s serving %s", settings.app_title, type(store).__name__)
        yield

    app = FastAPI(
        title=settings.app_title,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.store = store
    app.add_middleware(ContainerNameMiddleware)

    @app.get("/bags")
    async def list_bags():
        """List bag names."""
        return await store.list_bags()

    @app.put("/recipes/{name}", status_code=204)
    async def put_recipe(name: str, body: RecipeIn):
        """Create or replace a recipe."""
        name = unquote(name)
        await store.create_recipe(name, body.bags)
        return Response(status_code=204)

    @app.get(TIDDLER_PATH)
    async def get_tiddler(kind: ContainerKind, name: str, title: str, render: int = 0):
        """Return a tiddler as JSON."""
        name = unquote(name)
        try:
            tiddler = await store.get_tiddler(kind, name, title)
        except RecipeNotFound:
            raise HTTPException(status_code=404, detail=f"Recipe {name} not found")
        if tiddler is None:
            raise HTTPException(status_code=404, detail=f"Tiddler {title} not found")

        rendered = None
        if render:
            rendered = render_text(
                tiddler.text,
                tiddler.type,
                exists=lambda linked: store.tiddler_exists(kind, name, linked),
            )
        return JSONResponse(
            content=tiddler.to_document(render=rendered),
            headers={"ETag": _etag(tiddler)},
        )

    @app.put(TIDDLER_PATH, status_code=204)
    async def put_tiddler(kind: ContainerKind, name: str, title: str, body: TiddlerIn):
        """Create or replace a tiddler."""
        name = unquote(name)
        try:
            tiddler = await store.put_tiddler(
                kind, name, title, body, modifier=settings.modifier
            )
        except RecipeNotFound:
            raise HTTPException(status_code=404, detail=f"Recipe {name} not found")
        logger.info(
            "Stored %s in bag %s (revision %d)", title, tiddler.bag, tiddler.revision
        )
        return Response(status_code=204, headers={"ETag": _etag(tiddler)})

    @app.delete(TIDDLER_PATH, status_code=204)
    async def delete_tiddler(kind: ContainerKind, name: str, title: str):
        """Delete a tiddler."""
        name = unquote(name)
        try:
            deleted = await store.delete_tiddler(kind, name, title)
        except RecipeNotFound:
            raise HTTPException(status_code=404, detail=f"Recipe {name} not found")
        if not deleted:
            raise HTTPException(status_code=404, detail=f"Tiddler {title} not found")
        logger.info("Deleted %s via %s/%s", title, kind.value, name)
        return Response(status_code=204)

    return app


app = create_app()
