"""HTTP operations on tiddlers.

Each operation derives the tiddler URI, performs one request and
either returns the tiddler or raises. When a NotificationBus is given,
the outcome is also published under the matching notification name.

Revisions are not sent as preconditions, so concurrent writers can
overwrite each other.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

import httpx

from tiddlynet.config import Settings, settings as default_settings
from tiddlynet.core.errors import (
    ConfigurationError,
    ParseError,
    TiddlyNetError,
    TransportError,
)
from tiddlynet.core.models import Tiddler
from tiddlynet.core.notifications import (
    TIDDLER_DELETE,
    TIDDLER_GET,
    TIDDLER_PUT,
    Notification,
    NotificationBus,
)

logger = logging.getLogger(__name__)

Operation = Callable[..., Awaitable[Tiddler]]


def new_tiddler(title: str, settings: Settings | None = None) -> Tiddler:
    """Create a tiddler addressed with the configured host, bag and recipe."""
    settings = settings or default_settings
    return Tiddler(
        title,
        host=settings.host,
        bag=settings.bag,
        recipe=settings.recipe,
    )


@asynccontextmanager
async def _client_for(
    client: httpx.AsyncClient | None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the given client, or a short-lived one built from settings."""
    if client is not None:
        yield client
        return
    if default_settings.timeout is None:
        owned = httpx.AsyncClient()
    else:
        owned = httpx.AsyncClient(timeout=default_settings.timeout)
    async with owned:
        yield owned


def _report(
    error: TiddlyNetError,
    tiddler: Tiddler,
    bus: NotificationBus | None,
    method: str | None = None,
) -> TiddlyNetError:
    """Log and publish a failure, returning it for the caller to raise."""
    logger.warning("%s", error)
    if bus is not None:
        bus.publish(Notification.from_error(error, tiddler, method=method))
    return error


def _succeed(name: str, tiddler: Tiddler, bus: NotificationBus | None) -> Tiddler:
    if bus is not None:
        bus.publish(Notification(name=name, tiddler=tiddler))
    return tiddler


async def _request(
    tiddler: Tiddler,
    method: str,
    client: httpx.AsyncClient | None,
    bus: NotificationBus | None,
    params: dict[str, str] | None = None,
    **kwargs,
) -> httpx.Response:
    """Send one request for ``tiddler``; raise TransportError on failure."""
    try:
        uri = tiddler.uri()
    except ConfigurationError as exc:
        raise _report(exc, tiddler, bus) from None

    logger.debug("%s %s", method.upper(), uri)
    try:
        async with _client_for(client) as http:
            response = await http.request(
                method.upper(), uri, params=params, **kwargs
            )
    except httpx.InvalidURL as exc:
        error = ConfigurationError(f"invalid uri {uri!r}: {exc}")
        raise _report(error, tiddler, bus) from exc
    except httpx.RequestError as exc:
        error = TransportError(tiddler, method, None, str(exc))
        raise _report(error, tiddler, bus) from exc

    if not response.is_success:
        error = TransportError(
            tiddler,
            method,
            response.status_code,
            f"{response.reason_phrase}\n{response.text}",
        )
        raise _report(error, tiddler, bus)
    return response


async def get_tiddler(
    tiddler: Tiddler,
    *,
    client: httpx.AsyncClient | None = None,
    bus: NotificationBus | None = None,
    render: bool = False,
) -> Tiddler:
    """Fetch a tiddler and fill its server-managed fields.

    The tiddler is only modified when the whole response decodes.
    """
    response = await _request(
        tiddler,
        "get",
        client,
        bus,
        params={"render": "1"} if render else None,
        headers={"Accept": "application/json"},
    )
    try:
        data = response.json()
    except ValueError:
        data = None
    if not isinstance(data, dict):
        error = TransportError(
            tiddler, "get", response.status_code, "response is not a JSON object"
        )
        raise _report(error, tiddler, bus)

    try:
        tiddler.from_json(data)
    except ParseError as exc:
        _report(exc, tiddler, bus, method="get")
        raise
    logger.debug("Got %r revision %s", tiddler.title, tiddler.revision)
    return _succeed(TIDDLER_GET, tiddler, bus)


async def put_tiddler(
    tiddler: Tiddler,
    *,
    client: httpx.AsyncClient | None = None,
    bus: NotificationBus | None = None,
) -> Tiddler:
    """Store a tiddler's title, text, tags, type and fields on the server."""
    await _request(
        tiddler,
        "put",
        client,
        bus,
        content=tiddler.to_json(),
        headers={"Content-Type": "application/json"},
    )
    return _succeed(TIDDLER_PUT, tiddler, bus)


async def delete_tiddler(
    tiddler: Tiddler,
    *,
    client: httpx.AsyncClient | None = None,
    bus: NotificationBus | None = None,
) -> Tiddler:
    """Remove a tiddler from the server."""
    await _request(tiddler, "delete", client, bus)
    return _succeed(TIDDLER_DELETE, tiddler, bus)


def launch(
    operation: Operation,
    tiddler: Tiddler,
    *,
    bus: NotificationBus,
    client: httpx.AsyncClient | None = None,
) -> "asyncio.Task[Tiddler | None]":
    """Run an operation in the background and report only through ``bus``.

    The returned task resolves to the tiddler, or to None if the
    operation failed (the failure has already been published).
    """

    async def runner() -> Tiddler | None:
        try:
            return await operation(tiddler, client=client, bus=bus)
        except TiddlyNetError as exc:
            logger.debug("Background %s failed: %s", operation.__name__, exc)
            return None

    return asyncio.create_task(runner())
