"""Exception types raised by the tiddler client."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tiddlynet.core.models import Tiddler
    from tiddlynet.core.notifications import Notification


class TiddlyNetError(Exception):
    """Base class for all client errors."""


class ConfigurationError(TiddlyNetError):
    """A tiddler is missing the addressing data needed to build its URI.

    Raised before any network traffic happens.
    """


class ParseError(TiddlyNetError, ValueError):
    """A value sent by the server could not be decoded."""


class TransportError(TiddlyNetError):
    """An HTTP request failed or the server answered with a non-2xx status.

    ``status`` is the HTTP status code, or None when no response arrived.
    """

    def __init__(
        self,
        tiddler: "Tiddler",
        method: str,
        status: int | None,
        msg: str,
    ) -> None:
        super().__init__(f"{method} {tiddler.title!r} failed ({status}): {msg}")
        self.tiddler = tiddler
        self.method = method
        self.status = status
        self.msg = msg

    def to_notification(self) -> "Notification":
        """Build the ``error`` notification describing this failure."""
        from tiddlynet.core.notifications import Notification

        return Notification.from_error(self, self.tiddler)
