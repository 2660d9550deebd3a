"""Conversion between TiddlyWeb compact timestamps and datetimes.

The server writes times as ``YYYYMMDDhhmmss`` with an optional
three-digit millisecond suffix, always in UTC. Seconds may also be
missing, in which case they default to zero.
"""

import re
from datetime import datetime, timezone

from tiddlynet.core.errors import ParseError

TIMESTAMP_PATTERN = re.compile(r"[0-9]{12,17}")


def timestamp_to_datetime(value: str) -> datetime:
    """Decode a compact timestamp into an aware UTC datetime.

    Raises ParseError for anything that is not 12 to 17 digits or that
    names an impossible date or time.
    """
    if not isinstance(value, str) or not TIMESTAMP_PATTERN.fullmatch(value):
        raise ParseError(f"invalid timestamp: {value!r}")

    millisecond = int(value[14:17] or "0")
    try:
        return datetime(
            int(value[0:4]),
            int(value[4:6]),
            int(value[6:8]),
            int(value[8:10]),
            int(value[10:12]),
            int(value[12:14] or "0"),
            millisecond * 1000,
            tzinfo=timezone.utc,
        )
    except ValueError as exc:
        raise ParseError(f"invalid timestamp: {value!r} ({exc})") from exc


def datetime_to_timestamp(dt: datetime) -> str:
    """Encode a datetime as a 17-digit compact timestamp.

    Naive datetimes are taken to be UTC already.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y%m%d%H%M%S") + f"{dt.microsecond // 1000:03d}"
