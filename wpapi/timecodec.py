"""WordPress timestamp parsing and formatting.

WordPress emits timestamps in three textual layouts depending on the
endpoint and the field (``date`` vs ``date_gmt``).  :class:`TimeCodec`
accepts all of them and always writes the canonical, unzoned layout.
"""
from __future__ import annotations

import datetime as dt
import re
from typing import Optional

# 2017-12-25T09:54:42
TIME_LAYOUT = "%Y-%m-%dT%H:%M:%S"

# 2017-09-24T13:28:06+00:00
TIME_WITH_ZONE_LAYOUT = "%Y-%m-%dT%H:%M:%S%z"

# 2017-12-25 09:54:42
SIMPLE_TIME_LAYOUT = "%Y-%m-%d %H:%M:%S"

# Exact shape of each layout, in parsing order. strptime alone would also
# take unpadded fields, "Z" and "+0000".
_LAYOUTS = (
    (
        TIME_WITH_ZONE_LAYOUT,
        re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[+-]\d{2}:\d{2}", re.ASCII),
    ),
    (TIME_LAYOUT, re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}", re.ASCII)),
    (SIMPLE_TIME_LAYOUT, re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", re.ASCII)),
)


class TimeCodec:
    """Parse and format WordPress timestamps relative to a location.

    Parameters
    ----------
    location: datetime.tzinfo
        Zone used for timestamps that carry no offset of their own.
        Defaults to UTC.
    """

    def __init__(self, location: Optional[dt.tzinfo] = None) -> None:
        self.location = location or dt.timezone.utc

    def parse(self, value: str) -> dt.datetime:
        """Parse ``value`` in the codec's location."""
        return parse_time(value, self.location)

    def parse_gmt(self, value: str) -> dt.datetime:
        """Parse ``value`` as a GMT timestamp, whatever the location."""
        return parse_time(value, dt.timezone.utc)

    def format(self, value: dt.datetime) -> str:
        return format_time(value, self.location)

    def format_gmt(self, value: dt.datetime) -> str:
        return format_time(value, dt.timezone.utc)

    def __repr__(self) -> str:
        return f"TimeCodec(location={self.location!r})"


def parse_time(value: str, location: dt.tzinfo) -> dt.datetime:
    """Parse one of the WordPress layouts into an aware datetime.

    The zoned layout is tried first and converted into ``location``; the two
    unzoned layouts are read as wall-clock time in ``location``.
    """
    if not isinstance(value, str):
        raise TypeError(f"timestamp must be a string, not {type(value).__name__}")
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        value = value[1:-1]

    for layout, pattern in _LAYOUTS:
        if not pattern.fullmatch(value):
            continue
        try:
            parsed = dt.datetime.strptime(value, layout)
        except ValueError:
            continue
        if parsed.tzinfo is not None:
            return parsed.astimezone(location)
        return parsed.replace(tzinfo=location)

    raise ValueError(
        f'cannot parse "{value}" as any of WordPress time layouts: '
        f'"{TIME_WITH_ZONE_LAYOUT}", "{TIME_LAYOUT}", "{SIMPLE_TIME_LAYOUT}"'
    )


def format_time(value: dt.datetime, location: dt.tzinfo) -> str:
    """Format ``value`` in the canonical unzoned layout.

    Aware datetimes are converted into ``location`` first so that parsing
    the result in the same location yields the same instant. Naive
    datetimes are taken to already be wall-clock time in ``location``.
    """
    if value.tzinfo is not None:
        value = value.astimezone(location)
    return value.strftime(TIME_LAYOUT)
