"""Query options for list, get and delete calls.

Each options type spells out its own field-to-query-key table. Fields left
at their zero value are omitted; list fields are bracket-encoded
(``include[]=1&include[]=2``). Timestamps are written in the canonical
unzoned layout, in the location of the codec doing the encoding.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple, Union
from urllib.parse import urlencode

from .timecodec import TimeCodec

QueryPairs = List[Tuple[str, Any]]


class QueryOptions:
    """Base class for structured query options."""

    # (attribute, query key, bracket-encode)
    encoding: Sequence[Tuple[str, str, bool]] = ()

    def query_pairs(self, codec: Optional[TimeCodec] = None) -> QueryPairs:
        codec = codec or TimeCodec()
        pairs: QueryPairs = []
        for attribute, key, brackets in self.encoding:
            value = getattr(self, attribute)
            if not value:
                continue
            if brackets:
                pairs.extend((f"{key}[]", _query_value(item, codec)) for item in value)
            else:
                pairs.append((key, _query_value(value, codec)))
        return pairs

    def encode(self, codec: Optional[TimeCodec] = None) -> str:
        return urlencode(self.query_pairs(codec))


def _query_value(value: Any, codec: TimeCodec) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dt.datetime):
        return codec.format(value)
    return value


@dataclass
class ListOptions(QueryOptions):
    """Optional parameters of collection endpoints.

    Attributes
    ----------
    context: str
        Scope of the request; determines the fields present in the response.
    exclude, include: list[int]
        IDs to exclude from, or limit, the result set.
    offset, page, per_page: int
        Paging controls.
    order, orderby: str
        Sort direction and attribute.
    search: str
        Limit results to those matching a string.
    """

    context: str = ""
    exclude: List[int] = field(default_factory=list)
    include: List[int] = field(default_factory=list)
    offset: int = 0
    order: str = ""
    orderby: str = ""
    page: int = 0
    per_page: int = 0
    search: str = ""

    encoding = (
        ("context", "context", False),
        ("exclude", "exclude", True),
        ("include", "include", True),
        ("offset", "offset", False),
        ("order", "order", False),
        ("orderby", "orderby", False),
        ("page", "page", False),
        ("per_page", "per_page", False),
        ("search", "search", False),
    )


@dataclass
class DeleteOptions(QueryOptions):
    """Parameters of delete endpoints; ``force`` bypasses the trash."""

    force: bool = False
    reassign: int = 0

    encoding = (
        ("force", "force", False),
        ("reassign", "reassign", False),
    )


Options = Optional[Union[str, QueryOptions]]


def encode_options(options: Options, codec: Optional[TimeCodec] = None) -> Optional[str]:
    """Render ``options`` as a query string, or ``None`` when there are none.

    A plain string is returned verbatim. ``codec`` formats timestamp values
    and defaults to UTC.
    """
    if options is None:
        return None
    if isinstance(options, str):
        return options
    if isinstance(options, QueryOptions):
        return options.encode(codec)
    raise TypeError(
        f"options must be a str or QueryOptions instance, not {type(options).__name__}"
    )
