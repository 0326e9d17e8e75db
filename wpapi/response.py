"""Response wrapper carrying pagination data."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import parse_qs, urlsplit

import requests

HEADER_TOTAL_RECORDS = "X-WP-Total"
HEADER_TOTAL_PAGES = "X-WP-TotalPages"


def _to_int(value: Optional[str]) -> int:
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


@dataclass(frozen=True)
class PageValues:
    total_records: int = 0
    total_pages: int = 0
    current_page: int = 0
    previous_page: int = 0
    next_page: int = 0


def page_values(headers: Mapping[str, str], request_url: Optional[str]) -> PageValues:
    """Derive pagination from response headers and the request URL.

    A paginated response without an explicit ``page`` parameter is the
    first page. ``next_page`` is 0 once the last page is reached.
    """
    total_records_header = headers.get(HEADER_TOTAL_RECORDS) or ""
    total_pages_header = headers.get(HEADER_TOTAL_PAGES) or ""
    total_pages = _to_int(total_pages_header)

    query = parse_qs(urlsplit(request_url or "").query)
    current_page = _to_int((query.get("page") or [""])[0])
    if total_records_header and total_pages_header and current_page == 0:
        current_page = 1

    next_page = current_page + 1
    if next_page > total_pages:
        next_page = 0

    return PageValues(
        total_records=_to_int(total_records_header),
        total_pages=total_pages,
        current_page=current_page,
        previous_page=max(current_page - 1, 0),
        next_page=next_page,
    )


class Response:
    """A WordPress REST API response.

    Wraps :class:`requests.Response`, whose attributes stay reachable on the
    wrapper, and adds the pagination values. Any of them may be 0 for
    responses that are not part of a paginated set.

    ``raw_body`` holds the untyped decoded body when the client was
    configured with ``process_raw_response_body``. Once the client has read
    a body for decoding, ``content`` holds its bytes.
    """

    def __init__(self, http_response: requests.Response) -> None:
        self.http_response = http_response
        self.raw_body: Any = None
        request_url = http_response.request.url if http_response.request is not None else None
        pages = page_values(http_response.headers, request_url)
        self.total_records = pages.total_records
        self.total_pages = pages.total_pages
        self.current_page = pages.current_page
        self.previous_page = pages.previous_page
        self.next_page = pages.next_page

    def __getattr__(self, name: str) -> Any:
        http_response = self.__dict__.get("http_response")
        if http_response is None:
            raise AttributeError(name)
        return getattr(http_response, name)

    def __repr__(self) -> str:
        return f"<Response [{self.http_response.status_code}]>"
