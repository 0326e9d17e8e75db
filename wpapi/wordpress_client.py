"""Client for the WordPress REST API.

The client builds requests against the ``/wp/v2`` namespace, executes them
through an injected :class:`requests.Session` and decodes the responses.
Resource services (posts, pages, media, ...) are thin wrappers around the
generic :meth:`WordPressClient.list`, :meth:`~WordPressClient.get`,
:meth:`~WordPressClient.create`, :meth:`~WordPressClient.update`,
:meth:`~WordPressClient.delete` and :meth:`~WordPressClient.post_data` calls.
Authentication is configured on the session.
"""
from __future__ import annotations

import contextlib
import datetime as dt
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Tuple, Union
from urllib.parse import parse_qs, urlsplit, urlunsplit
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import requests
import urllib3
from requests.auth import HTTPBasicAuth

from .context import Context, background
from .errors import (
    APIError,
    ConfigurationError,
    DeadlineExceeded,
    DecodeError,
    TransportError,
    URLContainsAPIPrefixError,
    WordPressError,
    redact_secrets,
    sanitize_url,
)
from .models import ByteSink, DeleteResponse, JSONResult, RootInfo, encode_json
from .options import Options, encode_options
from .response import Response
from .timecodec import TimeCodec

logger = logging.getLogger(__name__)

API_PATH_PREFIX = "/wp/v2"
DEFAULT_USER_AGENT = "wpapi"
METHOD_OVERRIDE_HEADER = "X-HTTP-Method-Override"

# Bytes read from an unconsumed body before closing it, so the connection
# can go back to the pool.
DRAIN_LIMIT = 512

# Bytes per read while a body is consumed; the context is checked between
# reads.
BODY_CHUNK_SIZE = 8192

ResultTarget = Optional[Union[JSONResult, ByteSink]]


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ClientConfig:
    """Configuration of a WordPress site.

    Parameters
    ----------
    url: str
        Address of the site, e.g. ``https://example.com/blog``. It must not
        contain the ``/wp/v2`` namespace.
    non_pretty_permalinks: bool
        Route requests through ``?rest_route=`` instead of ``/wp-json``.
    user_agent: str
        ``User-Agent`` header; an empty string leaves the session's own.
    location: datetime.tzinfo
        Zone of unzoned timestamps in payloads.
    process_raw_response_body: bool
        Also decode every JSON body into :attr:`Response.raw_body`.
    """

    url: str
    non_pretty_permalinks: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    location: dt.tzinfo = dt.timezone.utc
    process_raw_response_body: bool = False

    @classmethod
    def from_env(cls, prefix: str = "WORDPRESS_") -> "ClientConfig":
        """Build a configuration from ``<prefix>URL`` and related variables."""
        url = os.getenv(f"{prefix}URL")
        if not url:
            raise ConfigurationError(f"{prefix}URL not found in environment")

        location: dt.tzinfo = dt.timezone.utc
        zone_name = os.getenv(f"{prefix}TIMEZONE")
        if zone_name:
            try:
                location = ZoneInfo(zone_name)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ConfigurationError(f"unknown time zone {zone_name!r}") from exc

        return cls(
            url=url,
            non_pretty_permalinks=_env_flag(os.getenv(f"{prefix}NON_PRETTY_PERMALINKS")),
            user_agent=os.getenv(f"{prefix}USER_AGENT", DEFAULT_USER_AGENT),
            location=location,
            process_raw_response_body=_env_flag(os.getenv(f"{prefix}PROCESS_RAW_BODY")),
        )


def build_session(username: Optional[str] = None, password: Optional[str] = None) -> requests.Session:
    """Create the default session: no keep-alive, optional basic auth."""
    session = requests.Session()
    session.headers["Connection"] = "close"
    if username is not None:
        session.auth = HTTPBasicAuth(username, password or "")
    return session


def parse_base_url(url: str) -> str:
    """Validate the site address and return it with a trailing slash."""
    if API_PATH_PREFIX in url:
        raise URLContainsAPIPrefixError(f"url must not contain {API_PATH_PREFIX}")
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise ConfigurationError(f"invalid base url {url!r}: {exc}") from exc
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ConfigurationError(f"invalid base url {url!r}: expected an http(s) address")

    path = parts.path if parts.path.endswith("/") else parts.path + "/"
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def _forces_delete(url: str) -> bool:
    values = parse_qs(urlsplit(url).query).get("force") or [""]
    return values[0].lower() not in ("", "0", "false")


def _drain_and_close(http_response: requests.Response) -> None:
    raw = http_response.raw
    if raw is None:
        return
    try:
        with contextlib.suppress(OSError, ValueError, urllib3.exceptions.HTTPError):
            raw.read(DRAIN_LIMIT)
    finally:
        raw.close()
        release_conn = getattr(raw, "release_conn", None)
        if release_conn is not None:
            release_conn()


def _iter_body(response: Response, ctx: Context, chunk_size: int) -> Iterator[bytes]:
    for chunk in response.iter_content(chunk_size=chunk_size):
        err = ctx.err()
        if err is not None:
            err.response = response
            raise err
        yield chunk


def _read_body(response: Response, ctx: Context) -> bytes:
    """Read the whole body, keeping it on ``response.content``."""
    body = b"".join(_iter_body(response, ctx, BODY_CHUNK_SIZE))
    response.content = body
    return body


def _failure(
    request: requests.PreparedRequest,
    exc: requests.RequestException,
    ctx: Context,
    response: Optional[Response] = None,
) -> WordPressError:
    # A done context takes precedence over the transport failure.
    err = ctx.err()
    if err is not None:
        err.response = response
        return err
    return TransportError(
        request.method or "",
        sanitize_url(request.url) or "",
        redact_secrets(str(exc), request.url),
        kind=type(exc).__name__,
        response=response,
    )


class Service:
    """Base class for resource services built on the generic calls."""

    def __init__(self, client: "WordPressClient") -> None:
        self.client = client


class WordPressClient:
    """Client for the WordPress REST API.

    Parameters
    ----------
    config: ClientConfig or str
        Site configuration, or just its address.
    session: requests.Session, optional
        Transport to send requests with; :func:`build_session` when omitted.

    A client holds no per-call state and can be shared between threads.
    """

    def __init__(self, config: Union[ClientConfig, str], session: Optional[requests.Session] = None):
        if isinstance(config, str):
            config = ClientConfig(config)
        self.config = config
        self.base_url = parse_base_url(config.url)
        self.session = session if session is not None else build_session()
        self.time_codec = TimeCodec(config.location)
        self._common = Service(self)

    @property
    def location(self) -> dt.tzinfo:
        return self.time_codec.location

    def set_location(self, location: dt.tzinfo) -> None:
        """Change the zone of unzoned timestamps.

        Not meant to be called while requests are in flight.
        """
        self.time_codec = TimeCodec(location)

    def common_service(self) -> Service:
        """Return the shared :class:`Service` for custom services."""
        return self._common

    # URLs -------------------------------------------------------------------
    def request_url(self, path: str) -> str:
        """Resolve ``path`` below the ``/wp/v2`` namespace."""
        path = path.lstrip("/")
        if self.config.non_pretty_permalinks:
            return f"{self.base_url}?rest_route={API_PATH_PREFIX}/{path}"
        return f"{self.base_url}wp-json{API_PATH_PREFIX}/{path}"

    def index_url(self) -> str:
        """URL of the REST API index, outside any namespace."""
        if self.config.non_pretty_permalinks:
            return f"{self.base_url}?rest_route=/"
        return f"{self.base_url}wp-json/"

    def add_options(self, path: str, options: Options) -> str:
        """Append ``options`` to ``path`` as query parameters.

        In non-pretty mode the path already is a query parameter, so the
        options are joined with ``&``.
        """
        query = encode_options(options, self.time_codec)
        if not query:
            return path
        connector = "&" if self.config.non_pretty_permalinks else "?"
        return f"{path}{connector}{query}"

    # Requests ---------------------------------------------------------------
    def new_request(self, method: str, path: str, body: Any = None) -> requests.PreparedRequest:
        """Build a request for ``path``, JSON encoding ``body`` if given.

        PUT and DELETE also carry a method-override header for proxies that
        only pass GET and POST.
        """
        return self._build_request(method, self.request_url(path), body)

    def _build_request(self, method: str, url: str, body: Any = None) -> requests.PreparedRequest:
        headers = {}
        data = None
        if body is not None:
            data = encode_json(body, self.time_codec)
            headers["Content-Type"] = "application/json"
        if self.config.user_agent:
            headers["User-Agent"] = self.config.user_agent
        if method in ("PUT", "DELETE"):
            headers[METHOD_OVERRIDE_HEADER] = method
        return self.session.prepare_request(requests.Request(method, url, data=data, headers=headers))

    def new_upload_request(
        self, path: str, content: bytes, content_type: str, filename: str
    ) -> requests.PreparedRequest:
        """Build a multipart POST with ``content`` as its ``file`` field."""
        headers = {"Content-Disposition": f"filename={filename}"}
        if self.config.user_agent:
            headers["User-Agent"] = self.config.user_agent
        request = requests.Request(
            "POST",
            self.request_url(path),
            files={"file": (filename, content, content_type)},
            headers=headers,
        )
        return self.session.prepare_request(request)

    # Execution --------------------------------------------------------------
    def do(
        self,
        request: requests.PreparedRequest,
        result: ResultTarget = None,
        *,
        ctx: Optional[Context] = None,
    ) -> Response:
        """Send ``request`` and decode the response into ``result``.

        A :class:`JSONResult` receives the decoded JSON body, a
        :class:`ByteSink` the body bytes as they are. The context is checked
        before sending, between body chunks and once the body is consumed.
        Errors raised after a response arrived carry it on their ``response``
        attribute. The body is always closed before this method returns.
        """
        if result is not None and not isinstance(result, (JSONResult, ByteSink)):
            raise TypeError(f"result must be a JSONResult or ByteSink, not {type(result).__name__}")
        ctx = ctx or background()
        err = ctx.err()
        if err is not None:
            raise err
        timeout = ctx.remaining()
        if timeout is not None and timeout <= 0:
            # urllib3 rejects a zero timeout
            raise DeadlineExceeded()

        logger.debug("%s %s", request.method, sanitize_url(request.url))
        try:
            http_response = self.session.send(request, stream=True, timeout=timeout)
        except requests.RequestException as exc:
            raise _failure(request, exc, ctx) from None

        response = Response(http_response)
        try:
            logger.debug(
                "%s %s -> %s", request.method, sanitize_url(request.url), http_response.status_code
            )
            try:
                self._check_response(response, ctx)
                if isinstance(result, ByteSink):
                    for chunk in _iter_body(response, ctx, result.chunk_size):
                        result.write(chunk)
                elif result is not None:
                    self._decode(response, result, ctx)
            except requests.RequestException as exc:
                raise _failure(request, exc, ctx, response) from None
            err = ctx.err()
            if err is not None:
                err.response = response
                raise err
        finally:
            _drain_and_close(http_response)
        return response

    def _check_response(self, response: Response, ctx: Context) -> None:
        # 202 Accepted is treated as a failure too.
        status = response.status_code
        if 200 <= status <= 299 and status != 202:
            return

        try:
            body = _read_body(response, ctx)
        except requests.RequestException:
            body = b""

        if not body:
            error = APIError(response)
        else:
            try:
                data = json.loads(body)
            except ValueError as exc:
                raise DecodeError([exc], response) from exc
            if not isinstance(data, dict):
                raise DecodeError([TypeError(f"unexpected error body: {data!r}")], response)
            error = APIError.from_body(response, data)
        logger.debug("API error: %s", error)
        raise error

    def _decode(self, response: Response, result: JSONResult, ctx: Context) -> None:
        body = _read_body(response, ctx)
        errors = []
        try:
            result.load(json.loads(body), self.time_codec)
        except (ValueError, TypeError, KeyError) as exc:
            errors.append(exc)

        if self.config.process_raw_response_body:
            try:
                response.raw_body = json.loads(body)
            except ValueError as exc:
                errors.append(exc)

        if errors:
            raise DecodeError(errors, response) from errors[0]

    # Generic calls ----------------------------------------------------------
    def list(
        self,
        path: str,
        options: Options = None,
        result: ResultTarget = None,
        *,
        ctx: Optional[Context] = None,
    ) -> Response:
        """Fetch a collection, e.g. ``client.list("posts", ListOptions(page=2), items)``."""
        request = self.new_request("GET", self.add_options(path, options))
        return self.do(request, result, ctx=ctx)

    def get(
        self,
        path: str,
        options: Options = None,
        result: ResultTarget = None,
        *,
        ctx: Optional[Context] = None,
    ) -> Response:
        request = self.new_request("GET", self.add_options(path, options))
        return self.do(request, result, ctx=ctx)

    def create(
        self, path: str, body: Any, result: ResultTarget = None, *, ctx: Optional[Context] = None
    ) -> Response:
        request = self.new_request("POST", path, body)
        return self.do(request, result, ctx=ctx)

    def update(
        self, path: str, body: Any, result: ResultTarget = None, *, ctx: Optional[Context] = None
    ) -> Response:
        request = self.new_request("PUT", path, body)
        return self.do(request, result, ctx=ctx)

    def delete(
        self,
        path: str,
        options: Options = None,
        result: ResultTarget = None,
        *,
        ctx: Optional[Context] = None,
    ) -> Response:
        """Delete an item.

        With ``force`` in the query WordPress answers with an envelope
        holding the deleted item; ``result`` then receives that previous
        state, or nothing when the envelope reports no deletion.
        """
        request = self.new_request("DELETE", self.add_options(path, options))
        if not _forces_delete(request.url):
            return self.do(request, result, ctx=ctx)

        envelope = JSONResult(DeleteResponse)
        response = self.do(request, envelope, ctx=ctx)
        if envelope.value.deleted and result is not None:
            try:
                result.load(envelope.value.previous, self.time_codec)
            except (ValueError, TypeError, KeyError) as exc:
                raise DecodeError([exc], response) from exc
        return response

    def post_data(
        self,
        path: str,
        content: bytes,
        content_type: str,
        filename: str,
        result: ResultTarget = None,
        *,
        ctx: Optional[Context] = None,
    ) -> Response:
        """Upload a binary object, e.g. a media file."""
        request = self.new_upload_request(path, content, content_type, filename)
        return self.do(request, result, ctx=ctx)

    # Site information -------------------------------------------------------
    def basic_info(self, *, ctx: Optional[Context] = None) -> Tuple[RootInfo, Response]:
        """Return the public site information from the REST API index.

        The site's time zone is resolved onto ``RootInfo.location``; pass it
        to :meth:`set_location` to read timestamps in site time.
        """
        result = JSONResult(RootInfo)
        response = self.do(self._build_request("GET", self.index_url()), result, ctx=ctx)
        info: RootInfo = result.value
        try:
            info.location = _site_location(info)
        except (ZoneInfoNotFoundError, ValueError, TypeError) as exc:
            raise DecodeError([exc], response) from exc
        return info, response


def _site_location(info: RootInfo) -> dt.tzinfo:
    if info.timezone_string:
        return ZoneInfo(info.timezone_string)
    offset = float(info.gmt_offset or 0)
    if not offset:
        return dt.timezone.utc
    return dt.timezone(dt.timedelta(hours=offset))
