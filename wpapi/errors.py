"""Exceptions raised by :mod:`wpapi` and helpers to keep secrets out of them."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import parse_qsl, unquote_plus, urlencode, urlsplit, urlunsplit

REDACTED = "REDACTED"


class WordPressError(RuntimeError):
    """Base class for every error raised by the client."""


class ConfigurationError(WordPressError, ValueError):
    """The client configuration is unusable."""


class URLContainsAPIPrefixError(ConfigurationError):
    """The base address already contains the ``/wp/v2`` namespace."""


class ContextError(WordPressError):
    """The call's context was canceled or ran past its deadline.

    ``response`` is set when the context ended after a response arrived.
    """

    response: Any = None


class Canceled(ContextError):
    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message)


class DeadlineExceeded(ContextError, TimeoutError):
    def __init__(self, message: str = "context deadline exceeded") -> None:
        super().__init__(message)


class TransportError(WordPressError):
    """The exchange failed below HTTP: connection, DNS, TLS or a broken body.

    The message and :attr:`url` are sanitized. ``kind`` keeps the name of the
    underlying exception class, which is not chained because its message may
    carry the unsanitized URL. ``response`` is set when the connection broke
    while the body was being read.
    """

    def __init__(
        self, method: str, url: str, message: str, kind: str = "", response: Any = None
    ) -> None:
        self.method = method
        self.url = url
        self.kind = kind
        self.response = response
        super().__init__(f'{method} "{url}": {message}')


class APIError(WordPressError):
    """WordPress answered with a non-success status.

    ``code``, ``message``, ``status`` and ``params`` are filled from the JSON
    error body when there is one.
    """

    def __init__(
        self,
        response: Any,
        code: str = "",
        message: str = "",
        status: int = 0,
        params: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.response = response
        self.code = code
        self.message = message
        self.status = status
        self.params = params or {}
        super().__init__(message)

    @classmethod
    def from_body(cls, response: Any, body: Dict[str, Any]) -> "APIError":
        data = body.get("data") or {}
        if not isinstance(data, dict):
            data = {}
        return cls(
            response,
            code=body.get("code") or "",
            message=body.get("message") or "",
            status=data.get("status") or 0,
            params=data.get("params") or {},
        )

    def __str__(self) -> str:
        request = self.response.request
        return (
            f"{request.method} {sanitize_url(request.url)}: "
            f"{self.response.status_code} {self.message}"
        )


class DecodeError(WordPressError, ValueError):
    """The response body could not be decoded into the requested shape.

    ``errors`` holds every underlying failure; when raw-body capture is on a
    second failure is appended to the first instead of replacing it.
    """

    def __init__(self, errors: Iterable[BaseException], response: Any = None) -> None:
        self.errors: List[BaseException] = list(errors)
        self.response = response
        super().__init__("\n".join(str(e) for e in self.errors))


def sanitize_url(url: Optional[str]) -> Optional[str]:
    """Return ``url`` with a non-empty ``password`` query value redacted."""
    if not url:
        return url
    parts = urlsplit(url)
    params = parse_qsl(parts.query, keep_blank_values=True)
    if not any(key == "password" and value for key, value in params):
        return url
    params = [(key, REDACTED if key == "password" else value) for key, value in params]
    return urlunsplit(parts._replace(query=urlencode(sorted(params))))


def redact_secrets(text: str, url: Optional[str]) -> str:
    """Remove the ``password`` query value of ``url`` from ``text``.

    Both the encoded and the decoded form are replaced, since transport
    error messages may quote either.
    """
    if not url:
        return text
    for pair in urlsplit(url).query.split("&"):
        key, _, raw = pair.partition("=")
        if unquote_plus(key) != "password" or not raw:
            continue
        for secret in {raw, unquote_plus(raw)}:
            text = text.replace(secret, REDACTED)
    return text
