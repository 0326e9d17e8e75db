"""wpapi package.

Typed client for the WordPress REST API: URL building for pretty and
non-pretty permalinks, generic CRUD calls, media uploads, pagination
headers and WordPress timestamps.
"""

__all__ = [
    "APIError",
    "ByteSink",
    "Canceled",
    "ClientConfig",
    "ConfigurationError",
    "Context",
    "DeadlineExceeded",
    "DecodeError",
    "DeleteOptions",
    "JSONResult",
    "ListOptions",
    "Model",
    "Response",
    "RootInfo",
    "Service",
    "TimeCodec",
    "TransportError",
    "URLContainsAPIPrefixError",
    "WordPressClient",
    "WordPressError",
    "background",
    "build_session",
    "timestamp_field",
    "with_cancel",
    "with_timeout",
]

from .context import Context, background, with_cancel, with_timeout
from .errors import (
    APIError,
    Canceled,
    ConfigurationError,
    DeadlineExceeded,
    DecodeError,
    TransportError,
    URLContainsAPIPrefixError,
    WordPressError,
)
from .models import ByteSink, JSONResult, Model, RootInfo, timestamp_field
from .options import DeleteOptions, ListOptions
from .response import Response
from .timecodec import TimeCodec
from .wordpress_client import ClientConfig, Service, WordPressClient, build_session
