"""Typed payloads and the targets responses are decoded into."""
from __future__ import annotations

import datetime as dt
import json
from dataclasses import dataclass, field, fields
from typing import Any, BinaryIO, Dict, List, Optional, Type

from .timecodec import TimeCodec


def timestamp_field(gmt: bool = False, json_key: Optional[str] = None):
    """Declare a dataclass field holding a WordPress timestamp.

    ``gmt=True`` marks fields such as ``date_gmt`` that WordPress always
    reports in GMT.
    """
    metadata: Dict[str, Any] = {"timestamp": "gmt" if gmt else "local"}
    if json_key:
        metadata["json"] = json_key
    return field(default=None, metadata=metadata)


@dataclass
class Model:
    """Base class for resources exchanged with the REST API.

    Attribute names map to JSON keys unless a field declares
    ``metadata={"json": key}``; a ``None`` key keeps the field out of JSON.
    """

    @classmethod
    def from_json(cls, data: Any, codec: TimeCodec):
        if not isinstance(data, dict):
            raise TypeError(f"cannot decode {type(data).__name__} into {cls.__name__}")
        values = {}
        for f in fields(cls):
            key = f.metadata.get("json", f.name)
            if key is None or key not in data:
                continue
            value = data[key]
            kind = f.metadata.get("timestamp")
            if kind is not None and value is not None:
                value = codec.parse_gmt(value) if kind == "gmt" else codec.parse(value)
            values[f.name] = value
        return cls(**values)

    def to_json(self, codec: TimeCodec) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            key = f.metadata.get("json", f.name)
            if key is None:
                continue
            value = getattr(self, f.name)
            kind = f.metadata.get("timestamp")
            if kind is not None and value is not None:
                value = codec.format_gmt(value) if kind == "gmt" else codec.format(value)
            out[key] = value
        return out


@dataclass
class RootInfo(Model):
    """Public information from the REST API index."""

    name: str = ""
    description: str = ""
    url: str = ""
    home_url: str = field(default="", metadata={"json": "home"})
    gmt_offset: float = 0
    timezone_string: str = ""
    permalink_structure: str = ""
    namespaces: List[str] = field(default_factory=list)
    authentication: Any = None
    location: Optional[dt.tzinfo] = field(default=None, metadata={"json": None})


@dataclass
class DeleteResponse(Model):
    """Envelope WordPress returns for a forced delete."""

    deleted: bool = False
    previous: Any = None


class WordPressJSONEncoder(json.JSONEncoder):
    """JSON encoder for request bodies.

    Datetimes are written in the canonical WordPress layout in the codec's
    location, and models through :meth:`Model.to_json`.
    """

    def __init__(self, *args, codec: Optional[TimeCodec] = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.codec = codec or TimeCodec()

    def default(self, o):
        if isinstance(o, Model):
            return o.to_json(self.codec)
        if isinstance(o, dt.datetime):
            return self.codec.format(o)
        return super().default(o)


def encode_json(value: Any, codec: TimeCodec) -> bytes:
    """Encode a request body; ``<``, ``>`` and ``&`` are left as they are."""
    return json.dumps(value, cls=WordPressJSONEncoder, codec=codec, ensure_ascii=False).encode("utf-8")


class JSONResult:
    """Decode the response body as JSON.

    Without a ``model`` the decoded JSON is kept as is. With one, objects are
    built with ``model.from_json`` and arrays become lists of models. The
    outcome is stored on :attr:`value`.
    """

    def __init__(self, model: Optional[Type[Model]] = None) -> None:
        self.model = model
        self.value: Any = None

    def load(self, data: Any, codec: TimeCodec) -> None:
        if self.model is None:
            self.value = data
        elif isinstance(data, list):
            self.value = [self.model.from_json(item, codec) for item in data]
        else:
            self.value = self.model.from_json(data, codec)

    def __repr__(self) -> str:
        model = self.model.__name__ if self.model else None
        return f"JSONResult(model={model}, value={self.value!r})"


class ByteSink:
    """Copy the response body verbatim into a writable binary stream."""

    chunk_size = 8192

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream
        self.written = 0

    def write(self, data: bytes) -> None:
        self.stream.write(data)
        self.written += len(data)

    def load(self, data: Any, codec: TimeCodec) -> None:
        self.write(encode_json(data, codec))
