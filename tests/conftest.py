import io
import json

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from wpapi import ClientConfig, WordPressClient


class CountingBody(io.BytesIO):
    """Response body that records how often it was closed."""

    def __init__(self, data=b""):
        super().__init__(data)
        self.close_count = 0

    def close(self):
        self.close_count += 1
        super().close()


class FakeAdapter(BaseAdapter):
    """Transport double mounted on a real ``requests.Session``."""

    def __init__(self):
        super().__init__()
        self.queue = []
        self.requests = []
        self.send_kwargs = []
        self.bodies = []

    def add(self, status=200, body=b"", headers=None):
        if not isinstance(body, (bytes, str, CountingBody)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.queue.append((status, body, headers or {}))

    def fail(self, exc):
        self.queue.append(exc)

    def send(self, request, **kwargs):
        self.requests.append(request)
        self.send_kwargs.append(kwargs)
        item = self.queue.pop(0)
        if callable(item) and not isinstance(item, tuple):
            item = item()
        if isinstance(item, Exception):
            raise item

        status, body, headers = item
        response = requests.Response()
        response.status_code = status
        response.headers = CaseInsensitiveDict(headers)
        response.raw = body if isinstance(body, CountingBody) else CountingBody(body)
        response.url = request.url
        response.request = request
        response.reason = "Fake"
        response.encoding = "utf-8"
        self.bodies.append(response.raw)
        return response

    def close(self):
        pass


@pytest.fixture
def adapter():
    return FakeAdapter()


@pytest.fixture
def session(adapter):
    s = requests.Session()
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    return s


@pytest.fixture
def client(session):
    return WordPressClient(ClientConfig("https://example.com"), session=session)
