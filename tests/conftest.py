"""
Shared fixtures: an in-memory Transport and a controllable clock.
"""
import json
from typing import Optional, Union

import pytest

from edgar_vault.core.ports import JSON_ACCEPT, Transport
from edgar_vault.errors import HTTPStatusError

Response = Union[bytes, Exception, list]


class FakeTransport(Transport):
    """Serves canned responses by URL; unknown URLs answer 404."""

    def __init__(self, responses: Optional[dict[str, Response]] = None):
        self.responses: dict[str, Response] = dict(responses or {})
        self.calls: list[str] = []
        self.kwargs: list[dict] = []

    def add_json(self, url: str, payload) -> None:
        self.responses[url] = json.dumps(payload).encode("utf-8")

    async def fetch(self, url, accept=JSON_ACCEPT, timeout=None, sniff_blocks=True) -> bytes:
        self.calls.append(url)
        self.kwargs.append({"accept": accept, "timeout": timeout, "sniff_blocks": sniff_blocks})
        response = self.responses.get(url)
        if isinstance(response, list):
            # A list is consumed one response per call
            response = response.pop(0)
        if response is None:
            raise HTTPStatusError(404, url=url)
        if isinstance(response, Exception):
            raise response
        return response


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def clock():
    return FakeClock()
