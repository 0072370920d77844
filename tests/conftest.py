# Precog Client
# File: tests/conftest.py
# Version: v1

from __future__ import annotations

from typing import Callable, List

import httpx
import pytest

from precog_client.client import PrecogClient
from precog_client.config import ClientConfig
from precog_client.mock import MockPrecogService

API_KEY = "test-api-key"
ENDPOINT = "https://api.precog.test"


class RecordingHandler:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]) -> None:
        self.respond = respond
        self.requests: List[httpx.Request] = []
        self.bodies: List[bytes] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.bodies.append(request.read())
        return self.respond(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


APPEND_OK = {"total": 1, "ingested": 1, "failed": 0, "ingestId": "i-1", "errors": []}
QUERY_OK = {"data": [], "errors": [], "warnings": []}


@pytest.fixture
def make_client():
    """Build a client whose requests go to ``respond`` instead of the network."""
    created: List[PrecogClient] = []

    def _make(respond, base_path: str = "/") -> tuple[PrecogClient, RecordingHandler]:
        handler = RecordingHandler(respond)
        config = ClientConfig(endpoint=ENDPOINT, api_key=API_KEY, base_path=base_path)
        client = PrecogClient(config=config, transport=httpx.MockTransport(handler))
        created.append(client)
        return client, handler

    yield _make

    for client in created:
        client.close()


@pytest.fixture
def service() -> MockPrecogService:
    return MockPrecogService(api_key=API_KEY)


@pytest.fixture
def client(service: MockPrecogService):
    config = ClientConfig(endpoint=ENDPOINT, api_key=API_KEY, base_path="/")
    with PrecogClient(config=config, transport=service.transport()) as c:
        yield c
