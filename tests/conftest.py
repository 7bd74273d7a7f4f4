"""Shared fixtures for the Agno Playground tests."""
from __future__ import annotations

from typing import Callable, Iterable, List

import httpx
import pytest

from agno_playground.agno_client import AgnoAPIClient

AGNO_ENDPOINT = "http://agno.test"


def sse_response(chunks: Iterable[bytes], status_code: int = 200) -> httpx.Response:
    """Streaming response that delivers the body in the given byte chunks."""
    parts: List[bytes] = list(chunks)

    async def body():
        for part in parts:
            yield part

    return httpx.Response(
        status_code,
        headers={"content-type": "text/event-stream; charset=utf-8"},
        content=body(),
    )


@pytest.fixture
def recorded_requests() -> List[httpx.Request]:
    return []


@pytest.fixture
def make_client(recorded_requests) -> Callable[[Callable[[httpx.Request], httpx.Response]], AgnoAPIClient]:
    """Build an AgnoAPIClient whose requests are answered by ``handler``."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> AgnoAPIClient:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return handler(request)

        return AgnoAPIClient(AGNO_ENDPOINT, timeout=5, transport=httpx.MockTransport(recording_handler))

    return factory
