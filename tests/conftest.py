from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from rsconnector.config import ClientConfig
from rsconnector.factories import create_client

BASE_URL = "https://dam.example.com/api/"
API_SECRET = "a" * 64


class FakeServer:
    """
    Фейковый ResourceSpace поверх httpx.MockTransport.
    responses: function -> значение JSON | httpx.Response | callable(params).
    """

    def __init__(self, responses: dict[str, Any]):
        self.responses = responses
        self.calls: list[dict[str, str]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params.items())
        self.calls.append(params)
        reply = self.responses[params["function"]]
        if callable(reply):
            reply = reply(params)
        if isinstance(reply, httpx.Response):
            # Один и тот же ответ может отдаваться несколько раз.
            return httpx.Response(reply.status_code, content=reply.content, headers=reply.headers)
        return httpx.Response(200, json=reply)

    def functions(self) -> list[str]:
        return [call["function"] for call in self.calls]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def rs_server() -> Callable[[dict[str, Any]], FakeServer]:
    return FakeServer


@pytest.fixture
def make_client() -> Callable[..., Any]:
    def factory(server: FakeServer, *capabilities: Any, **overrides: Any) -> Any:
        config = ClientConfig(base_url=BASE_URL, user="admin", secret=API_SECRET, **overrides)
        return create_client(config, *capabilities, transport=server.transport)

    return factory
