import json
from typing import Any, Callable, Dict, Optional

import httpx
import pytest
from oapi_client.core.context import Context
from oapi_client.core.dependency_container import DependencyContainer
from oapi_client.settings import Settings
from oapi_client.transport import HttpxTransport

OAPI_ENV_VARS = ["OAPI_DOMAIN", "OAPI_APP_ID", "OAPI_APP_SECRET", "OAPI_APP_TYPE", "OAPI_HTTP_TIMEOUT", "LOG_LEVEL"]

TEST_DOMAIN = "https://open.example.com"


@pytest.fixture(autouse=True)
def clean_oapi_env(monkeypatch):
    """AUTOUSE: Starts every test from a known environment, whatever .env the machine has."""
    for name in OAPI_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OAPI_DOMAIN", TEST_DOMAIN)
    monkeypatch.setenv("OAPI_APP_ID", "cli_test_app")
    monkeypatch.setenv("OAPI_APP_SECRET", "test_secret")
    yield


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def json_response() -> Callable[..., httpx.Response]:
    """Provides a factory for JSON envelope responses."""

    def _make(payload: Any, status_code: int = 200, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        all_headers = {"Content-Type": "application/json; charset=utf-8", "X-Request-Id": "req-123"}
        all_headers.update(headers or {})
        return httpx.Response(status_code, headers=all_headers, content=json.dumps(payload).encode())

    return _make


@pytest.fixture
def make_context(settings) -> Callable[..., Context]:
    """Provides a factory for contexts whose network is an httpx.MockTransport handler."""

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        token_providers=None,
        handlers=None,
        **context_kwargs,
    ) -> Context:
        transport = HttpxTransport(httpx.Client(transport=httpx.MockTransport(handler)))
        container = DependencyContainer(
            settings=settings, transport=transport, token_providers=token_providers, handlers=handlers
        )
        return Context(container, **context_kwargs)

    return _make
