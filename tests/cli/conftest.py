"""pytest configuration for Tiger CLI command tests."""

from typing import Callable, Dict, List, Tuple

import httpx
import pytest
from typer.testing import CliRunner

from tiger_cli import ux
from tiger_cli.cli import common
from tiger_cli.config import settings
from tiger_cli.services.api_client import ServiceAPIClient

SERVICE_BODY = {
    "service_id": "svc-12345",
    "project_id": "proj-67890",
    "name": "metrics",
    "status": "READY",
    "endpoint": {"host": "db.example.com", "port": 5432},
}

Route = Callable[[httpx.Request], httpx.Response]


class FakeAPI:
    """Routes requests by method and path suffix; records every request."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], List[Route]] = {}
        self.requests: List[httpx.Request] = []
        self.on("GET", "/services/svc-12345", lambda request: httpx.Response(200, json=SERVICE_BODY))

    def on(self, method: str, suffix: str, *responders: Route) -> None:
        """Answer with ``responders`` in turn, repeating the last one."""
        self.routes[(method, suffix)] = list(responders)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for (method, suffix), responders in self.routes.items():
            if request.method == method and request.url.path.endswith(suffix):
                responder = responders.pop(0) if len(responders) > 1 else responders[0]
                return responder(request)
        return httpx.Response(404, json={"message": "not found"})


@pytest.fixture
def runner():
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def fake_api(monkeypatch):
    api = FakeAPI()

    def make_client(api_url, api_key):
        return ServiceAPIClient(
            api_url=api_url, api_key=api_key, transport=httpx.MockTransport(api.handle)
        )

    monkeypatch.setattr(common, "ServiceAPIClient", make_client)
    return api


@pytest.fixture(autouse=True)
def cli_environment(monkeypatch, tmp_path, memory_keyring):
    """Isolate configuration, logs and password storage for each test."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("TIGER_NEW_PASSWORD", raising=False)
    monkeypatch.setattr(settings, "API_BASE_URL", "http://localhost:3000/api/v1")
    monkeypatch.setattr(settings, "API_KEY", "test-key")
    monkeypatch.setattr(settings, "PROJECT_ID", "proj-67890")
    monkeypatch.setattr(settings, "SERVICE_ID", "svc-12345")
    monkeypatch.setattr(settings, "PGPASS_FILE", str(tmp_path / ".pgpass"))
    monkeypatch.setattr(settings, "DEBUG", False)
    # Keep rich from wrapping long messages
    monkeypatch.setattr(ux.console, "width", 200)
    return memory_keyring
