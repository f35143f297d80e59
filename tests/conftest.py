import asyncio
import inspect
import sys
from pathlib import Path
from typing import Dict, Optional, Tuple

import keyring
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError


_ASYNCIO_MARK_ATTR = "_tiger_asyncio_marker"


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))

from tiger_cli.logging import redact  # noqa: E402
from tiger_cli.services.models import ConnectionPooler, Endpoint, Service  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "asyncio: run the marked test using an asyncio event loop",
    )


def pytest_collection_modifyitems(
    session: pytest.Session, config: pytest.Config, items: list[pytest.Item]
) -> None:
    del session  # unused but kept for hook signature compatibility
    has_anyio = config.pluginmanager.hasplugin("anyio")
    for item in items:
        if item.get_closest_marker("asyncio"):
            setattr(item, _ASYNCIO_MARK_ATTR, True)
            if has_anyio:
                item.add_marker(pytest.mark.anyio)


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> object:
    if not getattr(pyfuncitem, _ASYNCIO_MARK_ATTR, False):
        return None
    test_func = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_func):
        return None
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        # Only pass the fixtures the test asks for
        argnames = pyfuncitem._fixtureinfo.argnames
        coroutine = test_func(**{name: pyfuncitem.funcargs[name] for name in argnames})
        loop.run_until_complete(coroutine)
        loop.run_until_complete(loop.shutdown_asyncgens())
    finally:
        asyncio.set_event_loop(None)
        loop.close()
    return True


class MemoryKeyring(KeyringBackend):
    """Keyring backend that keeps passwords in a dict."""

    priority = 1

    def __init__(self) -> None:
        super().__init__()
        self.passwords: Dict[Tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> Optional[str]:
        return self.passwords.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.passwords[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        try:
            del self.passwords[(service, username)]
        except KeyError:
            raise PasswordDeleteError("not found") from None


class BrokenKeyring(KeyringBackend):
    """Keyring backend whose vault can never be reached."""

    priority = 1

    def get_password(self, service: str, username: str) -> Optional[str]:
        raise KeyringError("vault locked")

    def set_password(self, service: str, username: str, password: str) -> None:
        raise KeyringError("vault locked")

    def delete_password(self, service: str, username: str) -> None:
        raise KeyringError("vault locked")


@pytest.fixture(autouse=True)
def isolated_secrets(monkeypatch):
    """Forget secrets registered for redaction by earlier tests."""
    monkeypatch.setattr(redact, "_registered", set())


@pytest.fixture
def memory_keyring():
    """Replace the system keyring with an in-memory one."""
    previous = keyring.get_keyring()
    backend = MemoryKeyring()
    keyring.set_keyring(backend)
    try:
        yield backend
    finally:
        keyring.set_keyring(previous)


@pytest.fixture
def broken_keyring():
    previous = keyring.get_keyring()
    keyring.set_keyring(BrokenKeyring())
    try:
        yield
    finally:
        keyring.set_keyring(previous)


@pytest.fixture
def service() -> Service:
    """A ready service with both a direct and a pooled endpoint."""
    return Service(
        service_id="svc-12345",
        project_id="proj-67890",
        name="metrics",
        status="READY",
        endpoint=Endpoint(host="db.example.com", port=5432),
        connection_pooler=ConnectionPooler(
            endpoint=Endpoint(host="pool.example.com", port=6432)
        ),
    )


@pytest.fixture
def pgpass_path(tmp_path) -> Path:
    return tmp_path / ".pgpass"
