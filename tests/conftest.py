"""Shared test fixtures."""

import asyncio
import os
from pathlib import Path

import httpx
import pytest

from alphacloud.api.connector import Connector
from alphacloud.cache.disk import CACHE_FILE_NAME, DiskCache
from alphacloud.config.settings import Configuration, get_settings

DATA_DIR = Path(__file__).parent / "data"


def data_path(name: str) -> Path:
    return DATA_DIR / name


class FakeApi:
    """Serves canned API responses through ``httpx.MockTransport``.

    Responses are keyed by endpoint name, i.e. the last path segment.
    """

    def __init__(self) -> None:
        self.responses: dict[str, tuple[int, bytes] | Exception] = {}
        self.requests: list[httpx.Request] = []
        self.gate: asyncio.Event | None = None

    def serve(self, endpoint: str, fixture: str | None = None, content: bytes = b"", status_code: int = 200) -> None:
        """Answer requests to an endpoint with a fixture file or raw content."""
        if fixture is not None:
            content = data_path(fixture).read_bytes()
        self.responses[str(endpoint)] = (status_code, content)

    def fail(self, endpoint: str, error: Exception) -> None:
        """Make requests to an endpoint raise a transport error."""
        self.responses[str(endpoint)] = error

    def hold(self) -> asyncio.Event:
        """Hold all responses until the returned event is set."""
        self.gate = asyncio.Event()
        return self.gate

    def count(self, endpoint: str) -> int:
        return sum(1 for request in self.requests if request.url.path.endswith(f"/{endpoint}"))

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        endpoint = request.url.path.rsplit("/", 1)[-1]
        response = self.responses.get(endpoint)

        # The response is picked on arrival, not on release.
        if self.gate is not None:
            await self.gate.wait()

        if response is None:
            return httpx.Response(404, content=b"Not Found")
        if isinstance(response, Exception):
            raise response

        status_code, content = response
        return httpx.Response(status_code, content=content)


class SignalSpy:
    """Records every emission of a signal."""

    def __init__(self, signal) -> None:
        self.calls: list[tuple] = []
        signal.connect(self)

    def __call__(self, *args) -> None:
        self.calls.append(args)

    def __len__(self) -> int:
        return len(self.calls)

    def names(self) -> list:
        return [call[0] for call in self.calls]

    def values(self, name: str) -> list:
        return [call[1] for call in self.calls if call[0] == name]


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep tests away from the user's configuration, cache and environment."""
    for key in list(os.environ):
        if key.startswith("ALPHACLOUD_"):
            monkeypatch.delenv(key)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.chdir(tmp_path)

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def configuration() -> Configuration:
    """Create a valid test configuration."""
    return Configuration(
        api_url="https://api.example.com/api",
        app_id="alpha123456",
        app_secret="abc123456789",
        request_timeout=5000,
    )


@pytest.fixture
def transport(fake_api) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_api.handler))


@pytest.fixture
def connector(configuration, transport) -> Connector:
    return Connector(configuration, transport)


@pytest.fixture
def disk_cache(tmp_path) -> DiskCache:
    return DiskCache(tmp_path / "cache" / CACHE_FILE_NAME)


@pytest.fixture
def spy():
    return SignalSpy
