import json
from typing import Callable, List

import httpx
import pytest
from typer.testing import CliRunner

from pterocli.domain.interfaces.credentials import CredentialResolver
from pterocli.domain.models.common import ApiType, PanelCredentials
from pterocli.infrastructure.config import settings
from pterocli.infrastructure.http.request_executor import RequestExecutor

PANEL_URL = "https://panel.example.com"
CLIENT_KEY = "ptlc_test_client_key_1234567890abcdef"
APPLICATION_KEY = "ptla_test_application_key_1234567890abcdef"


class FakeClock:
    """Monotonic clock whose sleep advances time instantly and records the delay."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class StaticCredentialResolver(CredentialResolver):
    """Resolver over an in-memory mapping of (api_type, index) to credentials."""

    def __init__(self, credentials=None):
        self.credentials = credentials or {}
        self.calls = []

    def resolve(self, api_type: ApiType, index: int = 0) -> PanelCredentials:
        self.calls.append((api_type, index))
        try:
            return self.credentials[(api_type, index)]
        except KeyError:
            raise LookupError(f"nothing configured for {api_type.value}[{index}]") from None


def json_response(status_code: int, payload=None) -> httpx.Response:
    if payload is None:
        return httpx.Response(status_code)
    return httpx.Response(status_code, content=json.dumps(payload).encode(), headers={"Content-Type": "application/json"})


def make_executor(handler: Callable[[httpx.Request], httpx.Response]) -> RequestExecutor:
    """RequestExecutor whose HTTP client is served by `handler` instead of the network."""
    return RequestExecutor(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client_credentials() -> PanelCredentials:
    return PanelCredentials(panel_url=PANEL_URL, api_key=CLIENT_KEY)


@pytest.fixture
def application_credentials() -> PanelCredentials:
    return PanelCredentials(panel_url=PANEL_URL, api_key=APPLICATION_KEY)


@pytest.fixture
def credential_resolver(client_credentials, application_credentials) -> StaticCredentialResolver:
    return StaticCredentialResolver({
        (ApiType.CLIENT, 0): client_credentials,
        (ApiType.APPLICATION, 0): application_credentials,
    })


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_configuration(monkeypatch):
    """Keeps every test independent of the developer's config files and environment."""
    monkeypatch.setattr(settings, "_config", {})
    monkeypatch.setattr(settings, "_loaded", False)
    for name in ("PTERODACTYL_PANEL_URL", "PTERODACTYL_CLIENT_API_KEY", "PTERODACTYL_APPLICATION_API_KEY"):
        # set first so monkeypatch restores the original state, even after load_dotenv writes it
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    yield
    settings.clear_test_config()
