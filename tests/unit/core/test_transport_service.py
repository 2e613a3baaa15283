import httpx
import pytest

from pterocli.core.services.transport_service import TransportService
from pterocli.domain.models.common import ApiType, PanelCredentials
from pterocli.domain.models.errors import ConfigurationError, MaxRetryError, PanelApiError
from pterocli.infrastructure.resilience.api_retry import ApiRetryService
from pterocli.infrastructure.resilience.rate_limiter import RateLimiter

from tests.conftest import StaticCredentialResolver, json_response, make_executor


class Panel:
    """Scripted panel: pops one response per request and records the requests."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def build_transport(panel, resolver, fake_clock) -> TransportService:
    limiter = RateLimiter(clock=fake_clock, sleep=fake_clock.sleep)
    retry_service = ApiRetryService(limiter, make_executor(panel), sleep=fake_clock.sleep)
    return TransportService(resolver, retry_service)


@pytest.mark.asyncio
async def test_request_returns_parsed_body(credential_resolver, fake_clock):
    panel = Panel(json_response(200, {"object": "list", "data": [{"attributes": {"name": "mc"}}]}))
    transport = build_transport(panel, credential_resolver, fake_clock)

    result = await transport.request("get", "/servers", query={"include": "egg"})

    assert result["data"][0]["attributes"]["name"] == "mc"
    request = panel.requests[0]
    assert request.method == "GET"
    assert str(request.url) == "https://panel.example.com/api/client/servers?include=egg"
    assert credential_resolver.calls == [(ApiType.CLIENT, 0)]


@pytest.mark.asyncio
async def test_application_api_uses_its_own_credentials(credential_resolver, application_credentials, fake_clock):
    panel = Panel(json_response(200, {"data": []}))
    transport = build_transport(panel, credential_resolver, fake_clock)

    await transport.request("GET", "/users", api_type=ApiType.APPLICATION)

    assert panel.requests[0].url.path == "/api/application/users"
    assert panel.requests[0].headers["Authorization"] == f"Bearer {application_credentials['api_key']}"


@pytest.mark.asyncio
async def test_missing_credentials(fake_clock):
    panel = Panel()
    transport = build_transport(panel, StaticCredentialResolver(), fake_clock)

    with pytest.raises(ConfigurationError, match="Application API credentials not configured"):
        await transport.request("GET", "/users", api_type=ApiType.APPLICATION)
    assert panel.requests == []


@pytest.mark.asyncio
async def test_missing_panel_url(fake_clock):
    panel = Panel()
    resolver = StaticCredentialResolver({(ApiType.CLIENT, 0): PanelCredentials(panel_url="", api_key="k")})
    transport = build_transport(panel, resolver, fake_clock)

    with pytest.raises(ConfigurationError, match="Panel URL is not configured"):
        await transport.request("GET", "/servers")
    assert panel.requests == []


@pytest.mark.asyncio
async def test_missing_api_key(fake_clock):
    panel = Panel()
    resolver = StaticCredentialResolver({(ApiType.CLIENT, 0): PanelCredentials(panel_url="https://p", api_key="")})
    transport = build_transport(panel, resolver, fake_clock)

    with pytest.raises(ConfigurationError, match="API Key is not configured in credentials"):
        await transport.request("GET", "/servers")
    assert panel.requests == []


@pytest.mark.asyncio
async def test_unknown_method_is_rejected(credential_resolver, fake_clock):
    transport = build_transport(Panel(), credential_resolver, fake_clock)

    with pytest.raises(ValueError, match="Unsupported HTTP method"):
        await transport.request("TRACE", "/servers")


@pytest.mark.asyncio
async def test_rate_limited_response_is_retried(credential_resolver, fake_clock):
    panel = Panel(json_response(429), json_response(200, {"attributes": {"uuid": "abc"}}))
    transport = build_transport(panel, credential_resolver, fake_clock)

    result = await transport.request("GET", "/servers/abc")

    assert result == {"attributes": {"uuid": "abc"}}
    assert len(panel.requests) == 2
    assert fake_clock.sleeps == [5.0]


@pytest.mark.asyncio
async def test_retries_are_exhausted(credential_resolver, fake_clock):
    panel = Panel(*[json_response(429) for _ in range(6)])
    transport = build_transport(panel, credential_resolver, fake_clock)

    with pytest.raises(MaxRetryError) as exc_info:
        await transport.request("POST", "/servers/abc/command", body={"command": "say hi"})

    assert len(panel.requests) == 6
    assert exc_info.value.status_code == 429


@pytest.mark.asyncio
async def test_conflict_is_raised_immediately(credential_resolver, fake_clock):
    payload = {"errors": [{"code": "ConflictHttpException", "status": "409", "detail": "Server is busy."}]}
    panel = Panel(json_response(409, payload))
    transport = build_transport(panel, credential_resolver, fake_clock)

    with pytest.raises(PanelApiError) as exc_info:
        await transport.request("POST", "/servers/abc/power", body={"signal": "start"})

    assert exc_info.value.status_code == 409
    assert "Server is busy." in exc_info.value.message
    assert fake_clock.sleeps == []


@pytest.mark.asyncio
async def test_request_all_items(credential_resolver, fake_clock):
    panel = Panel(
        json_response(200, {"data": [{"id": 1}], "meta": {"pagination": {"current_page": 1, "total_pages": 2}}}),
        json_response(200, {"data": [{"id": 2}], "meta": {"pagination": {"current_page": 2, "total_pages": 2}}}),
    )
    transport = build_transport(panel, credential_resolver, fake_clock)

    items = await transport.request_all_items("GET", "/servers", query={"per_page": 1})

    assert items == [{"id": 1}, {"id": 2}]
    assert [r.url.params["page"] for r in panel.requests] == ["1", "2"]
    assert all(r.url.params["per_page"] == "1" for r in panel.requests)
