"""Performs exactly one authenticated HTTP attempt against the panel.

Builds the final URL and headers for a RequestDescriptor, sends it through a
shared httpx.AsyncClient and classifies the outcome: the parsed body on 2xx,
a normalized PanelApiError otherwise. Rate limiting and retries happen in
the resilience layer, not here.
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx

from pterocli.domain.models.common import JsonValue, PanelCredentials, strip_trailing_slash
from pterocli.domain.models.request import RequestDescriptor
from pterocli.infrastructure.http.error_normalizer import normalize_exception, normalize_response_error

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "application/vnd.pterodactyl.v1+json"
DEFAULT_TIMEOUT_SECONDS = 30.0
BODYLESS_METHODS = ("GET", "DELETE")


def build_url(panel_url: str, api_base: str, endpoint: str) -> str:
    """Joins panel URL, API base and endpoint without doubling the slash."""
    return f"{strip_trailing_slash(panel_url)}{api_base}{endpoint}"


def build_headers(api_key: str, overrides: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Returns the fixed panel headers merged with caller overrides (overrides win)."""
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Accept": ACCEPT_HEADER,
        "Content-Type": "application/json",
    }
    if overrides:
        headers.update(overrides)
    return headers


def _query_params(query: Any) -> Dict[str, Any]:
    return {k: v for k, v in dict(query or {}).items() if v is not None}


def _parse_body(response: httpx.Response) -> JsonValue:
    if response.status_code == 204 or not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class RequestExecutor:
    """Sends single requests to the panel. Holds no rate limit state."""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """Initializes the executor.

        Args:
            http_client: Client to send requests with. One is created if omitted
                and closed again by `aclose()`.
            timeout: Default request timeout in seconds.
        """
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self.timeout = timeout

    async def execute(self, descriptor: RequestDescriptor, credentials: PanelCredentials) -> JsonValue:
        """Sends `descriptor` once using `credentials`.

        Returns:
            Parsed JSON body, raw text for non-JSON bodies, or None for empty ones.

        Raises:
            PanelApiError: On a non-2xx status or a transport failure.
        """
        url = build_url(credentials["panel_url"], descriptor.api_base, descriptor.endpoint)
        headers = build_headers(credentials["api_key"], descriptor.header_overrides)
        send_body = descriptor.body is not None and not (
            descriptor.method in BODYLESS_METHODS and not descriptor.body
        )
        timeout = descriptor.timeout if descriptor.timeout is not None else self.timeout

        logger.debug(f"{descriptor.method} {url}")
        start_time = time.perf_counter()
        try:
            response = await self.http_client.request(
                descriptor.method,
                url,
                headers=headers,
                params=_query_params(descriptor.query),
                json=descriptor.body if send_body else None,
                timeout=timeout,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Transport error calling {descriptor.method} {url}: {type(e).__name__}: {e}")
            raise normalize_exception(e) from None
        latency_ms = (time.perf_counter() - start_time) * 1000

        if response.is_success:
            logger.debug(f"{descriptor.method} {url} -> {response.status_code} in {latency_ms:.2f}ms")
            return _parse_body(response)

        try:
            error_body = response.json() if response.content else None
        except ValueError:
            error_body = None
        error = normalize_response_error(response.status_code, error_body, response.reason_phrase)
        logger.debug(f"{descriptor.method} {url} -> {response.status_code}: {error.message}")
        raise error

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()
