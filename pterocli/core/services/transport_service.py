"""Downstream call contract for panel operation handlers.

`TransportService.request` resolves and validates credentials, builds the
request descriptor and hands it to the retry service, returning the parsed
response body. `request_all_items` walks a paginated list endpoint through
the PaginationService and returns the flattened items.
"""

import logging
from typing import Any, List, Mapping, Optional

from pterocli.core.services.pagination_service import PaginationService
from pterocli.domain.events.api_events import EventSink
from pterocli.domain.interfaces.credentials import CredentialResolver
from pterocli.domain.models.common import ApiType, Endpoint, JsonValue, PanelCredentials, normalize_method
from pterocli.domain.models.errors import ConfigurationError
from pterocli.domain.models.request import RequestDescriptor
from pterocli.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)


class TransportService:
    """Authenticated, rate limited and retrying access to the panel API."""

    def __init__(
        self,
        credential_resolver: CredentialResolver,
        retry_service: ApiRetryService,
        event_sink: Optional[EventSink] = None,
    ):
        self.credential_resolver = credential_resolver
        self.retry_service = retry_service
        self.pagination = PaginationService(self.request, event_sink=event_sink)

    def resolve_credentials(self, api_type: ApiType, credential_index: int = 0) -> PanelCredentials:
        """Looks up credentials and checks both fields before any network call.

        Raises:
            ConfigurationError: If the credentials are missing or incomplete.
        """
        try:
            credentials = self.credential_resolver.resolve(api_type, credential_index)
        except LookupError as e:
            logger.debug(f"Credential lookup failed: {e}")
            raise ConfigurationError(
                f"{api_type.label} API credentials not configured. "
                f"Please add the credentials in the pterocli configuration."
            ) from None

        if not credentials.get("panel_url"):
            raise ConfigurationError(
                "Panel URL is not configured in credentials. "
                "Please configure your Pterodactyl credentials in the pterocli configuration."
            )
        if not credentials.get("api_key"):
            raise ConfigurationError("API Key is not configured in credentials")
        return credentials

    async def request(
        self,
        method: str,
        endpoint: str,
        body: Optional[JsonValue] = None,
        query: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
        credential_index: int = 0,
        api_type: ApiType = ApiType.CLIENT,
    ) -> JsonValue:
        """Makes an authenticated request to the panel API.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE).
            endpoint: Path below the API base, e.g. '/servers'.
            body: JSON request body.
            query: Query string parameters.
            options: 'headers' overrides and/or 'timeout' in seconds.
            credential_index: Which configured credential set to use.
            api_type: Client or Application API.

        Returns:
            The parsed response body (None for empty responses).

        Raises:
            PanelApiError: If the call fails, after retries for HTTP 429.
        """
        credentials = self.resolve_credentials(api_type, credential_index)
        descriptor = RequestDescriptor(
            method=normalize_method(method),
            api_base=api_type.api_base,
            endpoint=Endpoint(endpoint),
            body=body,
            query=dict(query or {}),
            options=dict(options or {}),
        )
        return await self.retry_service.execute_with_retry(descriptor, credentials, api_type)

    async def request_all_items(
        self,
        method: str,
        endpoint: str,
        body: Optional[JsonValue] = None,
        query: Optional[Mapping[str, Any]] = None,
        credential_index: int = 0,
        api_type: ApiType = ApiType.CLIENT,
    ) -> List[Any]:
        """Makes requests to a paginated endpoint and returns the items of all pages."""
        return await self.pagination.fetch_all(
            method,
            endpoint,
            body=body,
            query=query,
            credential_index=credential_index,
            api_type=api_type,
        )
