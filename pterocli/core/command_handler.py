"""Handles parsed CLI commands and delegates them to the transport service.

Converts raw command-line strings (JSON bodies, key=value query pairs,
Name:Value headers) into transport arguments and reports results and
errors through the UserInterface.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from pterocli.core.services.transport_service import TransportService
from pterocli.domain.interfaces.user_interface import UserInterface
from pterocli.domain.models.common import ApiType, JsonValue
from pterocli.domain.models.errors import PanelApiError

logger = logging.getLogger(__name__)

# Lightweight request used to verify credentials against each sub-API
CHECK_REQUESTS = {
    ApiType.CLIENT: ("", {}),
    ApiType.APPLICATION: ("/users", {"per_page": 1}),
}


def parse_pairs(pairs: Optional[Sequence[str]], separator: str, what: str) -> Dict[str, str]:
    """Parses ['a=1', 'b=2'] style arguments into a dict."""
    parsed: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition(separator)
        if not sep or not key.strip():
            raise ValueError(f"Invalid {what} '{pair}'. Expected the form name{separator}value.")
        parsed[key.strip()] = value.strip()
    return parsed


def parse_body(body: Optional[str]) -> Optional[JsonValue]:
    if body is None or body == "":
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise ValueError(f"Request body is not valid JSON: {e}") from e


class CommandHandler:
    """Handles incoming commands and delegates to the transport service."""

    def __init__(self, transport: TransportService, ui: UserInterface):
        self.transport = transport
        self.ui = ui

    async def handle_request(
        self,
        method: str,
        endpoint: str,
        api_type: ApiType = ApiType.CLIENT,
        body: Optional[str] = None,
        query: Optional[Sequence[str]] = None,
        headers: Optional[Sequence[str]] = None,
        credential_index: int = 0,
    ) -> bool:
        """Handles the 'request' command. Returns False if the call failed."""
        logger.info(f"Handling 'request' command: {method} {endpoint} ({api_type.label} API)")
        try:
            options: Dict[str, Any] = {}
            header_overrides = parse_pairs(headers, ":", "header")
            if header_overrides:
                options["headers"] = header_overrides
            result = await self.transport.request(
                method,
                endpoint,
                body=parse_body(body),
                query=parse_pairs(query, "=", "query parameter"),
                options=options,
                credential_index=credential_index,
                api_type=api_type,
            )
        except (PanelApiError, ValueError) as e:
            logger.debug(f"Request command failed: {e}")
            self.ui.display_error(str(e))
            return False
        self.ui.display_json(result)
        return True

    async def handle_list_all(
        self,
        endpoint: str,
        api_type: ApiType = ApiType.CLIENT,
        query: Optional[Sequence[str]] = None,
        credential_index: int = 0,
        as_json: bool = False,
    ) -> bool:
        """Handles the 'list-all' command. Returns False if any page failed."""
        logger.info(f"Handling 'list-all' command: {endpoint} ({api_type.label} API)")
        try:
            items: List[Any] = await self.transport.request_all_items(
                "GET",
                endpoint,
                query=parse_pairs(query, "=", "query parameter"),
                credential_index=credential_index,
                api_type=api_type,
            )
        except (PanelApiError, ValueError) as e:
            logger.debug(f"List-all command failed: {e}")
            self.ui.display_error(str(e))
            return False
        self.ui.display_items(items, title=endpoint, as_json=as_json)
        return True

    async def handle_check(self, api_type: ApiType = ApiType.CLIENT, credential_index: int = 0) -> bool:
        """Handles the 'check' command by making one cheap authenticated request."""
        endpoint, query = CHECK_REQUESTS[api_type]
        logger.info(f"Checking {api_type.label} API credentials at index {credential_index}")
        try:
            await self.transport.request(
                "GET", endpoint, query=query, credential_index=credential_index, api_type=api_type,
            )
        except PanelApiError as e:
            self.ui.display_error(f"{api_type.label} API credential check failed: {e}")
            return False
        self.ui.display_info(f"{api_type.label} API credentials are valid.")
        return True
