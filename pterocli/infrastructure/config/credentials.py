"""Credential resolver backed by the configuration settings.

Credentials are read from `client.credentials` / `application.credentials`
lists in the YAML config:

    client:
      credentials:
        - panel_url: https://panel.example.com
          api_key: ptlc_...

For index 0, the environment variables PTERODACTYL_PANEL_URL together with
PTERODACTYL_CLIENT_API_KEY or PTERODACTYL_APPLICATION_API_KEY are used when
no list is configured.
"""

import logging
from typing import Any, List

from pterocli.domain.interfaces.credentials import CredentialResolver
from pterocli.domain.models.common import ApiType, PanelCredentials
from pterocli.infrastructure.config.settings import get_config, get_str

logger = logging.getLogger(__name__)

PANEL_URL_ENV = 'PTERODACTYL_PANEL_URL'


def api_key_env(api_type: ApiType) -> str:
    return f"PTERODACTYL_{api_type.value.upper()}_API_KEY"


class SettingsCredentialResolver(CredentialResolver):
    """Resolves credentials from YAML lists, falling back to environment variables."""

    def _configured_entries(self, api_type: ApiType) -> List[Any]:
        entries = get_config(f"{api_type.value}.credentials")
        if entries is None:
            return []
        if not isinstance(entries, list):
            logger.warning(f"'{api_type.value}.credentials' is not a list and will be ignored.")
            return []
        return entries

    def resolve(self, api_type: ApiType, index: int = 0) -> PanelCredentials:
        entries = self._configured_entries(api_type)
        if entries:
            if index < 0 or index >= len(entries):
                raise LookupError(f"No {api_type.label} API credentials at index {index} ({len(entries)} configured)")
            entry = entries[index]
            if not isinstance(entry, dict):
                raise LookupError(f"{api_type.label} API credentials at index {index} are not a mapping")
            return PanelCredentials(
                panel_url=str(entry.get('panel_url') or ''),
                api_key=str(entry.get('api_key') or ''),
            )

        if index != 0:
            raise LookupError(f"No {api_type.label} API credentials at index {index}")

        panel_url = get_str(PANEL_URL_ENV)
        api_key = get_str(api_key_env(api_type))
        if panel_url is None and api_key is None:
            raise LookupError(f"No {api_type.label} API credentials configured")
        logger.debug(f"Using {api_type.label} API credentials from environment")
        return PanelCredentials(panel_url=panel_url or '', api_key=api_key or '')
