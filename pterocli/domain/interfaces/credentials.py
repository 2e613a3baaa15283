"""Interface for credential resolution.

Defines the contract for looking up the panel URL and API key to use for a
given sub-API and credential index. Storage is up to the implementation.
"""

import abc

from pterocli.domain.models.common import ApiType, PanelCredentials


class CredentialResolver(abc.ABC):
    """Abstract Base Class for retrieving panel credentials."""

    @abc.abstractmethod
    def resolve(self, api_type: ApiType, index: int = 0) -> PanelCredentials:
        """Returns the credentials configured for `api_type` at position `index`.

        Args:
            api_type: Which sub-API the credentials are for.
            index: Position of the credential set, for callers holding several.

        Returns:
            The panel URL and API key. Either may be empty; the transport
            validates them before any network call.

        Raises:
            LookupError: If no credentials are configured at that position.
        """
        pass
