"""Interface for presenting results to the user.

Defines the contract for displaying API responses, errors, warnings and
informational messages, allowing different UI implementations.
"""

import abc
from typing import Any, List

from pterocli.domain.models.common import JsonValue


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_json(self, payload: JsonValue, **kwargs: Any) -> None:
        """Displays a parsed API response.

        Args:
            payload: The JSON value returned by the panel.
            **kwargs: Additional arguments for formatting (e.g., title).
        """
        pass

    @abc.abstractmethod
    def display_items(self, items: List[Any], **kwargs: Any) -> None:
        """Displays the items of an aggregated list response."""
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass
