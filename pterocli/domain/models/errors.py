"""Error types surfaced by the panel transport.

Every failure that leaves the transport is a PanelApiError (the normalized
error shape): a non-empty message plus an optional HTTP status code.
"""

from typing import Optional


class PanelApiError(Exception):
    """Normalized error raised for any failed panel API call.

    Attributes:
        message: Human readable description, never empty.
        status_code: HTTP status of the failed response, if any.
        error_name: Class name of the wrapped transport exception, if any.
        traceback_text: Formatted traceback of the wrapped exception, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_name: Optional[str] = None,
        traceback_text: Optional[str] = None,
    ):
        self.message = message or "Unknown error occurred"
        self.status_code = status_code
        self.error_name = error_name or type(self).__name__
        self.traceback_text = traceback_text
        super().__init__(self.message)

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, status_code={self.status_code!r})"


class ConfigurationError(PanelApiError):
    """Raised when credentials are missing or incomplete. Never retried."""


class MaxRetryError(PanelApiError):
    """Raised when a request is still rate limited after all retries."""

    def __init__(self, last_error: PanelApiError, max_retries: int):
        self.max_retries = max_retries
        self.last_message = last_error.message
        super().__init__(
            f"Max retries ({max_retries}) exceeded. Last error: {last_error.message}",
            status_code=last_error.status_code,
        )
