"""Turns panel error responses and transport exceptions into PanelApiError values.

The panel reports failures as `{"errors": [{"code", "status", "detail"}]}`.
When that envelope is missing, the HTTP status code alone is mapped to a
hint telling the user what to check.
"""

import traceback
from typing import Any, Optional

from pterocli.domain.models.errors import PanelApiError

ERROR_NAMESPACE = "Pterodactyl API"

STATUS_HINTS = {
    401: "API key invalid/expired.",
    403: "Insufficient permissions, server suspended, or API key lacks access.",
    404: "Resource not found. Check server ID/identifier or endpoint URL.",
    409: "Server suspended, power action in progress, or would exceed disk limits.",
    422: "Validation error. Check input parameters.",
    429: "Rate limit exceeded. Enable retry-on-fail with bounded attempts and wait.",
    500: "Upstream panel error. Check panel logs.",
    502: "Backing daemon down/unreachable.",
}


def enhance_error_message(base_message: str, status_code: Optional[int] = None) -> str:
    """Appends the hint for `status_code` to `base_message`, if one is known."""
    hint = STATUS_HINTS.get(status_code) if status_code is not None else None
    if not hint:
        return base_message
    if not base_message:
        return hint
    return f"{base_message} - {hint}"


def extract_panel_error(body: Any) -> Optional[str]:
    """Returns the base message built from the first entry of an error envelope."""
    if not isinstance(body, dict):
        return None
    errors = body.get("errors")
    if not isinstance(errors, list) or not errors:
        return None
    first = errors[0]
    if not isinstance(first, dict):
        return None
    return f"{ERROR_NAMESPACE} Error [{first.get('code')}]: {first.get('detail')}"


def normalize_response_error(
    status_code: int,
    body: Any = None,
    reason_phrase: Optional[str] = None,
) -> PanelApiError:
    """Builds the error for a non-2xx response."""
    base_message = extract_panel_error(body) or reason_phrase or f"HTTP {status_code} error"
    return PanelApiError(enhance_error_message(base_message, status_code), status_code=status_code)


def normalize_exception(error: BaseException) -> PanelApiError:
    """Wraps a transport exception, keeping its name, message and traceback as text.

    Errors that are already normalized are returned unchanged.
    """
    if isinstance(error, PanelApiError):
        return error
    status_code = getattr(error, "status_code", None)
    if not isinstance(status_code, int):
        status_code = None
    message = str(error) or "Unknown error occurred"
    if status_code is not None:
        message = enhance_error_message(message, status_code)
    return PanelApiError(
        message,
        status_code=status_code,
        error_name=type(error).__name__,
        traceback_text="".join(traceback.format_exception(type(error), error, error.__traceback__)),
    )
