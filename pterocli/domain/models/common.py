"""Defines common Value Objects used across the panel transport.

These objects represent simple values or concepts like endpoints, HTTP methods
and credential identities, ensuring consistency and type safety.
"""

import hashlib
from enum import Enum
from typing import Any, Dict, List, NewType, Optional, TypedDict, Union

# === Core Value Objects ===

Endpoint = NewType("Endpoint", str)            # Path below the API base, e.g. /servers
HttpMethod = NewType("HttpMethod", str)        # GET, POST, PUT, PATCH, DELETE
CredentialIdentity = NewType("CredentialIdentity", str) # Rate limiter bucket key

# Untyped JSON at the transport boundary; handlers decode it themselves.
JsonValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")


class ApiType(str, Enum):
    """The two Pterodactyl sub-APIs, each with its own base path and key type."""

    CLIENT = "client"
    APPLICATION = "application"

    @property
    def api_base(self) -> str:
        return "/api/client" if self is ApiType.CLIENT else "/api/application"

    @property
    def label(self) -> str:
        return "Client" if self is ApiType.CLIENT else "Application"


# --- Structured Data ---
class PanelCredentials(TypedDict):
    """Resolved credentials for one panel and API key."""
    panel_url: str
    api_key: str


class PaginationMeta(TypedDict, total=False):
    """`meta.pagination` block of a panel list response."""
    total: int
    count: int
    per_page: int
    current_page: int
    total_pages: int


class BackoffPolicy(TypedDict):
    """Value Object representing retry backoff configuration."""
    max_retries: int
    base_delay_ms: int
    factor: float


def strip_trailing_slash(panel_url: str) -> str:
    """Removes a single trailing slash, as the panel URL is joined with the API base."""
    return panel_url[:-1] if panel_url.endswith("/") else panel_url


def credential_identity(panel_url: str, api_key: str) -> CredentialIdentity:
    """Derives the rate limiter key for a (panel URL, API key) pair.

    Both parts are length-prefixed before hashing so two different pairs can
    never produce the same input, and the raw key is not kept as a map key.
    """
    url = strip_trailing_slash(panel_url)
    material = f"{len(url)}:{url}|{len(api_key)}:{api_key}"
    return CredentialIdentity(hashlib.sha256(material.encode("utf-8")).hexdigest())


def normalize_method(method: str) -> HttpMethod:
    """Upper-cases and validates an HTTP method name."""
    upper = str(method).upper()
    if upper not in HTTP_METHODS:
        raise ValueError(f"Unsupported HTTP method '{method}'. Expected one of: {', '.join(HTTP_METHODS)}")
    return HttpMethod(upper)


def pagination_of(response: JsonValue) -> Optional[PaginationMeta]:
    """Returns the `meta.pagination` block of a list response, if present."""
    if not isinstance(response, dict):
        return None
    meta = response.get("meta")
    if not isinstance(meta, dict):
        return None
    pagination = meta.get("pagination")
    return pagination if isinstance(pagination, dict) else None
