"""Request descriptor handed from the transport service to the executor."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .common import Endpoint, HttpMethod, JsonValue


@dataclass(frozen=True)
class RequestDescriptor:
    """One logical call against the panel, immutable for its whole retry sequence."""
    method: HttpMethod
    api_base: str
    endpoint: Endpoint
    body: Optional[JsonValue] = None
    query: Mapping[str, Any] = field(default_factory=dict)
    # Supported keys: 'headers' (caller overrides win) and 'timeout' (seconds)
    options: Mapping[str, Any] = field(default_factory=dict)

    @property
    def header_overrides(self) -> Dict[str, str]:
        headers = self.options.get("headers") or {}
        return {str(k): str(v) for k, v in dict(headers).items()}

    @property
    def timeout(self) -> Optional[float]:
        timeout = self.options.get("timeout")
        return float(timeout) if timeout is not None else None
