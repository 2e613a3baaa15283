"""Domain Events related to panel API calls and resilience.

Examples include events for when calls are deferred by the rate limiter,
retried after a 429, fail, succeed, or when a list page is fetched.
"""

from dataclasses import dataclass, field
import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


# --- Specific API Events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when a network attempt is about to be made."""
    method: str
    endpoint: str
    attempt_number: int = 1
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when an API call succeeds."""
    method: str
    endpoint: str
    latency_ms: float
    attempt_number: int = 1
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when an API call fails definitively."""
    method: str
    endpoint: str
    error_type: str
    error_message: str
    status_code: Optional[int] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallDeferred(DomainEvent):
    """Event triggered when the rate limiter held a call back."""
    method: str
    endpoint: str
    wait_time_seconds: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a rate limited call is scheduled for another attempt."""
    method: str
    endpoint: str
    attempt_number: int
    delay_seconds: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class PageFetched(DomainEvent):
    """Event triggered when one page of a list endpoint has been aggregated."""
    endpoint: str
    page: int
    item_count: int
    total_pages: Optional[int] = None
    timestamp: float = field(default_factory=time.time)


EventSink = Callable[[DomainEvent], None]


def log_event(event: DomainEvent) -> None:
    """Default sink: events are only logged."""
    logger.debug(f"EVENT: {event}")
