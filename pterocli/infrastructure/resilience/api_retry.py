"""Service for executing panel API calls with rate limiting and retries.

Every attempt first passes the per-credential rate limiter. Responses with
HTTP 429 are retried with exponential backoff (5s, 10s, 20s, 40s, 80s by
default); every other failure is raised after a single attempt. This is the
only place in the package where requests are retried.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from pterocli.domain.events.api_events import (
    ApiCallDeferred,
    ApiCallFailed,
    ApiCallInitiated,
    ApiCallSucceeded,
    DomainEvent,
    EventSink,
    RetryScheduled,
    log_event,
)
from pterocli.domain.models.common import ApiType, BackoffPolicy, JsonValue, PanelCredentials, credential_identity
from pterocli.domain.models.errors import MaxRetryError, PanelApiError
from pterocli.domain.models.request import RequestDescriptor
from pterocli.infrastructure.http.request_executor import RequestExecutor
from pterocli.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 5
DEFAULT_BASE_DELAY_MS = 5000
DEFAULT_BACKOFF_FACTOR = 2.0

Sleeper = Callable[[float], Awaitable[None]]


class ApiRetryService:
    """Runs requests through the rate limiter and retries rate limited ones."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        executor: RequestExecutor,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        sleep: Sleeper = asyncio.sleep,
        event_sink: Optional[EventSink] = None,
    ):
        """Initializes the ApiRetryService.

        Args:
            rate_limiter: The rate limiter consulted before every attempt.
            executor: Sends the individual attempts.
            max_retries: Maximum number of retries after the first attempt.
            base_delay_ms: Delay before the first retry, in milliseconds.
            backoff_factor: Multiplier applied to the delay after each retry.
            sleep: Coroutine function used for the backoff waits.
            event_sink: Receives domain events; they are logged if omitted.
        """
        if max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        self.rate_limiter = rate_limiter
        self.executor = executor
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.backoff_factor = backoff_factor
        self._sleep = sleep
        self._event_sink = event_sink or log_event

        logger.info(
            f"ApiRetryService initialized: max_retries={max_retries}, "
            f"base_delay={base_delay_ms}ms, factor={backoff_factor}"
        )

    @property
    def policy(self) -> BackoffPolicy:
        return BackoffPolicy(
            max_retries=self.max_retries,
            base_delay_ms=self.base_delay_ms,
            factor=self.backoff_factor,
        )

    def backoff_delay_ms(self, attempt: int) -> float:
        """Delay before retry number `attempt + 1`."""
        return self.base_delay_ms * (self.backoff_factor ** attempt)

    def _dispatch(self, event: DomainEvent) -> None:
        try:
            self._event_sink(event)
        except Exception as e:
            logger.error(f"Event sink failed for {type(event).__name__}: {e}", exc_info=True)

    async def execute_with_retry(
        self,
        descriptor: RequestDescriptor,
        credentials: PanelCredentials,
        api_type: ApiType,
    ) -> JsonValue:
        """Executes `descriptor`, retrying only on HTTP 429.

        Returns:
            The parsed response body of the first successful attempt.

        Raises:
            MaxRetryError: If the request is still rate limited after all retries.
            PanelApiError: For any other failure, after a single attempt.
        """
        identity = credential_identity(credentials["panel_url"], credentials["api_key"])
        method, endpoint = descriptor.method, descriptor.endpoint
        attempt = 0

        while True:
            # 1. Wait for rate limit permission
            waited = await self.rate_limiter.acquire(identity, api_type)
            if waited > 0:
                self._dispatch(ApiCallDeferred(method=method, endpoint=endpoint, wait_time_seconds=waited))

            # 2. Execute one attempt
            self._dispatch(ApiCallInitiated(method=method, endpoint=endpoint, attempt_number=attempt + 1))
            start_time = time.perf_counter()
            try:
                result = await self.executor.execute(descriptor, credentials)
            except PanelApiError as e:
                if not e.is_rate_limited:
                    logger.error(f"Non-retryable error calling {method} {endpoint} on attempt {attempt + 1}: {e.message}")
                    self._dispatch(ApiCallFailed(
                        method=method, endpoint=endpoint, error_type=e.error_name,
                        error_message=e.message, status_code=e.status_code,
                    ))
                    raise

                if attempt >= self.max_retries:
                    final_error = MaxRetryError(e, self.max_retries)
                    logger.error(f"Max retries ({self.max_retries}) reached for {method} {endpoint}. Last error: {e.message}")
                    self._dispatch(ApiCallFailed(
                        method=method, endpoint=endpoint, error_type=type(final_error).__name__,
                        error_message=final_error.message, status_code=final_error.status_code,
                    ))
                    raise final_error from None

                delay_seconds = self.backoff_delay_ms(attempt) / 1000
                logger.warning(
                    f"Rate limited calling {method} {endpoint} on attempt {attempt + 1}/{self.max_retries + 1}. "
                    f"Waiting {delay_seconds:.2f}s..."
                )
                self._dispatch(RetryScheduled(
                    method=method, endpoint=endpoint, attempt_number=attempt + 1, delay_seconds=delay_seconds,
                ))
                await self._sleep(delay_seconds)
                attempt += 1
                continue

            latency_ms = (time.perf_counter() - start_time) * 1000
            self._dispatch(ApiCallSucceeded(
                method=method, endpoint=endpoint, latency_ms=latency_ms, attempt_number=attempt + 1,
            ))
            return result
