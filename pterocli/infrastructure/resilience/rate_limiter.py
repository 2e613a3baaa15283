"""Implementation of a per-credential rate limiter.

Controls the frequency of outgoing requests so one process never exceeds the
panel's per-key request budget. Uses a fixed accounting window per credential
identity: once the budget for the current window is spent, the caller waits
for the rest of the window and a fresh window starts when it wakes up.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from pterocli.domain.models.common import ApiType, CredentialIdentity
from pterocli.infrastructure.resilience.window_store import RateWindowStore

logger = logging.getLogger(__name__)

# Panel defaults: APP_API_CLIENT_RATELIMIT / APP_API_APPLICATION_RATELIMIT
DEFAULT_CLIENT_BUDGET = 720
DEFAULT_APPLICATION_BUDGET = 240
DEFAULT_WINDOW_SECONDS = 60.0

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class RateLimiter:
    """Fixed window rate limiter keyed by credential identity."""

    def __init__(
        self,
        client_budget: int = DEFAULT_CLIENT_BUDGET,
        application_budget: int = DEFAULT_APPLICATION_BUDGET,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        store: Optional[RateWindowStore] = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ):
        """Initializes the rate limiter.

        Args:
            client_budget: Requests allowed per window for Client API keys.
            application_budget: Requests allowed per window for Application API keys.
            window_seconds: Length of the accounting window in seconds.
            store: Window store to use. A bounded store is created if omitted.
            clock: Monotonic time source, in seconds.
            sleep: Coroutine function used to wait.
        """
        if client_budget < 1 or application_budget < 1:
            raise ValueError("Rate limit budgets must be at least 1")
        self.client_budget = client_budget
        self.application_budget = application_budget
        self.window_seconds = window_seconds
        self.store = store if store is not None else RateWindowStore(idle_ttl=window_seconds * 2)
        self._clock = clock
        self._sleep = sleep
        logger.info(
            f"RateLimiter initialized: client={client_budget}, application={application_budget} "
            f"requests / {window_seconds} seconds"
        )

    def budget_for(self, api_type: ApiType) -> int:
        return self.client_budget if api_type is ApiType.CLIENT else self.application_budget

    async def acquire(self, identity: CredentialIdentity, api_type: ApiType) -> float:
        """Waits until a request is permitted and counts it against the window.

        The window lock is held only while the window is checked and updated,
        never while sleeping.

        Returns:
            Seconds spent waiting (0.0 when the request was admitted immediately).
        """
        budget = self.budget_for(api_type)
        waited = 0.0
        while True:
            state = self.store.get_or_create(identity, self._clock())
            async with state.lock:
                now = self._clock()
                if now - state.window_start > self.window_seconds:
                    state.reset(now)
                if state.request_count < budget:
                    state.request_count += 1
                    logger.debug(f"Rate limit permission granted ({state.request_count}/{budget}).")
                    return waited
                elapsed = now - state.window_start
                wait_time = min(max(0.0, self.window_seconds - elapsed), self.window_seconds)
                observed_start = state.window_start
                state.waiters += 1

            logger.warning(f"Rate limit budget of {budget} reached. Waiting for {wait_time:.2f} seconds.")
            try:
                await self._sleep(wait_time)
            finally:
                state.waiters -= 1
            waited += wait_time

            async with state.lock:
                # Another waiter may already have opened the new window
                if state.window_start == observed_start:
                    state.reset(self._clock())

    async def get_wait_time(self, identity: CredentialIdentity, api_type: ApiType) -> float:
        """Estimates the time needed before the next request can be made."""
        state = self.store.get(identity)
        if state is None:
            return 0.0
        async with state.lock:
            now = self._clock()
            elapsed = now - state.window_start
            if elapsed > self.window_seconds or state.request_count < self.budget_for(api_type):
                return 0.0
            return max(0.0, self.window_seconds - elapsed)
