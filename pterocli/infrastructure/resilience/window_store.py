"""Bounded in-memory store of rate windows, one per credential identity.

Entries are created lazily. Idle entries expire after `idle_ttl` seconds and
the least recently used entry is evicted once `max_entries` is exceeded, so
the store does not grow without bound when many credentials pass through one
process. Entries that are locked or have callers waiting on them are never
evicted.
"""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional

from pterocli.domain.models.common import CredentialIdentity

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 1024
DEFAULT_IDLE_TTL_SECONDS = 120.0


@dataclass
class RateWindowState:
    """Request accounting for one credential in the current window."""
    window_start: float
    request_count: int = 0
    last_used: float = 0.0
    waiters: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def reset(self, now: float) -> None:
        self.window_start = now
        self.request_count = 0

    @property
    def in_use(self) -> bool:
        return self.lock.locked() or self.waiters > 0


class RateWindowStore:
    """LRU and TTL bounded mapping of CredentialIdentity to RateWindowState."""

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        idle_ttl: float = DEFAULT_IDLE_TTL_SECONDS,
    ):
        """Initializes the store.

        Args:
            max_entries: Maximum number of credentials tracked at once.
            idle_ttl: Seconds after the last use at which an entry may be dropped.
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.idle_ttl = idle_ttl
        self._entries: "OrderedDict[CredentialIdentity, RateWindowState]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identity: object) -> bool:
        return identity in self._entries

    def get(self, identity: CredentialIdentity) -> Optional[RateWindowState]:
        return self._entries.get(identity)

    def get_or_create(self, identity: CredentialIdentity, now: float) -> RateWindowState:
        """Returns the window for `identity`, creating it if needed, and marks it used."""
        self._prune(now)
        state = self._entries.get(identity)
        if state is None:
            state = RateWindowState(window_start=now)
            self._entries[identity] = state
            logger.debug(f"Rate window created for credential {identity[:10]}...")
            self._evict_lru(keep=identity)
        else:
            self._entries.move_to_end(identity)
        state.last_used = now
        return state

    def clear(self) -> None:
        self._entries.clear()

    def _prune(self, now: float) -> None:
        """Drops entries idle for longer than the TTL."""
        expired = [
            key for key, state in self._entries.items()
            if now - state.last_used > self.idle_ttl and not state.in_use
        ]
        for key in expired:
            del self._entries[key]
            logger.debug(f"Rate window EXPIRED for credential {key[:10]}...")

    def _evict_lru(self, keep: CredentialIdentity) -> None:
        """Evicts least recently used idle entries while over capacity."""
        for key in list(self._entries.keys()):
            if len(self._entries) <= self.max_entries:
                break
            if key == keep or self._entries[key].in_use:
                continue
            del self._entries[key]
            logger.debug(f"Rate window EVICTED (LRU) for credential {key[:10]}...")
