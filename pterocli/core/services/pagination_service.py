"""Aggregates the pages of a panel list endpoint into one list."""

import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional

from pterocli.domain.events.api_events import EventSink, PageFetched, log_event
from pterocli.domain.models.common import ApiType, JsonValue, pagination_of

logger = logging.getLogger(__name__)

PageRequest = Callable[..., Awaitable[JsonValue]]


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class PaginationService:
    """Walks `?page=N` until the panel reports the last page."""

    def __init__(self, request_page: PageRequest, event_sink: Optional[EventSink] = None):
        """Initializes the service.

        Args:
            request_page: Coroutine function with the TransportService.request
                signature; every page goes through it, including its retries.
            event_sink: Receives a PageFetched event per page.
        """
        self._request_page = request_page
        self._event_sink = event_sink or log_event

    async def fetch_all(
        self,
        method: str,
        endpoint: str,
        body: Optional[JsonValue] = None,
        query: Optional[Mapping[str, Any]] = None,
        credential_index: int = 0,
        api_type: ApiType = ApiType.CLIENT,
    ) -> List[Any]:
        """Returns the `data` items of every page, in page order.

        A failure on any page propagates and the items gathered so far are
        dropped.
        """
        page = 1
        all_items: List[Any] = []

        while True:
            response = await self._request_page(
                method,
                endpoint,
                body=body,
                query={**dict(query or {}), "page": page},
                options=None,
                credential_index=credential_index,
                api_type=api_type,
            )

            items = response.get("data") if isinstance(response, dict) else None
            if isinstance(items, list):
                all_items.extend(items)

            pagination = pagination_of(response)
            total_pages = pagination.get("total_pages") if pagination else None
            self._event_sink(PageFetched(
                endpoint=endpoint,
                page=page,
                item_count=len(items) if isinstance(items, list) else 0,
                total_pages=total_pages,
            ))

            total = _as_int(total_pages)
            if not pagination or total is None:
                break
            # our own counter bounds the walk even if the panel ignores ?page=
            current_page = _as_int(pagination.get("current_page")) or page
            if max(current_page, page) >= total:
                break
            page += 1

        logger.debug(f"Fetched {len(all_items)} items from {endpoint} over {page} page(s)")
        return all_items
