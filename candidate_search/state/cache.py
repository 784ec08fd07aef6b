"""Single-entry cache of the last successful search.

Lets a caller returning from a detail view replay results without a network
round trip. Last search wins; there is no expiry.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from candidate_search.core.schemas import (
    Candidate,
    FacetSummary,
    ResultCacheEntry,
    SearchQuery,
)

logger = logging.getLogger(__name__)


class ResultCache:
    """Holds at most one ``ResultCacheEntry``.

    Usage::

        cache = ResultCache()
        cache.capture(items, facets, total_count, query)
        entry = cache.restore()   # deep copy, or None when empty
        cache.invalidate()
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._entry: ResultCacheEntry | None = None

    @property
    def is_active(self) -> bool:
        return self._entry is not None

    @property
    def captured_at(self) -> datetime | None:
        return self._entry.captured_at if self._entry is not None else None

    def capture(
        self,
        items: list[Candidate],
        facet_summary: FacetSummary | None,
        total_count: int,
        query: SearchQuery,
    ) -> ResultCacheEntry:
        """Replace any previous entry with a snapshot of this search."""
        entry = ResultCacheEntry(
            items=list(items),
            facet_summary=facet_summary,
            total_count=total_count,
            query=query,
            captured_at=self._clock(),
        ).model_copy(deep=True)
        self._entry = entry
        logger.debug("Cached %d results for '%s'", len(items), query.text)
        return entry

    def restore(self) -> ResultCacheEntry | None:
        """Return a deep copy of the cached entry, or None if nothing is cached."""
        if self._entry is None:
            return None
        return self._entry.model_copy(deep=True)

    def invalidate(self) -> None:
        if self._entry is not None:
            logger.debug("Invalidated cached results for '%s'", self._entry.query.text)
        self._entry = None
