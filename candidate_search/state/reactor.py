"""Search state reactor: the single owner of search state.

Data flow:
  1. Debounced inputs (query text, options, refinement text) settle
  2. ``search`` validates, records the request id, dispatches to the API
  3. Responses for superseded request ids are dropped
  4. Success replaces results atomically, captures the cache, resets refinement
  5. Failure empties results and sets one classified error message
  6. Refinement recomputes ``filtered_results`` from the unfiltered base

Every mutation goes through ``StateStore.update``; collaborators only get
snapshots and copies.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from candidate_search.core.config import Settings
from candidate_search.core.errors import classify
from candidate_search.core.schemas import (
    Candidate,
    FacetAxis,
    RefinementAxis,
    RefinementFilterSet,
    SearchQuery,
    SearchResponse,
)
from candidate_search.refine.chips import FacetChip, derive_facet_summary
from candidate_search.refine.filters import apply_refinement as filter_candidates
from candidate_search.search.client import RequestSequencer
from candidate_search.search.debounce import (
    DebounceDecision,
    DebounceGate,
    DebounceTimer,
    DecisionKind,
)
from candidate_search.state import views
from candidate_search.state.cache import ResultCache
from candidate_search.state.store import Listener, SearchState, StateStore
from candidate_search.sync.url_state import Location, UrlStateSynchronizer, from_query_string

logger = logging.getLogger(__name__)


class SearchApi(Protocol):
    """Anything that can run a remote search (``SearchApiClient`` in production)."""

    async def search(self, query: SearchQuery) -> SearchResponse: ...


class SearchReactor:
    """Composes the debounce gates, API, cache, filters and URL sync.

    Usage::

        async with SearchApiClient(settings.api) as api:
            reactor = SearchReactor(api, settings, location=InMemoryLocation())
            await reactor.search(reactor.default_query("kotlin developer"))
            reactor.toggle_refinement("technologies", "Spring")
            views.result_count(reactor.state)
    """

    def __init__(
        self,
        api: SearchApi,
        settings: Settings,
        *,
        location: Location | None = None,
        cache: ResultCache | None = None,
    ) -> None:
        self._api = api
        self._settings = settings
        self._defaults = settings.search
        self._store = StateStore()
        self._cache = cache or ResultCache()
        self._sequencer = RequestSequencer()
        self._url = UrlStateSynchronizer(location, settings.search) if location is not None else None

        self._top_k = settings.search.default_top_k
        self._min_score = settings.search.default_min_score

        debounce = settings.debounce
        self._query_gate = DebounceGate(
            debounce.query_ms / 1000,
            self._defaults.min_query_length,
            self._on_query_decision,
            name="query",
        )
        self._options_timer: DebounceTimer[tuple[int, float]] = DebounceTimer(
            debounce.options_ms / 1000,
            self._on_options_settled,
            name="options",
        )
        self._refinement_gate = DebounceGate(
            debounce.refinement_text_ms / 1000,
            1,
            self._on_refinement_text_decision,
            name="refinement",
        )

    # --- Read access ---

    @property
    def state(self) -> SearchState:
        return self._store.state

    @property
    def cache(self) -> ResultCache:
        return self._cache

    @property
    def display_results(self) -> list[Candidate]:
        return views.display_results(self._store.state)

    def chips(self, category: RefinementAxis) -> list[FacetChip]:
        return views.chips(self._store.state, category, limit=self._settings.refinement.max_chips)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self._store.subscribe(listener)

    def default_query(self, text: str = "") -> SearchQuery:
        """A query with the current options and no facet filters."""
        return SearchQuery(text=text, top_k=self._top_k, min_score=self._min_score)

    # --- Remote search ---

    async def search(self, query: SearchQuery, update_url: bool = True) -> None:
        """Run a remote search and fold the outcome into state.

        ``update_url=False`` is for restoring state that came from the URL.
        """
        if len(query.text.strip()) < self._defaults.min_query_length:
            # Below the minimum: clear without I/O; in-flight responses become stale.
            self._sequencer.issue()
            self._store.update(
                results=[],
                facets=None,
                total_count=0,
                error=None,
                loading=False,
                last_query="",
                active_query=None,
                filtered_results=[],
                refinement=RefinementFilterSet(),
            )
            if update_url:
                self._write_url(query)
            return

        request_id = self._sequencer.issue()
        self._cache.invalidate()
        self._store.update(
            loading=True,
            error=None,
            last_query=query.text,
            active_query=query,
            cache_active=False,
        )
        if update_url:
            self._write_url(query)

        logger.info("Dispatching search #%d for '%s'", request_id, query.text)
        try:
            response = await self._api.search(query)
        except asyncio.CancelledError:
            if self._sequencer.is_current(request_id):
                self._store.update(loading=False)
            raise
        except Exception as exc:
            if not self._sequencer.is_current(request_id):
                logger.debug("Dropping failure of superseded search #%d", request_id)
                return
            e = classify(exc)
            logger.warning("Search #%d failed (%s): %s", request_id, e.kind.value, e)
            self._store.update(
                loading=False,
                error=e.user_message,
                results=[],
                facets=None,
                total_count=0,
                filtered_results=[],
                refinement=RefinementFilterSet(),
            )
            return

        if not self._sequencer.is_current(request_id):
            logger.debug("Dropping response of superseded search #%d", request_id)
            return

        results = list(response.results)
        facets = response.facets
        if facets is None:
            facets = derive_facet_summary(results)
        self._cache.capture(results, facets, response.total_count, query)
        self._store.update(
            results=results,
            facets=facets,
            total_count=response.total_count,
            loading=False,
            error=None,
            refinement=RefinementFilterSet(),
            filtered_results=list(results),
            cache_active=True,
        )
        logger.info("Search #%d: %d results", request_id, len(results))

    async def toggle_facet_filter(self, axis: FacetAxis, value: str) -> None:
        """Switch a server-side facet value on or off and search again."""
        current = self._store.state.active_query or self.default_query(self._store.state.last_query)
        await self.search(
            current.model_copy(update={"facet_filters": current.facet_filters.toggle(axis, value)}),
        )

    async def clear_facet_filters(self) -> None:
        """Drop all facet filters, keeping text, topK and minScore."""
        current = self._store.state.active_query or self.default_query(self._store.state.last_query)
        await self.search(SearchQuery(text=current.text, top_k=current.top_k, min_score=current.min_score))

    def clear(self) -> None:
        """Reset results, filters, cache and URL.

        A pending options change survives; it applies to the next search.
        """
        self._query_gate.cancel()
        self._refinement_gate.cancel()
        self._sequencer.issue()
        self._cache.invalidate()
        self._store.update(
            results=[],
            facets=None,
            total_count=0,
            error=None,
            loading=False,
            last_query="",
            active_query=None,
            refinement=RefinementFilterSet(),
            filtered_results=[],
            cache_active=False,
        )
        self._write_url(self.default_query())
        logger.info("Search state cleared")

    # --- Cache / navigation ---

    def restore_from_cache(self) -> bool:
        """Replay the cached search into live state. Returns False if nothing is cached."""
        entry = self._cache.restore()
        if entry is None:
            return False
        # Anything still in flight predates the state being restored.
        self._sequencer.issue()
        refinement = self._store.state.refinement
        self._store.update(
            results=entry.items,
            facets=entry.facet_summary,
            total_count=entry.total_count,
            last_query=entry.query.text,
            active_query=entry.query,
            loading=False,
            error=None,
            filtered_results=filter_candidates(entry.items, refinement),
            cache_active=True,
        )
        logger.info("Restored %d cached results for '%s'", len(entry.items), entry.query.text)
        return True

    async def open_from_url(
        self,
        query_string: str | None = None,
        *,
        returning: bool = False,
    ) -> None:
        """Restore state from a shareable link.

        With no ``query_string`` the link is read from the location and left
        as is. An externally supplied ``query_string`` is pushed onto the
        location as a new history entry; later writes replace that entry.

        When ``returning`` (back from a detail view) and the cache holds a
        search for the same query, it is replayed instead of re-fetched.
        """
        if query_string is None:
            if self._url is None:
                msg = "No location configured and no query string given"
                raise ValueError(msg)
            query = self._url.read()
        else:
            query = from_query_string(query_string, self._defaults)
            if self._url is not None:
                self._url.push(query)

        self._top_k, self._min_score = query.top_k, query.min_score

        if returning:
            entry = self._cache.restore()
            if entry is not None and entry.query == query:
                self.restore_from_cache()
                return
            logger.debug("Cache does not match link query, running a fresh search")

        if len(query.text.strip()) >= self._defaults.min_query_length:
            await self.search(query, update_url=False)

    # --- Client-side refinement (never I/O) ---

    def apply_refinement(self, filters: RefinementFilterSet) -> list[Candidate]:
        filtered = filter_candidates(self._store.state.results, filters)
        self._store.update(refinement=filters, filtered_results=filtered)
        return filtered

    def update_refinement_text(self, text: str) -> list[Candidate]:
        return self.apply_refinement(self._store.state.refinement.with_text(text))

    def toggle_refinement(self, axis: RefinementAxis, value: str) -> list[Candidate]:
        return self.apply_refinement(self._store.state.refinement.toggle(axis, value))

    def clear_refinement(self) -> list[Candidate]:
        return self.apply_refinement(RefinementFilterSet())

    # --- Debounced inputs ---

    def on_query_input(self, text: str) -> None:
        self._query_gate.push(text)

    def on_options_change(self, top_k: int, min_score: float) -> None:
        self._options_timer.push((top_k, min_score))

    def on_refinement_text_input(self, text: str) -> None:
        self._refinement_gate.push(text)

    def cancel_pending(self) -> None:
        self._query_gate.cancel()
        self._options_timer.cancel()
        self._refinement_gate.cancel()

    async def wait_idle(self) -> None:
        """Wait for every armed timer and the searches they trigger."""
        for gate in (self._query_gate, self._options_timer, self._refinement_gate):
            await gate.wait_idle()

    async def _on_query_decision(self, decision: DebounceDecision) -> None:
        if decision.kind is DecisionKind.CLEAR:
            self.clear()
            return
        await self.search(self.default_query(decision.value))

    async def _on_options_settled(self, options: tuple[int, float]) -> None:
        top_k, min_score = options
        self._top_k, self._min_score = top_k, min_score
        current = self._store.state.active_query
        if current is None or len(current.text.strip()) < self._defaults.min_query_length:
            logger.debug("Options changed with no active query, nothing to re-run")
            return
        await self.search(
            SearchQuery(
                text=current.text,
                top_k=top_k,
                min_score=min_score,
                facet_filters=current.facet_filters,
            ),
        )

    def _on_refinement_text_decision(self, decision: DebounceDecision) -> None:
        self.update_refinement_text(decision.value)

    def _write_url(self, query: SearchQuery) -> None:
        if self._url is not None:
            self._url.write(query)
