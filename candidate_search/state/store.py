"""Observable state container owned by the reactor.

Snapshots are immutable; every change produces a new ``SearchState`` with a
bumped version and is published to subscribers in order.
"""

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from candidate_search.core.schemas import (
    Candidate,
    FacetSummary,
    RefinementFilterSet,
    SearchQuery,
)

logger = logging.getLogger(__name__)

Listener = Callable[["SearchState"], None]


class SearchState(BaseModel):
    """Canonical search state. ``filtered_results`` is kept in step with
    ``results`` and ``refinement`` by the reactor."""

    model_config = ConfigDict(frozen=True)

    version: int = 0
    results: list[Candidate] = Field(default_factory=list)
    facets: FacetSummary | None = None
    total_count: int = 0
    loading: bool = False
    error: str | None = None
    last_query: str = ""
    active_query: SearchQuery | None = None
    refinement: RefinementFilterSet = Field(default_factory=RefinementFilterSet)
    filtered_results: list[Candidate] = Field(default_factory=list)
    cache_active: bool = False


class StateStore:
    """Publish/subscribe store with a single mutation point."""

    def __init__(self, initial: SearchState | None = None) -> None:
        self._state = initial or SearchState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> SearchState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, **changes: Any) -> SearchState:
        """Apply ``changes`` atomically and notify subscribers."""
        unknown = set(changes) - set(SearchState.model_fields)
        if unknown or "version" in changes:
            msg = f"Cannot update state fields: {sorted(unknown | ({'version'} & set(changes)))}"
            raise ValueError(msg)
        self._state = self._state.model_copy(
            update={**changes, "version": self._state.version + 1},
        )
        for listener in list(self._listeners):
            listener(self._state)
        return self._state
