"""Read views derived from a ``SearchState`` snapshot.

Pure functions, recomputed on read. Presentation code consumes these instead
of reaching into the state fields directly.
"""

from candidate_search.core.schemas import Candidate, RefinementAxis
from candidate_search.refine.chips import DEFAULT_MAX_CHIPS, FacetChip, generate_chips
from candidate_search.state.store import SearchState


def display_results(state: SearchState) -> list[Candidate]:
    """Filtered results while a refinement is active, raw results otherwise."""
    if state.refinement.is_active():
        return list(state.filtered_results)
    return list(state.results)


def result_count(state: SearchState) -> int:
    return len(display_results(state))


def total_result_count(state: SearchState) -> int:
    return len(state.results)


def has_results(state: SearchState) -> bool:
    return result_count(state) > 0


def has_error(state: SearchState) -> bool:
    return state.error is not None


def is_empty(state: SearchState) -> bool:
    """Nothing searched yet: idle, no results and no query."""
    return not state.loading and not state.results and state.last_query == ""


def has_internal_filters(state: SearchState) -> bool:
    return state.refinement.is_active()


def internal_filter_count(state: SearchState) -> int:
    return state.refinement.active_count()


def active_filter_count(state: SearchState) -> int:
    """Number of server-side facet filters on the active query."""
    if state.active_query is None:
        return 0
    return state.active_query.facet_filters.active_count()


def average_match_score(state: SearchState) -> int:
    """Mean match score of the displayed results as a rounded percentage."""
    results = display_results(state)
    if not results:
        return 0
    mean = sum(c.match_score for c in results) / len(results)
    return round(mean * 100)


def result_summary(state: SearchState) -> str:
    total = total_result_count(state)
    if has_internal_filters(state):
        return f"{result_count(state)} of {total} candidates match"
    return f"{total} candidate{'' if total == 1 else 's'} found"


def chips(
    state: SearchState,
    category: RefinementAxis,
    limit: int = DEFAULT_MAX_CHIPS,
) -> list[FacetChip]:
    """Chips for ``category`` drawn from the unfiltered results."""
    active = getattr(state.refinement, category)
    return generate_chips(state.results, category, active=active, limit=limit)
