"""Tests for the single-entry result cache."""

from datetime import datetime

from candidate_search.core.schemas import Candidate, FacetCount, FacetSummary, SearchQuery
from candidate_search.state.cache import ResultCache

NOW = datetime(2025, 3, 1, 9, 30)


def _candidate(id: str, technologies: list[str] | None = None) -> Candidate:
    return Candidate(id=id, name=f"Dev {id}", technologies=technologies or [], match_score=0.8)


def _cache() -> ResultCache:
    return ResultCache(clock=lambda: NOW)


class TestResultCache:
    def test_empty_by_default(self) -> None:
        cache = _cache()
        assert not cache.is_active
        assert cache.restore() is None
        assert cache.captured_at is None

    def test_capture_and_restore(self) -> None:
        cache = _cache()
        items = [_candidate("1"), _candidate("2")]
        facets = FacetSummary(technologies=[FacetCount(value="Kotlin", count=2)])
        query = SearchQuery(text="kotlin", top_k=20)

        cache.capture(items, facets, 42, query)
        entry = cache.restore()

        assert entry is not None
        assert entry.items == items
        assert entry.facet_summary == facets
        assert entry.total_count == 42
        assert entry.query == query
        assert entry.captured_at == NOW
        assert cache.is_active

    def test_last_capture_wins(self) -> None:
        cache = _cache()
        cache.capture([_candidate("1")], None, 1, SearchQuery(text="java"))
        cache.capture([_candidate("2")], None, 1, SearchQuery(text="kotlin"))

        entry = cache.restore()
        assert entry is not None
        assert entry.query.text == "kotlin"
        assert [c.id for c in entry.items] == ["2"]

    def test_restore_returns_independent_copy(self) -> None:
        cache = _cache()
        cache.capture([_candidate("1", ["Kotlin"])], None, 1, SearchQuery(text="kotlin"))

        first = cache.restore()
        assert first is not None
        first.items.clear()

        second = cache.restore()
        assert second is not None
        assert len(second.items) == 1

    def test_caller_list_mutation_does_not_leak(self) -> None:
        cache = _cache()
        items = [_candidate("1")]
        cache.capture(items, None, 1, SearchQuery(text="kotlin"))
        items.append(_candidate("2"))

        entry = cache.restore()
        assert entry is not None
        assert len(entry.items) == 1

    def test_invalidate(self) -> None:
        cache = _cache()
        cache.capture([_candidate("1")], None, 1, SearchQuery(text="kotlin"))
        cache.invalidate()
        assert not cache.is_active
        assert cache.restore() is None

    def test_invalidate_empty_is_noop(self) -> None:
        cache = _cache()
        cache.invalidate()
        assert not cache.is_active
