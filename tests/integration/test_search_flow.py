"""Integration test: reactor + HTTP client + URL sync against a mock backend."""

from pathlib import Path

import httpx
import pytest

from candidate_search.core.config import Settings
from candidate_search.core.errors import ERROR_MESSAGES
from candidate_search.core.schemas import FacetFilterSet, SearchQuery
from candidate_search.search.client import SearchApiClient
from candidate_search.state import views
from candidate_search.state.reactor import SearchReactor
from candidate_search.sync.url_state import InMemoryLocation
from main import main

# ---------------------------------------------------------------------------
# Mock backend
# ---------------------------------------------------------------------------


def _payload(text: str, count: int = 12) -> dict[str, object]:
    return {
        "results": [
            {
                "id": i + 1,
                "name": f"Candidate {i + 1}",
                "fullName": f"Candidate Number {i + 1}",
                "title": "Kotlin Developer" if i % 3 else "Senior Kotlin Developer",
                "location": "Zurich" if i % 2 else "Basel",
                "availability": "Available",
                "technologies": ["Kotlin", "Spring"] if i % 4 == 0 else ["Kotlin"],
                "skills": ["Agile"],
                "certifications": None,
                "matchScore": {"matched": round(0.95 - i * 0.01, 2), "total": 1},
            }
            for i in range(count)
        ],
        "totalCount": count,
        "query": text,
        "facets": {
            "locations": [{"value": "Zurich", "count": count // 2}, {"value": "Basel", "count": count // 2}],
            "technologies": [{"value": "Kotlin", "count": count}],
        },
    }


class MockBackend:
    """Counts requests and answers every search with a fixed result set."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code)
        return httpx.Response(200, json=_payload(request.url.params["query"]))


def _api(backend: MockBackend, settings: Settings) -> SearchApiClient:
    transport = httpx.MockTransport(backend)
    return SearchApiClient(settings.api, client=httpx.AsyncClient(transport=transport))


# ---------------------------------------------------------------------------
# Reactor flow
# ---------------------------------------------------------------------------


class TestSearchFlow:
    async def test_search_refine_and_clear(self) -> None:
        settings = Settings()
        backend = MockBackend()
        location = InMemoryLocation()

        async with _api(backend, settings) as api:
            reactor = SearchReactor(api, settings, location=location)
            await reactor.search(reactor.default_query("kotlin developer"))

            assert views.result_count(reactor.state) == 12
            assert reactor.state.facets is not None
            assert reactor.state.facets.top("locations", 1)[0].value == "Zurich"
            assert location.query_string == "q=kotlin+developer"

            narrowed = reactor.toggle_refinement("technologies", "Spring")
            assert 0 < len(narrowed) < 12
            assert views.result_summary(reactor.state) == f"{len(narrowed)} of 12 candidates match"

            restored = reactor.clear_refinement()
            assert len(restored) == 12

        assert len(backend.requests) == 1

    async def test_facet_filters_reach_backend(self) -> None:
        settings = Settings()
        backend = MockBackend()
        location = InMemoryLocation()

        async with _api(backend, settings) as api:
            reactor = SearchReactor(api, settings, location=location)
            await reactor.search(
                SearchQuery(
                    text="kotlin developer",
                    top_k=20,
                    facet_filters=FacetFilterSet(location="Zurich", technologies=["Kotlin", "Spring"]),
                ),
            )

        params = backend.requests[0].url.params
        assert params["topK"] == "20"
        assert params["location"] == "Zurich"
        assert params.get_list("technologies") == ["Kotlin", "Spring"]
        assert "technologies=Kotlin%2CSpring" in location.query_string

    async def test_shared_link_restores_then_returns_from_cache(self) -> None:
        settings = Settings()
        backend = MockBackend()
        link = "?q=kotlin+developer&topK=20&minScore=0.8"

        async with _api(backend, settings) as api:
            reactor = SearchReactor(api, settings, location=InMemoryLocation(link))
            await reactor.open_from_url()
            await reactor.open_from_url(returning=True)

        assert len(backend.requests) == 1
        assert reactor.state.active_query == SearchQuery(
            text="kotlin developer", top_k=20, min_score=0.8,
        )
        assert reactor.state.cache_active is True

    async def test_server_error_surfaces_message(self) -> None:
        settings = Settings()
        async with _api(MockBackend(status_code=503), settings) as api:
            reactor = SearchReactor(api, settings)
            await reactor.search(reactor.default_query("kotlin developer"))

        assert reactor.state.error == ERROR_MESSAGES["search_failed"]
        assert views.display_results(reactor.state) == []


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text("api:\n  base_url: https://talent.example.com/api/v1/\n")
    return path


class TestCli:
    def test_link_prints_query_string(
        self, config_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        main(["link", "senior kotlin", "--config", str(config_path), "--top-k", "20", "--technology", "Kotlin"])
        assert capsys.readouterr().out.strip() == "?q=senior+kotlin&topK=20&technologies=Kotlin"

    def test_link_merges_url_and_flags(
        self, config_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        main(["link", "--config", str(config_path), "--url", "?q=kotlin&skills=Agile", "--skill", "Scrum"])
        assert capsys.readouterr().out.strip() == "?q=kotlin&skills=Agile%2CScrum"

    def test_dry_run_prints_request_url(
        self, config_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        main(["search", "kotlin", "--config", str(config_path), "--dry-run"])
        out = capsys.readouterr().out
        assert "[DRY RUN] https://talent.example.com/api/v1/search?query=kotlin&topK=10&minScore=0.7" in out

    def test_short_query_exits(self, config_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["search", "ko", "--config", str(config_path)])
        assert exc_info.value.code == 1

    def test_missing_config_exits(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["link", "kotlin", "--config", str(tmp_path / "missing.yaml")])
        assert exc_info.value.code == 1
