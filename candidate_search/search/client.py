"""Remote ranked-search client and request sequencing.

The transport raises classified ``SearchError``s and never retries; the
sequencer lets the reactor discard responses to superseded requests.
"""

import logging
from types import TracebackType
from urllib.parse import urlencode

import httpx

from candidate_search.core.config import ApiConfig
from candidate_search.core.errors import classify
from candidate_search.core.schemas import SearchQuery, SearchResponse

logger = logging.getLogger(__name__)


def build_search_params(query: SearchQuery) -> list[tuple[str, str]]:
    """Build the request parameters for a search.

    Single-valued filters are scalars, multi-valued filters repeat the key.
    Empty filters are omitted.
    """
    params: list[tuple[str, str]] = [
        ("query", query.text),
        ("topK", str(query.top_k)),
        ("minScore", str(query.min_score)),
    ]
    f = query.facet_filters
    if f.location:
        params.append(("location", f.location))
    if f.availability:
        params.append(("availability", f.availability))
    params.extend(("technologies", v) for v in f.technologies)
    params.extend(("skills", v) for v in f.skills)
    params.extend(("certifications", v) for v in f.certifications)
    if f.min_years_experience is not None:
        params.append(("minYearsExperience", str(f.min_years_experience)))
    return params


def build_search_url(config: ApiConfig, query: SearchQuery) -> str:
    """Full request URL, used for logging and dry runs."""
    return f"{config.search_url}?{urlencode(build_search_params(query))}"


class RequestSequencer:
    """Monotonic request ids; only the latest issued id is current."""

    def __init__(self) -> None:
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, request_id: int) -> bool:
        return request_id == self._latest


class SearchApiClient:
    """Async HTTP client for the search endpoint.

    Usage::

        async with SearchApiClient(settings.api) as api:
            response = await api.search(query)

    A preconfigured ``httpx.AsyncClient`` may be injected (tests pass one
    built on ``httpx.MockTransport``); it is then owned by the caller.
    """

    def __init__(self, config: ApiConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "SearchApiClient":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_s)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def search(self, query: SearchQuery) -> SearchResponse:
        """Run one search request.

        Raises:
            TransportUnavailableError: the endpoint could not be reached.
            ServerError: non-2xx status or a body that does not validate.
        """
        if self._client is None:
            msg = "SearchApiClient not entered, use 'async with'"
            raise RuntimeError(msg)

        params = build_search_params(query)
        logger.info("Searching '%s' (topK=%d, minScore=%s)", query.text, query.top_k, query.min_score)
        try:
            resp = await self._client.get(self._config.search_url, params=params)
            resp.raise_for_status()
            response = SearchResponse.model_validate(resp.json())
        except (httpx.HTTPError, ValueError) as e:
            error = classify(e)
            logger.warning("Search '%s' failed: %s", query.text, error)
            raise error from e

        logger.info("Search '%s': %d results", query.text, len(response.results))
        return response
