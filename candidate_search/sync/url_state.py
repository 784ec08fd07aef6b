"""Bidirectional mapping between search state and the location query string.

Pure functions plus a small synchronizer that writes through a ``Location``.
Defaults are omitted from links; ``from_params(to_params(q)) == q`` holds for
every query whose values round-trip through ``str``/``float``/``int``.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Protocol, TypeVar
from urllib.parse import parse_qsl, quote_plus, unquote, urlencode

from candidate_search.core.config import SearchDefaults
from candidate_search.core.schemas import FacetFilterSet, SearchQuery

logger = logging.getLogger(__name__)

# --- Parameter names (URL concern) ---

TEXT_KEY = "q"
TOP_K_KEY = "topK"
MIN_SCORE_KEY = "minScore"
MIN_YEARS_KEY = "minYears"

SCALAR_KEYS: tuple[str, ...] = ("location", "availability")
LIST_KEYS: tuple[str, ...] = ("technologies", "skills", "certifications")

ParamMap = dict[str, str]

N = TypeVar("N", int, float)


def to_params(query: SearchQuery, defaults: SearchDefaults) -> ParamMap:
    """Project a query onto flat URL parameters, omitting default values.

    Multi-valued filters become one comma-joined parameter; commas and ``%``
    inside values are percent-escaped so the split is unambiguous.
    """
    params: ParamMap = {}

    if query.text:
        params[TEXT_KEY] = query.text
    if query.top_k != defaults.default_top_k:
        params[TOP_K_KEY] = str(query.top_k)
    if query.min_score != defaults.default_min_score:
        params[MIN_SCORE_KEY] = repr(query.min_score)

    f = query.facet_filters
    for key in SCALAR_KEYS:
        value = getattr(f, key)
        if value:
            params[key] = value
    for key in LIST_KEYS:
        values = getattr(f, key)
        if values:
            params[key] = ",".join(_escape(v) for v in values)
    if f.min_years_experience is not None:
        params[MIN_YEARS_KEY] = str(f.min_years_experience)

    return params


def from_params(params: Mapping[str, str], defaults: SearchDefaults) -> SearchQuery:
    """Rebuild a query from URL parameters; absent keys take their defaults.

    Malformed or out-of-range numbers are logged and replaced by the default.
    """
    top_k = _parse_number(params.get(TOP_K_KEY), int, TOP_K_KEY)
    if top_k is None or top_k < 1:
        top_k = defaults.default_top_k

    min_score = _parse_number(params.get(MIN_SCORE_KEY), float, MIN_SCORE_KEY)
    if min_score is None or not 0.0 <= min_score <= 1.0:
        min_score = defaults.default_min_score

    min_years = _parse_number(params.get(MIN_YEARS_KEY), int, MIN_YEARS_KEY)
    if min_years is not None and min_years < 0:
        min_years = None

    filters: dict[str, object] = {"min_years_experience": min_years}
    for key in SCALAR_KEYS:
        filters[key] = params.get(key) or None
    for key in LIST_KEYS:
        raw = params.get(key, "")
        filters[key] = [_unescape(v) for v in raw.split(",")] if raw else []

    return SearchQuery(
        text=params.get(TEXT_KEY, ""),
        top_k=int(top_k),
        min_score=float(min_score),
        facet_filters=FacetFilterSet.model_validate(filters),
    )


def to_query_string(query: SearchQuery, defaults: SearchDefaults) -> str:
    return urlencode(to_params(query, defaults), quote_via=quote_plus)


def from_query_string(query_string: str, defaults: SearchDefaults) -> SearchQuery:
    """Parse a raw query string (a leading ``?`` is allowed)."""
    # Last occurrence wins for repeated keys.
    params = dict(parse_qsl(query_string.lstrip("?")))
    return from_params(params, defaults)


def _escape(value: str) -> str:
    return value.replace("%", "%25").replace(",", "%2C")


def _unescape(value: str) -> str:
    return unquote(value)


def _parse_number(raw: str | None, kind: Callable[[str], N], name: str) -> N | None:
    if raw is None or raw == "":
        return None
    try:
        return kind(raw)
    except ValueError:
        logger.warning("Malformed %s value '%s', using default", name, raw)
        return None


class Location(Protocol):
    """The navigable location whose query string mirrors search state."""

    @property
    def query_string(self) -> str: ...

    def replace(self, query_string: str) -> None:
        """Overwrite the current history entry."""

    def push(self, query_string: str) -> None:
        """Append a new history entry."""


class InMemoryLocation:
    """Location backed by a list of history entries (last one is current)."""

    def __init__(self, query_string: str = "") -> None:
        self.history: list[str] = [query_string.lstrip("?")]

    @property
    def query_string(self) -> str:
        return self.history[-1]

    def replace(self, query_string: str) -> None:
        self.history[-1] = query_string

    def push(self, query_string: str) -> None:
        self.history.append(query_string)


class UrlStateSynchronizer:
    """Reads initial state from a location and writes updates back to it.

    ``write`` replaces the current entry, so typing never floods history.
    Only ``push``, used when opening an externally supplied link, adds one.
    """

    def __init__(self, location: Location, defaults: SearchDefaults) -> None:
        self._location = location
        self._defaults = defaults

    def read(self) -> SearchQuery:
        return from_query_string(self._location.query_string, self._defaults)

    def write(self, query: SearchQuery) -> None:
        query_string = to_query_string(query, self._defaults)
        if query_string == self._location.query_string:
            return
        logger.debug("Replacing location query string: %s", query_string)
        self._location.replace(query_string)

    def push(self, query: SearchQuery) -> None:
        query_string = to_query_string(query, self._defaults)
        if query_string == self._location.query_string:
            return
        logger.debug("Pushing location query string: %s", query_string)
        self._location.push(query_string)
