"""Compound filter engine for client-side refinement.

Filters combine conjunctively across axes:
  1. FreeTextFilter: case-insensitive substring over the searchable fields
  2. RequiredValuesFilter: technologies, must carry ALL selected values
  3. RequiredValuesFilter: skills, same rule
  4. RequiredValuesFilter: certifications, same rule

The chain always runs against the full unfiltered result set, never
incrementally against a previous output. No filter performs I/O.
"""

import logging
from collections.abc import Callable

from candidate_search.core.schemas import Candidate, RefinementFilterSet

logger = logging.getLogger(__name__)

# A filter is a callable that takes candidates and returns a subset.
Filter = Callable[[list[Candidate]], list[Candidate]]


class FreeTextFilter:
    """Keep candidates whose searchable text contains the query (case-insensitive).

    Empty or whitespace-only text is a no-op.
    """

    def __init__(self, text: str) -> None:
        self._needle = text.lower() if text.strip() else ""

    def __call__(self, candidates: list[Candidate]) -> list[Candidate]:
        if not self._needle:
            return candidates
        result = [c for c in candidates if self._matches(c)]
        excluded = len(candidates) - len(result)
        if excluded:
            logger.debug("FreeTextFilter: removed %d candidates", excluded)
        return result

    def _matches(self, candidate: Candidate) -> bool:
        fields = [
            candidate.name,
            candidate.full_name,
            candidate.title,
            candidate.location,
            candidate.availability,
            *candidate.technologies,
            *candidate.skills,
            *candidate.certifications,
        ]
        return any(self._needle in f.lower() for f in fields)


class RequiredValuesFilter:
    """Keep candidates whose ``field`` list contains every selected value.

    Comparison is case-insensitive and exact per entry. An empty selection
    passes all candidates through.
    """

    def __init__(self, field: str, values: list[str]) -> None:
        self._field = field
        self._values = [v.lower() for v in values]

    def __call__(self, candidates: list[Candidate]) -> list[Candidate]:
        if not self._values:
            return candidates
        result = [c for c in candidates if self._matches(c)]
        excluded = len(candidates) - len(result)
        if excluded:
            logger.debug("RequiredValuesFilter(%s): removed %d candidates", self._field, excluded)
        return result

    def _matches(self, candidate: Candidate) -> bool:
        have = {v.lower() for v in getattr(candidate, self._field)}
        return all(v in have for v in self._values)


def build_refinement_chain(filters: RefinementFilterSet) -> list[Filter]:
    """Build the filter chain for a refinement set."""
    return [
        FreeTextFilter(filters.text),
        RequiredValuesFilter("technologies", filters.technologies),
        RequiredValuesFilter("skills", filters.skills),
        RequiredValuesFilter("certifications", filters.certifications),
    ]


def run_filter_chain(
    candidates: list[Candidate],
    filters: list[Filter],
) -> list[Candidate]:
    """Apply filters in order, returning the surviving candidates."""
    result = candidates
    for f in filters:
        result = f(result)
    return result


def apply_refinement(
    candidates: list[Candidate],
    filters: RefinementFilterSet,
) -> list[Candidate]:
    """Return the candidates matching every active refinement predicate.

    Inactive filters return the full list unchanged (as a new list).
    """
    if not filters.is_active():
        return list(candidates)
    return list(run_filter_chain(candidates, build_refinement_chain(filters)))
