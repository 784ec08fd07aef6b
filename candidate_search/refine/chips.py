"""Facet chip generation from the loaded result set."""

from collections import Counter

from pydantic import BaseModel, ConfigDict

from candidate_search.core.schemas import (
    Candidate,
    FacetCount,
    FacetSummary,
    RefinementAxis,
)

DEFAULT_MAX_CHIPS = 15

CATEGORY_LABELS: dict[str, str] = {
    "technologies": "Technologies",
    "skills": "Skills",
    "certifications": "Certifications",
}


class FacetChip(BaseModel):
    """A selectable facet value with its occurrence count."""

    model_config = ConfigDict(frozen=True)

    value: str
    category: RefinementAxis
    count: int
    active: bool = False


def count_values(candidates: list[Candidate], field: str) -> list[FacetCount]:
    """Count every occurrence of each value of a field, descending by count.

    Ties keep first-seen order (Counter preserves insertion order and
    ``sorted`` is stable).
    """
    counts: Counter[str] = Counter()
    for c in candidates:
        values = getattr(c, field)
        if isinstance(values, str):
            values = [values] if values else []
        counts.update(values)
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [FacetCount(value=v, count=n) for v, n in ranked]


def generate_chips(
    candidates: list[Candidate],
    category: RefinementAxis,
    active: list[str] | None = None,
    limit: int = DEFAULT_MAX_CHIPS,
) -> list[FacetChip]:
    """Top ``limit`` chips for ``category``, flagged when currently selected."""
    selected = set(active or [])
    return [
        FacetChip(value=fc.value, category=category, count=fc.count, active=fc.value in selected)
        for fc in count_values(candidates, category)[:limit]
    ]


def derive_facet_summary(candidates: list[Candidate]) -> FacetSummary:
    """Re-derive the backend facet summary from loaded results."""
    return FacetSummary(
        locations=count_values(candidates, "location"),
        availabilities=count_values(candidates, "availability"),
        technologies=count_values(candidates, "technologies"),
        skills=count_values(candidates, "skills"),
        certifications=count_values(candidates, "certifications"),
    )
