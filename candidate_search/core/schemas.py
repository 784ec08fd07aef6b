"""Core data models for the candidate search core.

Wire-facing models accept the backend's camelCase keys as well as the
snake_case field names.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

FacetAxis = Literal["location", "availability", "technologies", "skills", "certifications"]
RefinementAxis = Literal["technologies", "skills", "certifications"]
FacetCategory = Literal["locations", "availabilities", "technologies", "skills", "certifications"]

SINGLE_VALUED_AXES: tuple[str, ...] = ("location", "availability")
MULTI_VALUED_AXES: tuple[str, ...] = ("technologies", "skills", "certifications")
FACET_CATEGORIES: tuple[str, ...] = (
    "locations",
    "availabilities",
    "technologies",
    "skills",
    "certifications",
)

_WIRE_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


def _unique(values: list[str]) -> list[str]:
    """Strip, drop blanks, and de-duplicate keeping first occurrence order."""
    seen: set[str] = set()
    out: list[str] = []
    for v in values:
        v = v.strip()
        if v and v not in seen:
            seen.add(v)
            out.append(v)
    return out


class FacetFilterSet(BaseModel):
    """Server-side facet filters sent with a search request."""

    model_config = _WIRE_CONFIG

    location: str | None = None
    availability: str | None = None
    technologies: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    min_years_experience: int | None = Field(default=None, ge=0)

    @field_validator("location", "availability")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("technologies", "skills", "certifications")
    @classmethod
    def no_duplicates(cls, v: list[str]) -> list[str]:
        return _unique(v)

    def is_empty(self) -> bool:
        return (
            self.location is None
            and self.availability is None
            and not self.technologies
            and not self.skills
            and not self.certifications
            and self.min_years_experience is None
        )

    def active_count(self) -> int:
        """Number of active filter values (each multi-select value counts once)."""
        count = len(self.technologies) + len(self.skills) + len(self.certifications)
        if self.location is not None:
            count += 1
        if self.availability is not None:
            count += 1
        if self.min_years_experience is not None:
            count += 1
        return count

    def toggle(self, axis: FacetAxis, value: str) -> "FacetFilterSet":
        """Return a copy with ``value`` switched on or off for ``axis``.

        Single-valued axes replace or clear their value, and a blank value
        clears. Multi-valued axes add or remove it and ignore blanks.
        """
        value = value.strip()
        if axis in SINGLE_VALUED_AXES:
            current = getattr(self, axis)
            return self.model_copy(update={axis: None if not value or current == value else value})
        if axis not in MULTI_VALUED_AXES:
            msg = f"Unknown facet axis '{axis}'"
            raise ValueError(msg)
        if not value:
            return self
        values: list[str] = getattr(self, axis)
        if value in values:
            updated = [v for v in values if v != value]
        else:
            updated = _unique([*values, value])
        return self.model_copy(update={axis: updated})


class SearchQuery(BaseModel):
    """Immutable search request exchanged between components."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    top_k: int = Field(default=10, ge=1)
    min_score: float = Field(default=0.7, ge=0.0, le=1.0)
    facet_filters: FacetFilterSet = Field(default_factory=FacetFilterSet)


class Candidate(BaseModel):
    """A ranked search result.

    ``id`` is the stable identity used for caching, selection and matching.
    """

    model_config = _WIRE_CONFIG

    id: str
    name: str
    full_name: str = ""
    title: str = ""
    location: str = ""
    availability: str = ""
    technologies: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    match_score: float = Field(default=0.0, ge=0.0, le=1.0)

    @field_validator("id", mode="before")
    @classmethod
    def id_as_str(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("full_name", "title", "location", "availability", mode="before")
    @classmethod
    def null_to_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("technologies", "skills", "certifications", mode="before")
    @classmethod
    def null_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("match_score", mode="before")
    @classmethod
    def unwrap_match_score(cls, v: Any) -> Any:
        # Backend sends {"matched": 0.87, "total": 1}
        if isinstance(v, dict):
            return v.get("matched", 0.0)
        return v


class FacetCount(BaseModel):
    """One facet value and the number of results carrying it."""

    model_config = ConfigDict(frozen=True)

    value: str
    count: int = Field(ge=0)


class FacetSummary(BaseModel):
    """Per-category facet counts, each list descending by count."""

    model_config = ConfigDict(frozen=True)

    locations: list[FacetCount] = Field(default_factory=list)
    availabilities: list[FacetCount] = Field(default_factory=list)
    technologies: list[FacetCount] = Field(default_factory=list)
    skills: list[FacetCount] = Field(default_factory=list)
    certifications: list[FacetCount] = Field(default_factory=list)

    @field_validator(*FACET_CATEGORIES, mode="before")
    @classmethod
    def null_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    def is_empty(self) -> bool:
        return not any(getattr(self, c) for c in FACET_CATEGORIES)

    def top(self, category: FacetCategory, limit: int = 10) -> list[FacetCount]:
        return list(getattr(self, category)[:limit])


class SearchResponse(BaseModel):
    """Body returned by the remote search endpoint."""

    model_config = _WIRE_CONFIG

    results: list[Candidate] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0)
    query: str = ""
    facets: FacetSummary | None = None

    @field_validator("results", mode="before")
    @classmethod
    def null_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class RefinementFilterSet(BaseModel):
    """Client-side refinement of already loaded results. Never causes I/O."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    technologies: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)

    def is_active(self) -> bool:
        return bool(
            self.text.strip() or self.technologies or self.skills or self.certifications
        )

    def active_count(self) -> int:
        count = len(self.technologies) + len(self.skills) + len(self.certifications)
        if self.text.strip():
            count += 1
        return count

    def with_text(self, text: str) -> "RefinementFilterSet":
        return self.model_copy(update={"text": text})

    def toggle(self, axis: RefinementAxis, value: str) -> "RefinementFilterSet":
        if axis not in MULTI_VALUED_AXES:
            msg = f"Unknown refinement axis '{axis}'"
            raise ValueError(msg)
        value = value.strip()
        if not value:
            return self
        values: list[str] = getattr(self, axis)
        if value in values:
            updated = [v for v in values if v != value]
        else:
            updated = [*values, value]
        return self.model_copy(update={axis: updated})


class ResultCacheEntry(BaseModel):
    """Snapshot of the last successful search. Replaced whole, never patched."""

    model_config = ConfigDict(frozen=True)

    items: list[Candidate]
    facet_summary: FacetSummary | None = None
    total_count: int = 0
    query: SearchQuery
    captured_at: datetime
