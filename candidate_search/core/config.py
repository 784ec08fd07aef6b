"""Configuration models and YAML loader for the candidate search core."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class ApiConfig(BaseModel):
    """Remote ranked-search endpoint."""

    base_url: str = "http://localhost:8080/api/v1"
    search_path: str = "/search"
    timeout_s: float = Field(default=30.0, gt=0.0)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def search_url(self) -> str:
        return f"{self.base_url}{self.search_path}"


class SearchDefaults(BaseModel):
    """Defaults applied to queries and omitted from shareable links."""

    default_top_k: int = Field(default=10, ge=1)
    default_min_score: float = Field(default=0.7, ge=0.0, le=1.0)
    min_query_length: int = Field(default=3, ge=1)
    top_k_options: list[int] = Field(default_factory=lambda: [5, 10, 20, 50])

    @model_validator(mode="after")
    def default_top_k_offered(self) -> "SearchDefaults":
        if self.top_k_options and self.default_top_k not in self.top_k_options:
            msg = f"default_top_k {self.default_top_k} is not one of top_k_options"
            raise ValueError(msg)
        return self


class DebounceConfig(BaseModel):
    """Debounce delays for the input gates, in milliseconds."""

    query_ms: int = Field(default=500, ge=0)
    options_ms: int = Field(default=500, ge=0)
    refinement_text_ms: int = Field(default=300, ge=0)


class RefinementConfig(BaseModel):
    """Client-side refinement settings."""

    max_chips: int = Field(default=15, ge=1)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    search: SearchDefaults = Field(default_factory=SearchDefaults)
    debounce: DebounceConfig = Field(default_factory=DebounceConfig)
    refinement: RefinementConfig = Field(default_factory=RefinementConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
