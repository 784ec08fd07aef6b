"""Tests for configuration models and YAML loading."""

from pathlib import Path
from textwrap import dedent

import pytest
from pydantic import ValidationError

from candidate_search.core.config import (
    ApiConfig,
    DebounceConfig,
    RefinementConfig,
    SearchDefaults,
    Settings,
)


class TestApiConfig:
    def test_defaults(self) -> None:
        api = ApiConfig()
        assert api.search_path == "/search"
        assert api.timeout_s == 30.0

    def test_trailing_slash_stripped(self) -> None:
        api = ApiConfig(base_url="https://talent.example.com/api/")
        assert api.search_url == "https://talent.example.com/api/search"

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ApiConfig(timeout_s=0)


class TestSearchDefaults:
    def test_defaults(self) -> None:
        d = SearchDefaults()
        assert d.default_top_k == 10
        assert d.default_min_score == 0.7
        assert d.min_query_length == 3
        assert d.top_k_options == [5, 10, 20, 50]

    def test_min_score_bounds(self) -> None:
        with pytest.raises(ValidationError):
            SearchDefaults(default_min_score=1.5)
        with pytest.raises(ValidationError):
            SearchDefaults(default_min_score=-0.1)

    def test_default_top_k_must_be_an_option(self) -> None:
        with pytest.raises(ValidationError):
            SearchDefaults(default_top_k=7)

    def test_any_top_k_when_no_options(self) -> None:
        d = SearchDefaults(default_top_k=7, top_k_options=[])
        assert d.default_top_k == 7


class TestDebounceAndRefinement:
    def test_debounce_defaults(self) -> None:
        d = DebounceConfig()
        assert (d.query_ms, d.options_ms, d.refinement_text_ms) == (500, 500, 300)

    def test_negative_delay_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DebounceConfig(query_ms=-1)

    def test_max_chips_default(self) -> None:
        assert RefinementConfig().max_chips == 15


class TestSettingsFromYaml:
    def test_full_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(dedent("""\
            api:
              base_url: https://talent.example.com/api/v1
              timeout_s: 5
            search:
              default_top_k: 20
              default_min_score: 0.8
            debounce:
              query_ms: 250
            refinement:
              max_chips: 8
        """))
        settings = Settings.from_yaml(config_file)
        assert settings.api.search_url == "https://talent.example.com/api/v1/search"
        assert settings.api.timeout_s == 5
        assert settings.search.default_top_k == 20
        assert settings.search.default_min_score == 0.8
        assert settings.debounce.query_ms == 250
        assert settings.debounce.options_ms == 500
        assert settings.refinement.max_chips == 8

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("")
        settings = Settings.from_yaml(config_file)
        assert settings == Settings()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "nope.yaml")

    def test_invalid_values(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("search:\n  min_query_length: 0\n")
        with pytest.raises(ValidationError):
            Settings.from_yaml(config_file)

    def test_shipped_example_loads(self) -> None:
        path = Path(__file__).resolve().parents[2] / "config" / "settings.yaml"
        settings = Settings.from_yaml(path)
        assert settings == Settings()
