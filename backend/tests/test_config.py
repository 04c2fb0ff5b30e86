# backend/tests/test_config.py
"""Configuration tests.

Tests verify behavior (types, ranges, loading) not specific values.
"""

from pathlib import Path

import pytest

from tasklens.config import (
    CONFIG_SCHEMA,
    Config,
    ConfigError,
    _load_config,
    load_settings,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear the load_settings cache before each test."""
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


def write_config(directory: Path, content: str) -> Path:
    """Write a config.ini file to the directory and return the path."""
    config_path = directory / "config.ini"
    config_path.write_text(content)
    return config_path


# =============================================================================
# Type Validation Tests
# =============================================================================


def test_all_settings_have_correct_types():
    """Every setting matches its declared type from schema."""
    config = _load_config(None)

    for section_name, keys in CONFIG_SCHEMA.items():
        section = getattr(config, section_name)
        for key, (expected_type, *_) in keys.items():
            value = getattr(section, key)
            assert isinstance(value, expected_type), (
                f"{section_name}.{key}: expected {expected_type.__name__}, "
                f"got {type(value).__name__}"
            )


def test_invalid_type_raises_clear_error(tmp_path: Path):
    """Non-numeric value for int setting gives helpful message."""
    config_path = write_config(tmp_path, "[search]\ninitial_k = many")

    with pytest.raises(ConfigError) as exc_info:
        _load_config(config_path)

    assert "search" in str(exc_info.value)
    assert "initial_k" in str(exc_info.value)
    assert "int" in str(exc_info.value)


# =============================================================================
# Range Validation Tests
# =============================================================================


def test_defaults_match_search_pipeline():
    """Defaults fan out wider than the final result list."""
    config = _load_config(None)

    assert config.search.initial_k == 20
    assert config.search.result_limit == 5
    assert config.search.max_relevant_messages == 3
    assert config.search.snippet_max_length == 150
    assert config.search.min_query_length == 2
    assert config.indexing.batch_size == 50
    assert config.embedding.model == "all-MiniLM-L6-v2"


def test_value_below_minimum_raises_error(tmp_path: Path):
    """Value below declared minimum raises ConfigError."""
    config_path = write_config(tmp_path, "[indexing]\nbatch_size = 0")

    with pytest.raises(ConfigError) as exc_info:
        _load_config(config_path)

    assert "batch_size" in str(exc_info.value)
    assert "minimum" in str(exc_info.value)


def test_value_above_maximum_raises_error(tmp_path: Path):
    """Value above declared maximum raises ConfigError."""
    config_path = write_config(tmp_path, "[search]\nmax_relevant_messages = 500")

    with pytest.raises(ConfigError) as exc_info:
        _load_config(config_path)

    assert "max_relevant_messages" in str(exc_info.value)
    assert "maximum" in str(exc_info.value)


def test_result_limit_cannot_exceed_initial_k(tmp_path: Path):
    """Asking for more results than candidates fetched is rejected."""
    config_path = write_config(tmp_path, "[search]\ninitial_k = 10\nresult_limit = 11")

    with pytest.raises(ConfigError) as exc_info:
        _load_config(config_path)

    assert "result_limit" in str(exc_info.value)


# =============================================================================
# Loading Tests
# =============================================================================


def test_config_file_overrides_defaults(tmp_path: Path):
    """Values in config.ini replace schema defaults."""
    config_path = write_config(
        tmp_path, "[search]\nresult_limit = 8\n\n[embedding]\nmodel = custom-model"
    )

    config = _load_config(config_path)

    assert config.search.result_limit == 8
    assert config.search.initial_k == 20
    assert config.embedding.model == "custom-model"


def test_missing_config_file_uses_defaults(tmp_path: Path):
    config = _load_config(tmp_path / "missing.ini")

    assert config.search.result_limit == 5


def test_load_settings_reads_data_dir(tmp_path: Path, monkeypatch):
    """TASKLENS_DATA_DIR controls every derived path."""
    monkeypatch.setenv("TASKLENS_DATA_DIR", str(tmp_path))
    write_config(tmp_path, "[search]\nresult_limit = 3")

    settings = load_settings()

    assert settings.data_dir == tmp_path
    assert settings.db_path == tmp_path / "tasklens.db"
    assert settings.chroma_path == tmp_path / "chroma"
    assert settings.config_path == tmp_path / "config.ini"
    assert settings.search.result_limit == 3


def test_load_settings_defaults_to_home(monkeypatch):
    monkeypatch.delenv("TASKLENS_DATA_DIR", raising=False)

    settings = load_settings()

    assert settings.data_dir == Path.home() / ".tasklens"


def test_cors_origins_from_environment(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("TASKLENS_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TASKLENS_CORS_ORIGINS", "https://a.example, https://b.example ,")

    settings = load_settings()

    assert settings.cors_origins == ("https://a.example", "https://b.example")


def test_load_settings_is_cached(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("TASKLENS_DATA_DIR", str(tmp_path))

    assert load_settings() is load_settings()


def test_config_sections_default_when_omitted(tmp_path: Path):
    """Constructing Config directly fills every section from the schema."""
    config = Config(data_dir=tmp_path)

    assert config.search.initial_k == 20
    assert config.indexing.batch_size == 50
