# backend/src/tasklens/config.py
"""Configuration system for the TaskLens backend.

This module handles loading settings from environment variables and an INI
file in the data directory, providing sensible defaults, and computing the
derived paths for the SQLite database and ChromaDB index.
"""

from configparser import ConfigParser
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
import os

from tasklens.constants.indexing import EMBEDDING_BATCH_SIZE
from tasklens.constants.search import (
    FINAL_RESULTS_LIMIT,
    INITIAL_TOP_K,
    MAX_RELEVANT_MESSAGES,
    MIN_QUERY_LENGTH,
    SNIPPET_MAX_LENGTH,
)

DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://localhost:5173")


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# Schema: section -> key -> (type, default, min, max, description)
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, Any, Any, str]]] = {
    "search": {
        "initial_k": (int, INITIAL_TOP_K, 1, 500, "Nearest neighbours fetched per entity type"),
        "result_limit": (int, FINAL_RESULTS_LIMIT, 1, 100, "Tasks returned by semantic search"),
        "snippet_max_length": (int, SNIPPET_MAX_LENGTH, 20, 2000, "Max snippet length in results"),
        "min_query_length": (int, MIN_QUERY_LENGTH, 1, 100, "Shortest accepted search query"),
        "max_relevant_messages": (
            int,
            MAX_RELEVANT_MESSAGES,
            1,
            20,
            "Messages attached per result",
        ),
        "list_limit": (int, 50, 1, 1000, "Tasks returned by the task listing"),
    },
    "indexing": {
        "batch_size": (int, EMBEDDING_BATCH_SIZE, 1, 1000, "Records embedded per backfill batch"),
    },
    "embedding": {
        "model": (str, "all-MiniLM-L6-v2", None, None, "Sentence embedding model name"),
    },
}


@dataclass(frozen=True)
class SearchConfig:
    """Semantic search configuration."""

    initial_k: int
    result_limit: int
    snippet_max_length: int
    min_query_length: int
    max_relevant_messages: int
    list_limit: int


@dataclass(frozen=True)
class IndexingConfig:
    """Embedding backfill configuration."""

    batch_size: int


@dataclass(frozen=True)
class EmbeddingConfig:
    """Embedding model configuration."""

    model: str


def _load_section(
    parser: ConfigParser, section: str, schema: dict[str, tuple[type, Any, Any, Any, str]]
) -> dict[str, Any]:
    """Load and validate a configuration section.

    Args:
        parser: ConfigParser instance with loaded config
        section: Section name to load
        schema: Schema definition for the section

    Returns:
        Dictionary of validated configuration values

    Raises:
        ConfigError: If validation fails
    """
    result = {}

    for key, (typ, default, min_val, max_val, _) in schema.items():
        if parser.has_option(section, key):
            raw_value = parser.get(section, key)
            value: bool | int | float | str
            try:
                if typ is bool:
                    value = raw_value.lower() in ("true", "1", "yes", "on")
                elif typ is int:
                    value = int(raw_value)
                elif typ is float:
                    value = float(raw_value)
                else:
                    value = raw_value
            except ValueError as e:
                raise ConfigError(
                    f"Invalid value for [{section}].{key}: {raw_value!r} (expected {typ.__name__})"
                ) from e
        else:
            value = default

        if typ in (int, float) and value is not None:
            if min_val is not None and value < min_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but minimum is {min_val}"
                )
            if max_val is not None and value > max_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but maximum is {max_val}"
                )

        result[key] = value

    return result


def _defaults(section: str) -> dict[str, Any]:
    return {key: default for key, (_, default, _, _, _) in CONFIG_SCHEMA[section].items()}


def _load_config(config_path: Optional[Path] = None) -> "Config":
    """Load configuration from an INI file (internal use only).

    Args:
        config_path: Path to config file. If None, uses defaults from schema.

    Returns:
        Config object with all sections populated and a placeholder data_dir.

    Raises:
        ConfigError: If validation fails
    """
    parser = ConfigParser()

    if config_path and config_path.exists():
        parser.read(config_path)

    search = SearchConfig(**_load_section(parser, "search", CONFIG_SCHEMA["search"]))
    indexing = IndexingConfig(**_load_section(parser, "indexing", CONFIG_SCHEMA["indexing"]))
    embedding = EmbeddingConfig(**_load_section(parser, "embedding", CONFIG_SCHEMA["embedding"]))

    if search.result_limit > search.initial_k:
        raise ConfigError(
            f"[search].result_limit ({search.result_limit}) must not exceed "
            f"[search].initial_k ({search.initial_k})"
        )

    return Config(
        data_dir=Path("."),  # Placeholder, replaced by load_settings
        search=search,
        indexing=indexing,
        embedding=embedding,
    )


@dataclass(frozen=True)
class Config:
    """Complete application configuration."""

    data_dir: Path
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS

    # Section configs default to the schema values in __post_init__
    search: SearchConfig = None  # type: ignore[assignment]
    indexing: IndexingConfig = None  # type: ignore[assignment]
    embedding: EmbeddingConfig = None  # type: ignore[assignment]

    def __post_init__(self):
        """Initialize section configs with defaults if not provided."""
        # Since frozen=True, we need to use object.__setattr__
        if self.search is None:
            object.__setattr__(self, "search", SearchConfig(**_defaults("search")))
        if self.indexing is None:
            object.__setattr__(self, "indexing", IndexingConfig(**_defaults("indexing")))
        if self.embedding is None:
            object.__setattr__(self, "embedding", EmbeddingConfig(**_defaults("embedding")))

    @property
    def config_path(self) -> Path:
        """Path to the optional config.ini file."""
        return self.data_dir / "config.ini"

    @property
    def db_path(self) -> Path:
        """Path to SQLite database file."""
        return self.data_dir / "tasklens.db"

    @property
    def chroma_path(self) -> Path:
        """Path to ChromaDB vector store directory."""
        return self.data_dir / "chroma"


def _parse_origins(raw: str) -> tuple[str, ...]:
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


@lru_cache(maxsize=1)
def load_settings() -> Config:
    """Load settings from environment variables and config file.

    Settings are cached for the lifetime of the application.
    Use load_settings.cache_clear() to reload settings.

    Returns:
        Config object populated from environment variables and config file.

    Raises:
        ConfigError: If the config file contains invalid values.
    """
    data_dir_str = os.getenv("TASKLENS_DATA_DIR")
    data_dir = Path(data_dir_str) if data_dir_str else Path.home() / ".tasklens"

    config_file = data_dir / "config.ini"
    try:
        config_exists = config_file.exists()
    except PermissionError:
        config_exists = False
    base_config = _load_config(config_file if config_exists else None)

    origins_env = os.getenv("TASKLENS_CORS_ORIGINS")
    cors_origins = _parse_origins(origins_env) if origins_env else DEFAULT_CORS_ORIGINS

    return Config(
        data_dir=data_dir,
        cors_origins=cors_origins,
        search=base_config.search,
        indexing=base_config.indexing,
        embedding=base_config.embedding,
    )
