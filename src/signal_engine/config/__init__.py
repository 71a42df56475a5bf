"""
Configuration Module
====================

Engine settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ========== Constants ==========

class SignalSource(str, Enum):
    """Where a signal came from."""
    TRACKER_ISSUE = "tracker_issue"
    CHAT_THREAD = "chat_thread"
    CHAT_MESSAGE = "chat_message"


class EntityType(str, Enum):
    """Entity types used as the first half of an embedding cache key."""
    ISSUE = "issue"
    THREAD = "thread"
    MESSAGE = "message"
    FEATURE = "feature"


class CacheBackend(str, Enum):
    """Embedding store implementations."""
    JSON = "json"
    DATABASE = "database"
    MEMORY = "memory"


class ScoringStrategyName(str, Enum):
    """Classifier scoring strategies."""
    LEXICAL = "lexical"
    EMBEDDING = "embedding"
    AUTO = "auto"


# ========== Lists for validation ==========

VALID_CACHE_BACKENDS = [CacheBackend.JSON.value, CacheBackend.DATABASE.value, CacheBackend.MEMORY.value]


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="signal-engine", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Embedding Provider ==========
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key used for embeddings"
    )
    openai_base_url: Optional[str] = Field(
        default=None,
        description="Optional OpenAI-compatible base URL"
    )
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model identifier; part of cache validity"
    )
    embedding_dimension: int = Field(
        default=1536,
        description="Embedding vector dimension",
        ge=8
    )
    mock_embeddings: bool = Field(
        default=False,
        description="Use deterministic hashed embeddings (no API calls)"
    )
    embedding_max_chars: int = Field(
        default=6000,
        description="Character cap applied to every text before submission",
        ge=100
    )

    # ========== Batching & Retries ==========
    issue_batch_size: int = Field(default=50, description="Issues per embedding call", ge=1, le=2048)
    signal_batch_size: int = Field(default=25, description="Signals per embedding call", ge=1, le=2048)
    feature_batch_size: int = Field(default=50, description="Features per embedding call", ge=1, le=2048)
    embedding_batch_delay_seconds: float = Field(
        default=0.5,
        description="Pause between embedding batches",
        ge=0.0
    )
    retry_max_attempts: int = Field(default=3, description="Attempts per batch", ge=1, le=10)
    retry_base_delay_seconds: float = Field(default=2.0, description="Backoff base", ge=0.0)
    retry_max_delay_seconds: float = Field(default=30.0, description="Backoff cap", ge=0.0)

    # ========== Embedding Cache ==========
    cache_backend: str = Field(default="json", description="json, database or memory")
    cache_dir: Path = Field(default=Path(".cache"), description="Directory for JSON embedding caches")
    cache_max_versions: int = Field(
        default=5,
        description="Superseded versions kept per entity in the JSON cache",
        ge=1
    )

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/signals",
        description="Database connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Classification ==========
    classification_min_similarity: float = Field(default=20.0, ge=0.0, le=100.0)
    classification_top_matches: int = Field(default=5, ge=1, le=50)

    # ========== Grouping ==========
    grouping_min_similarity: float = Field(default=0.6, ge=0.0, le=1.0)
    lexical_grouping_min_similarity: float = Field(default=0.5, ge=0.0, le=1.0)
    grouping_max_groups: int = Field(default=50, ge=1)
    lexical_grouping_max_groups: int = Field(default=10, ge=1)
    duplicate_threshold: float = Field(default=0.9, ge=0.0, le=1.0)
    feature_min_similarity: float = Field(default=0.5, ge=0.0, le=1.0)
    max_features_per_group: int = Field(default=5, ge=1)
    issue_grouping_min_similarity: float = Field(default=60.0, ge=0.0, le=100.0)
    issue_grouping_top_issues_per_thread: int = Field(default=3, ge=1)

    # ========== Feature Catalog ==========
    features_path: Path = Field(
        default=Path("features.yaml"),
        description="Path to the YAML feature catalog"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "test", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("cache_backend")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        """Ensure the cache backend is known."""
        v = v.lower()
        if v not in VALID_CACHE_BACKENDS:
            raise ValueError(f"cache_backend must be one of {VALID_CACHE_BACKENDS}")
        return v

    @property
    def embeddings_enabled(self) -> bool:
        """True when an embedding provider can be built."""
        return self.mock_embeddings or bool(self.openai_api_key)


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()

