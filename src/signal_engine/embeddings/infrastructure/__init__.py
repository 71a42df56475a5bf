"""
Embeddings Infrastructure Layer
===============================

Infrastructure implementations of the embedding store.

Contains:
- Models: SQLAlchemy ORM model for the relational store
- Repositories: SQLAlchemy store with dialect-aware upserts
- Stores: JSON file store and in-memory store
"""

from signal_engine.config import CacheBackend, Settings
from signal_engine.embeddings.application import IEmbeddingStore
from signal_engine.embeddings.infrastructure.models import EmbeddingModel
from signal_engine.embeddings.infrastructure.repositories import SQLAlchemyEmbeddingStore
from signal_engine.embeddings.infrastructure.stores import (
    CACHE_FORMAT_VERSION,
    InMemoryEmbeddingStore,
    JsonFileEmbeddingStore,
)


def create_embedding_store(settings: Settings, model: str) -> IEmbeddingStore:
    """
    Build the store selected by settings.cache_backend.

    The database backend requires init_database() to have been called.
    """
    backend = CacheBackend(settings.cache_backend)
    if backend == CacheBackend.DATABASE:
        from signal_engine.infrastructure.database import get_session_maker
        return SQLAlchemyEmbeddingStore(get_session_maker())
    if backend == CacheBackend.MEMORY:
        return InMemoryEmbeddingStore()
    return JsonFileEmbeddingStore(
        settings.cache_dir,
        model=model,
        max_versions=settings.cache_max_versions,
    )


__all__ = [
    "EmbeddingModel",
    "SQLAlchemyEmbeddingStore",
    "InMemoryEmbeddingStore",
    "JsonFileEmbeddingStore",
    "CACHE_FORMAT_VERSION",
    "create_embedding_store",
]
