"""
Embeddings Domain Layer
=======================

Contains:
- Entities: EmbeddingRecord, EmbeddingRequest
- Value Objects: CacheStats, ResolutionReport, SkippedEmbedding
"""

from signal_engine.embeddings.domain.entities import (
    EmbeddingKey,
    EmbeddingRequest,
    EmbeddingRecord,
    CacheStats,
    SkippedEmbedding,
    ResolutionReport,
)

__all__ = [
    "EmbeddingKey",
    "EmbeddingRequest",
    "EmbeddingRecord",
    "CacheStats",
    "SkippedEmbedding",
    "ResolutionReport",
]
