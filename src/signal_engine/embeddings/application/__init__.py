"""
Embeddings Application Layer
============================

Contains:
- EmbeddingCache: per-run, hash-gated cache over a persistent store
- EmbeddingResolver: batched, retrying resolution through the provider
- IEmbeddingStore: persistence contract implemented in infrastructure
"""

from signal_engine.embeddings.application.cache import EmbeddingCache, IEmbeddingStore
from signal_engine.embeddings.application.resolver import EmbeddingResolver, RetryPolicy

__all__ = [
    "EmbeddingCache",
    "IEmbeddingStore",
    "EmbeddingResolver",
    "RetryPolicy",
]
