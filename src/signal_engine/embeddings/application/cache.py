"""
Embedding Cache
===============

Session-scoped cache in front of a persistent embedding store.

One EmbeddingCache instance lives for one run. It keeps every vector it has
seen in memory, so a store that fails to persist never costs a recompute
within the same run.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple

from signal_engine.core import EmbeddingCacheException
from signal_engine.embeddings.domain import CacheStats, EmbeddingRecord
from signal_engine.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_SessionKey = Tuple[str, str, str]  # (entity_type, entity_id, content_hash)


# ========== Store Interface ==========

class IEmbeddingStore(ABC):
    """
    Persistent embedding storage keyed by (entity_type, entity_id, content_hash).

    Implementations raise EmbeddingCacheException on read/write failure.
    Upserts are last-writer-wins per key.
    """

    @abstractmethod
    async def get_many(
        self,
        entity_type: str,
        items: List[Tuple[str, str]],
        model: str
    ) -> Dict[str, List[float]]:
        """Return vectors for the (entity_id, content_hash) pairs that hit, keyed by entity_id."""

    @abstractmethod
    async def put_many(self, records: List[EmbeddingRecord]) -> None:
        """Insert or replace records."""

    @abstractmethod
    async def clear(self, entity_type: Optional[str] = None) -> None:
        """Drop stored embeddings, optionally for one entity type."""

    async def get(
        self,
        entity_type: str,
        entity_id: str,
        content_hash: str,
        model: str
    ) -> Optional[List[float]]:
        found = await self.get_many(entity_type, [(entity_id, content_hash)], model)
        return found.get(entity_id)

    async def put(self, record: EmbeddingRecord) -> None:
        await self.put_many([record])


# ========== Cache ==========

class EmbeddingCache:
    """
    Hash-gated embedding cache for one run.

    A lookup hits only when the stored content hash equals the supplied hash
    and the stored model equals this cache's model.
    """

    def __init__(self, store: IEmbeddingStore, model: str):
        self._store = store
        self.model = model
        self._session: Dict[_SessionKey, List[float]] = {}
        self.stats = CacheStats()

    async def get(self, entity_type: str, entity_id: str, content_hash: str) -> Optional[List[float]]:
        """Return the cached vector or None."""
        found = await self.get_many(entity_type, [(entity_id, content_hash)])
        return found.get(entity_id)

    async def get_many(
        self,
        entity_type: str,
        items: Iterable[Tuple[str, str]]
    ) -> Dict[str, List[float]]:
        """
        Batched lookup for (entity_id, content_hash) pairs.

        Returns:
            Hits keyed by entity_id
        """
        items = list(items)
        found: Dict[str, List[float]] = {}
        pending: List[Tuple[str, str]] = []

        for entity_id, content_hash in items:
            vector = self._session.get((entity_type, entity_id, content_hash))
            if vector is not None:
                found[entity_id] = vector
            else:
                pending.append((entity_id, content_hash))

        if pending:
            try:
                stored = await self._store.get_many(entity_type, pending, self.model)
            except EmbeddingCacheException as e:
                logger.warning(
                    "Embedding store read failed, treating as miss",
                    extra={"entity_type": entity_type, "count": len(pending), "error": str(e)}
                )
                stored = {}
            hashes = dict(pending)
            for entity_id, vector in stored.items():
                self._session[(entity_type, entity_id, hashes[entity_id])] = vector
                found[entity_id] = vector

        self.stats.hits += len(found)
        self.stats.misses += len(items) - len(found)
        return found

    async def put(self, entity_type: str, entity_id: str, content_hash: str, vector: List[float]) -> bool:
        """Cache one vector; see put_many."""
        return await self.put_many([
            EmbeddingRecord(
                entity_type=entity_type,
                entity_id=entity_id,
                content_hash=content_hash,
                model=self.model,
                vector=vector,
            )
        ])

    async def put_many(self, records: List[EmbeddingRecord]) -> bool:
        """
        Keep records in the session and write them through to the store.

        A store failure is logged and counted; the vectors stay usable for
        the rest of the run.

        Returns:
            True if the store write succeeded
        """
        if not records:
            return True

        for record in records:
            self._session[(record.entity_type, record.entity_id, record.content_hash)] = record.vector

        try:
            await self._store.put_many(records)
        except EmbeddingCacheException as e:
            self.stats.persist_failures += len(records)
            logger.warning(
                "Embedding store write failed, keeping vectors in memory",
                extra={"count": len(records), "error": str(e)}
            )
            return False

        self.stats.writes += len(records)
        return True
