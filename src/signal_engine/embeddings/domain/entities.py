"""
Embeddings Domain Entities
==========================

Embedding records and the bookkeeping a resolution run reports back.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from signal_engine.config import EntityType
from signal_engine.shared.domain import hash_content

EmbeddingKey = Tuple[str, str]  # (entity_type, entity_id)


@dataclass(frozen=True)
class EmbeddingRequest:
    """
    Text to embed for one entity.

    The content hash is taken over the full representation, before any
    truncation applied for provider submission.
    """
    entity_type: EntityType
    entity_id: str
    text: str

    @property
    def content_hash(self) -> str:
        return hash_content(self.text)

    @property
    def key(self) -> EmbeddingKey:
        return (EntityType(self.entity_type).value, self.entity_id)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass
class EmbeddingRecord:
    """
    A stored embedding.

    Valid for reuse iff content_hash matches the entity's current text and
    model matches the configured model.
    """
    entity_type: str
    entity_id: str
    content_hash: str
    model: str
    vector: List[float]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        """Validate embedding record."""
        if not self.vector:
            raise ValueError("Embedding vector must not be empty")
        self.entity_type = EntityType(self.entity_type).value

    @property
    def dimension(self) -> int:
        return len(self.vector)


@dataclass
class CacheStats:
    """Counters for one cache instance (one run)."""
    hits: int = 0
    misses: int = 0
    writes: int = 0
    persist_failures: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "writes": self.writes,
            "persist_failures": self.persist_failures,
        }


@dataclass
class SkippedEmbedding:
    """An entity whose embedding could not be produced this run."""
    entity_type: str
    entity_id: str
    reason: str


@dataclass
class ResolutionReport:
    """
    Outcome of resolving embeddings for a set of entities.

    Vectors are keyed by (entity_type, entity_id).
    """
    vectors: Dict[EmbeddingKey, List[float]] = field(default_factory=dict)
    from_cache: int = 0
    computed: int = 0
    skipped: List[SkippedEmbedding] = field(default_factory=list)

    def vector_for(self, entity_type: EntityType, entity_id: str) -> Optional[List[float]]:
        return self.vectors.get((EntityType(entity_type).value, entity_id))

    @property
    def skipped_ids(self) -> List[str]:
        return [s.entity_id for s in self.skipped]

    def merge(self, other: "ResolutionReport") -> "ResolutionReport":
        """Combine two reports (e.g. issues then signals)."""
        return ResolutionReport(
            vectors={**self.vectors, **other.vectors},
            from_cache=self.from_cache + other.from_cache,
            computed=self.computed + other.computed,
            skipped=self.skipped + other.skipped,
        )
