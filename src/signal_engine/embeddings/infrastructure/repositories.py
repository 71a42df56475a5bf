"""
Embeddings Infrastructure Repositories
======================================

SQLAlchemy implementation of the embedding store.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from signal_engine.core import EmbeddingCacheException
from signal_engine.embeddings.application import IEmbeddingStore
from signal_engine.embeddings.domain import EmbeddingRecord
from signal_engine.embeddings.infrastructure.models import EmbeddingModel

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class SQLAlchemyEmbeddingStore(IEmbeddingStore):
    """
    Relational embedding store.

    Each call opens its own session so a failed write never poisons the
    caller's transaction.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def get_many(
        self,
        entity_type: str,
        items: List[Tuple[str, str]],
        model: str
    ) -> Dict[str, List[float]]:
        """Get vectors whose hash and model both match."""
        if not items:
            return {}

        stmt = select(
            EmbeddingModel.entity_id, EmbeddingModel.vector
        ).where(
            EmbeddingModel.entity_type == entity_type,
            EmbeddingModel.model == model,
            or_(*[
                and_(EmbeddingModel.entity_id == entity_id, EmbeddingModel.content_hash == content_hash)
                for entity_id, content_hash in items
            ])
        )
        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                return {row.entity_id: list(row.vector) for row in result}
        except SQLAlchemyError as e:
            raise EmbeddingCacheException(f"Failed to read embeddings: {e}")

    async def put_many(self, records: List[EmbeddingRecord]) -> None:
        """Upsert records; last writer wins per key."""
        if not records:
            return

        now = datetime.now(timezone.utc)
        rows = [
            {
                "entity_type": r.entity_type,
                "entity_id": r.entity_id,
                "content_hash": r.content_hash,
                "model": r.model,
                "vector": r.vector,
                "dimension": r.dimension,
                "created_at": r.created_at,
                "updated_at": now,
            }
            for r in records
        ]
        try:
            async with self._session_maker() as session:
                insert = _INSERTS.get(session.bind.dialect.name)
                if insert is None:
                    raise EmbeddingCacheException(
                        f"Unsupported database dialect: {session.bind.dialect.name}"
                    )
                stmt = insert(EmbeddingModel).values(rows)
                stmt = stmt.on_conflict_do_update(
                    index_elements=["entity_type", "entity_id", "content_hash"],
                    set_={
                        "model": stmt.excluded.model,
                        "vector": stmt.excluded.vector,
                        "dimension": stmt.excluded.dimension,
                        "updated_at": stmt.excluded.updated_at,
                    }
                )
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise EmbeddingCacheException(f"Failed to write embeddings: {e}")

    async def clear(self, entity_type: Optional[str] = None) -> None:
        """Delete stored embeddings."""
        stmt = delete(EmbeddingModel)
        if entity_type:
            stmt = stmt.where(EmbeddingModel.entity_type == entity_type)
        try:
            async with self._session_maker() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise EmbeddingCacheException(f"Failed to clear embeddings: {e}")
