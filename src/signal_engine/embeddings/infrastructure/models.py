"""
Embeddings Infrastructure Models
================================

SQLAlchemy ORM model for the relational embedding store.
"""

from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from signal_engine.infrastructure.database import Base


class EmbeddingModel(Base):
    """
    Database model for EmbeddingRecord.

    One row per (entity_type, entity_id, content_hash); a content change
    adds a row instead of overwriting the previous one.
    """
    __tablename__ = "embeddings"

    # Composite primary key
    entity_type: Mapped[str] = mapped_column(String(32), primary_key=True)
    entity_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    content_hash: Mapped[str] = mapped_column(String(32), primary_key=True)

    # Vector payload
    model: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    vector: Mapped[List[float]] = mapped_column(JSON, nullable=False)
    dimension: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )
