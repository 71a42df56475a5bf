"""
Shared DTOs
===========

Pydantic models for signals crossing the API boundary.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from signal_engine.shared.domain import IssueRef, Signal

SignalSourceStr = Literal["tracker_issue", "chat_thread", "chat_message"]


class SignalDTO(BaseModel):
    """A normalised signal as supplied by the fetchers."""
    source: SignalSourceStr
    source_id: str = Field(..., min_length=1, description="Identifier within the source")
    title: Optional[str] = Field(None, description="Issue title or thread name")
    body: str = Field(default="", description="Text content")
    created_at: datetime
    updated_at: Optional[datetime] = None
    permalink: Optional[str] = None
    labels: List[str] = Field(default_factory=list)
    author: Optional[str] = None

    @field_validator("body")
    @classmethod
    def validate_body_length(cls, v: str) -> str:
        """Reject pathological payloads; truncation for embedding happens later."""
        if len(v) > 200_000:
            raise ValueError("Body too long (max 200000 characters)")
        return v

    def to_domain(self) -> Signal:
        """Convert to domain entity."""
        return Signal(
            source=self.source,
            source_id=self.source_id,
            title=self.title,
            body=self.body,
            created_at=self.created_at,
            updated_at=self.updated_at,
            permalink=self.permalink,
            labels=tuple(self.labels),
            author=self.author,
        )

    @classmethod
    def from_domain(cls, signal: Signal) -> "SignalDTO":
        """Create from domain entity."""
        return cls(
            source=signal.source.value,
            source_id=signal.source_id,
            title=signal.title,
            body=signal.body,
            created_at=signal.created_at,
            updated_at=signal.updated_at,
            permalink=signal.permalink,
            labels=list(signal.labels),
            author=signal.author,
        )


class IssueRefDTO(BaseModel):
    """Reference to a canonical issue."""
    source: SignalSourceStr
    source_id: str
    permalink: Optional[str] = None
    title: Optional[str] = None

    @classmethod
    def from_domain(cls, ref: IssueRef) -> "IssueRefDTO":
        return cls(
            source=ref.source.value,
            source_id=ref.source_id,
            permalink=ref.permalink,
            title=ref.title,
        )
