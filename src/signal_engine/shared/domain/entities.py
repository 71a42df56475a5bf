"""
Shared Domain Entities
======================

The Signal is the unit every bounded context works on: a tracker issue,
a chat thread or a single chat message, normalised by the fetchers.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple

from signal_engine.config import EntityType, SignalSource


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class Signal:
    """
    Normalised discussion or tracker signal.

    Immutable; identity is (source, source_id).
    """
    source: SignalSource
    source_id: str
    body: str
    created_at: datetime
    title: Optional[str] = None
    updated_at: Optional[datetime] = None
    permalink: Optional[str] = None
    labels: Tuple[str, ...] = field(default_factory=tuple)
    author: Optional[str] = None

    def __post_init__(self):
        """Validate signal identity."""
        if not self.source_id:
            raise ValueError("Signal source_id must not be empty")
        # Accept plain strings for source and any iterable for labels
        object.__setattr__(self, "source", SignalSource(self.source))
        object.__setattr__(self, "labels", tuple(self.labels or ()))
        # Naive timestamps are taken as UTC so activity times stay comparable
        object.__setattr__(self, "created_at", _as_utc(self.created_at))
        if self.updated_at is not None:
            object.__setattr__(self, "updated_at", _as_utc(self.updated_at))

    @property
    def key(self) -> str:
        """Stable identifier unique across sources."""
        return f"{self.source.value}:{self.source_id}"

    @property
    def is_tracker_issue(self) -> bool:
        return self.source == SignalSource.TRACKER_ISSUE

    @property
    def entity_type(self) -> EntityType:
        """Entity type used when caching this signal's embedding."""
        if self.source == SignalSource.TRACKER_ISSUE:
            return EntityType.ISSUE
        if self.source == SignalSource.CHAT_MESSAGE:
            return EntityType.MESSAGE
        return EntityType.THREAD

    @property
    def last_activity(self) -> datetime:
        """Most recent update, falling back to creation time."""
        return self.updated_at or self.created_at

    @property
    def has_text(self) -> bool:
        return bool((self.title or "").strip() or self.body.strip())

    def to_ref(self) -> "IssueRef":
        return IssueRef(
            source=self.source,
            source_id=self.source_id,
            permalink=self.permalink,
            title=self.title,
        )


@dataclass(frozen=True)
class IssueRef:
    """Reference to the signal chosen as a group's canonical issue."""
    source: SignalSource
    source_id: str
    permalink: Optional[str] = None
    title: Optional[str] = None
