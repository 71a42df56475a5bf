"""
Classification Domain Entities
==============================

Domain entities for matching signals against tracker issues.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from signal_engine.shared.domain import Signal


@dataclass(frozen=True)
class CandidateMatch:
    """
    One issue proposed as related to a signal.

    similarity_score is on the [0, 100] scale for both strategies.
    """
    issue: Signal
    similarity_score: float
    matched_terms: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Validate score range."""
        if not 0.0 <= self.similarity_score <= 100.0:
            raise ValueError("similarity_score must be between 0 and 100")


@dataclass
class ClassifiedMessage:
    """A signal with its ranked candidate issues (best first)."""
    signal: Signal
    related_issues: List[CandidateMatch] = field(default_factory=list)

    @property
    def best_match(self) -> Optional[CandidateMatch]:
        return self.related_issues[0] if self.related_issues else None

    @property
    def has_matches(self) -> bool:
        return bool(self.related_issues)

    def filtered(self, min_similarity: float) -> "ClassifiedMessage":
        """Copy keeping only matches at or above the threshold."""
        return ClassifiedMessage(
            signal=self.signal,
            related_issues=[m for m in self.related_issues if m.similarity_score >= min_similarity],
        )


@dataclass
class StrategyResult:
    """Raw output of a scoring strategy, one message per input signal."""
    messages: List[ClassifiedMessage]
    strategy: str
    skipped_signal_ids: List[str] = field(default_factory=list)
    embeddings_computed: int = 0
    embeddings_from_cache: int = 0


@dataclass
class ClassificationReport:
    """
    Result of a classification run.

    Only signals with at least one match above the threshold are listed in
    `classified`; skipped signals had no vector available this run.
    """
    classified: List[ClassifiedMessage]
    strategy_used: str
    total_signals: int
    total_issues: int
    skipped_signal_ids: List[str] = field(default_factory=list)
    embeddings_computed: int = 0
    embeddings_from_cache: int = 0

    @property
    def classified_count(self) -> int:
        return len(self.classified)

    @property
    def unmatched_count(self) -> int:
        return self.total_signals - self.classified_count
