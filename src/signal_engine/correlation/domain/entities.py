"""
Correlation Domain Entities
===========================

Groups of related signals. Groups are recomputed wholesale on every run;
nothing here is patched incrementally.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from signal_engine.features.domain import FeatureMatch
from signal_engine.shared.domain import IssueRef, Signal


@dataclass
class Group:
    """
    A cluster of one or more signals believed to concern the same topic.

    similarity is the mean pairwise similarity on [0, 1] (1.0 for singletons).
    """
    id: str
    signals: List[Signal]
    similarity: float
    suggested_title: str
    affects_features: List[FeatureMatch] = field(default_factory=list)
    canonical_issue: Optional[IssueRef] = None

    @property
    def is_cross_cutting(self) -> bool:
        """True when the group affects more than one feature."""
        return len(self.affects_features) > 1

    @property
    def size(self) -> int:
        return len(self.signals)


@dataclass
class GroupingStats:
    """Counters reported with every grouping run."""
    total_signals: int = 0
    grouped_signals: int = 0
    cross_cutting_groups: int = 0
    embeddings_computed: int = 0
    embeddings_from_cache: int = 0
    skipped_signals: int = 0


@dataclass
class GroupingResult:
    """Groups plus the signals no returned group captured."""
    groups: List[Group]
    ungrouped_signals: List[Signal]
    stats: GroupingStats


@dataclass(frozen=True)
class ThreadMatch:
    """A signal attached to an issue-anchored group."""
    signal: Signal
    similarity_score: float


@dataclass
class IssueGroup:
    """
    Issue-anchored group: every signal whose classification matched the
    same issue above the threshold.
    """
    id: str
    issue: Signal
    threads: List[ThreadMatch]
    avg_similarity: float


@dataclass
class IssueGroupingResult:
    """Result of grouping by classification output."""
    groups: List[IssueGroup]
    total_threads: int
    grouped_threads: int
    unique_issues: int
