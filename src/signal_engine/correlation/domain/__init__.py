"""
Correlation Domain Layer
========================

Contains:
- Entities: Group, IssueGroup, ThreadMatch
- Results: GroupingResult, GroupingStats, IssueGroupingResult
- Clustering: greedy seed-only clustering, canonical issue and title rules
"""

from signal_engine.correlation.domain.entities import (
    Group,
    GroupingStats,
    GroupingResult,
    ThreadMatch,
    IssueGroup,
    IssueGroupingResult,
)
from signal_engine.correlation.domain.clustering import (
    UNTITLED_GROUP,
    greedy_clusters,
    mean_pairwise,
    find_canonical_issue,
    generate_group_title,
)

__all__ = [
    "Group",
    "GroupingStats",
    "GroupingResult",
    "ThreadMatch",
    "IssueGroup",
    "IssueGroupingResult",
    "UNTITLED_GROUP",
    "greedy_clusters",
    "mean_pairwise",
    "find_canonical_issue",
    "generate_group_title",
]
