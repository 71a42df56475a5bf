"""
Greedy Clustering
=================

Single-pass, seed-only clustering shared by every grouping mode.

Signals are visited in input order. Each unprocessed signal seeds a new
cluster and pulls in every later unprocessed signal whose similarity to the
seed meets the threshold. Members are never compared with each other, so a
cluster can contain two members that are dissimilar to one another. The
result depends on input order.
"""

from itertools import combinations
from typing import Callable, List, Optional, Sequence, TypeVar

from signal_engine.shared.domain import IssueRef, Signal

T = TypeVar("T")

UNTITLED_GROUP = "Untitled Group"
TITLE_PREVIEW_CHARS = 60


def greedy_clusters(
    items: Sequence[T],
    similarity: Callable[[T, T], float],
    min_similarity: float,
) -> List[List[int]]:
    """
    Cluster items against their seed.

    Returns:
        Clusters as lists of item indices, in seed order; singletons included
    """
    processed = [False] * len(items)
    clusters = []
    for i, seed in enumerate(items):
        if processed[i]:
            continue
        processed[i] = True
        members = [i]
        for j in range(i + 1, len(items)):
            if processed[j]:
                continue
            if similarity(seed, items[j]) >= min_similarity:
                members.append(j)
                processed[j] = True
        clusters.append(members)
    return clusters


def mean_pairwise(items: Sequence[T], similarity: Callable[[T, T], float], singleton: float = 1.0) -> float:
    """Mean of all pairwise similarities; `singleton` for fewer than two items."""
    pairs = list(combinations(items, 2))
    if not pairs:
        return singleton
    return sum(similarity(a, b) for a, b in pairs) / len(pairs)


def find_canonical_issue(signals: Sequence[Signal]) -> Optional[IssueRef]:
    """
    Pick the group's representative.

    Tracker issues win over chat signals; among candidates the most recently
    updated (falling back to created time) wins, earlier input on ties.
    """
    if not signals:
        return None
    candidates = [s for s in signals if s.is_tracker_issue] or list(signals)
    best = candidates[0]
    for signal in candidates[1:]:
        if signal.last_activity > best.last_activity:
            best = signal
    return best.to_ref()


def generate_group_title(signals: Sequence[Signal]) -> str:
    """Tracker title, then chat title, then a body preview."""
    for signal in signals:
        if signal.is_tracker_issue and signal.title:
            return signal.title
    for signal in signals:
        if not signal.is_tracker_issue and signal.title:
            return signal.title
    if signals and signals[0].body:
        body = signals[0].body
        suffix = "..." if len(body) > TITLE_PREVIEW_CHARS else ""
        return body[:TITLE_PREVIEW_CHARS] + suffix
    return UNTITLED_GROUP
