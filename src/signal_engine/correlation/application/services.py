"""
Correlation Application Services
================================

Groups signals into topics, three ways:
- semantic: greedy clustering on embedding similarity with feature affinity
- lexical: the same clustering on word overlap, no external calls
- issue-anchored: regroup classifier output by the issue each signal matched

Duplicate detection reuses the clustering primitive with a higher bar and
is reported separately; it never feeds back into the primary grouping.
"""

from typing import Dict, List, Optional, Sequence

from signal_engine.classification.domain import ClassifiedMessage
from signal_engine.core import ConfigurationException, ValidationException
from signal_engine.correlation.domain import (
    Group,
    GroupingResult,
    GroupingStats,
    IssueGroup,
    IssueGroupingResult,
    ThreadMatch,
    find_canonical_issue,
    generate_group_title,
    greedy_clusters,
    mean_pairwise,
)
from signal_engine.embeddings.application import EmbeddingResolver
from signal_engine.embeddings.domain import EmbeddingRequest
from signal_engine.features.application import FeatureMapper
from signal_engine.features.domain import Feature
from signal_engine.shared.domain import Signal, signal_text
from signal_engine.shared.infrastructure.logging import get_run_logger, log_latency
from signal_engine.similarity.domain import mean_vector, similarity_unit, word_overlap


def _overlap_text(signal: Signal) -> str:
    return f"{signal.body} {signal.title or ''}"


def _lexical_similarity(a: Signal, b: Signal) -> float:
    return word_overlap(_overlap_text(a), _overlap_text(b))


def _check_unit_threshold(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValidationException(f"{name} must be between 0 and 1", {name: value})


def _check_max_groups(max_groups: int) -> None:
    if max_groups < 1:
        raise ValidationException("max_groups must be at least 1", {"max_groups": max_groups})


def _ungrouped(signals: Sequence[Signal], groups: Sequence[Group]) -> List[Signal]:
    grouped = {s.key for g in groups for s in g.signals}
    return [s for s in signals if s.key not in grouped]


class CorrelationService:
    """
    Service for grouping signals.

    Scoring and clustering are synchronous CPU work; only embedding
    resolution awaits.
    """

    def __init__(
        self,
        resolver: Optional[EmbeddingResolver] = None,
        signal_batch_size: int = 25,
        feature_batch_size: int = 50,
        feature_min_similarity: float = 0.5,
        max_features_per_group: int = 5,
        run_id: Optional[str] = None,
    ):
        self._resolver = resolver
        self._signal_batch_size = signal_batch_size
        self._feature_batch_size = feature_batch_size
        self._feature_min_similarity = feature_min_similarity
        self._max_features = max_features_per_group
        self._logger = get_run_logger(__name__, run_id)

    def feature_mapper(self, features: Optional[Sequence[Feature]]) -> FeatureMapper:
        """Feature mapper sharing this service's resolver and thresholds."""
        return FeatureMapper(
            features or [],
            resolver=self._resolver,
            min_similarity=self._feature_min_similarity,
            max_features=self._max_features,
            batch_size=self._feature_batch_size,
        )

    async def group_signals_semantic(
        self,
        signals: List[Signal],
        features: Optional[Sequence[Feature]] = None,
        min_similarity: float = 0.6,
        max_groups: int = 50,
    ) -> GroupingResult:
        """
        Cluster signals on embedding similarity.

        Args:
            signals: Signals to group, in the order clustering should visit them
            features: Feature catalog for affinity mapping
            min_similarity: Seed similarity threshold on [0, 1]
            max_groups: Cap on returned groups (largest first)

        Returns:
            GroupingResult; singletons are groups too, and signals without a
            vector this run are reported as ungrouped and counted as skipped
        """
        if self._resolver is None:
            raise ConfigurationException("Semantic grouping requires an embedding provider")
        _check_unit_threshold("min_similarity", min_similarity)
        _check_max_groups(max_groups)

        with log_latency(self._logger, "group_signals_semantic", signals=len(signals)):
            report = await self._resolver.resolve(
                [EmbeddingRequest(s.entity_type, s.source_id, signal_text(s)) for s in signals],
                batch_size=self._signal_batch_size,
            )
            embedded: List[Signal] = []
            vectors: List[List[float]] = []
            for signal in signals:
                vector = report.vector_for(signal.entity_type, signal.source_id)
                if vector is not None:
                    embedded.append(signal)
                    vectors.append(vector)

            mapper = self.feature_mapper(features)
            feature_vectors = await mapper.feature_vectors()

            groups = []
            for n, members in enumerate(greedy_clusters(vectors, similarity_unit, min_similarity), start=1):
                member_signals = [embedded[i] for i in members]
                member_vectors = [vectors[i] for i in members]
                groups.append(Group(
                    id=f"group-{n}",
                    signals=member_signals,
                    similarity=mean_pairwise(member_vectors, similarity_unit),
                    suggested_title=generate_group_title(member_signals),
                    affects_features=mapper.map_group(
                        mean_vector(member_vectors),
                        feature_vectors,
                        " ".join(signal_text(s) for s in member_signals),
                    ),
                    canonical_issue=find_canonical_issue(member_signals),
                ))

            # sort() is stable: equal sizes keep seed order
            groups.sort(key=lambda g: -g.size)
            limited = groups[:max_groups]

        result = self._result(signals, limited)
        result.stats.embeddings_computed = report.computed
        result.stats.embeddings_from_cache = report.from_cache
        result.stats.skipped_signals = len(signals) - len(embedded)
        self._log_result("Semantic grouping finished", result)
        return result

    def group_signals_lexical(
        self,
        signals: List[Signal],
        features: Optional[Sequence[Feature]] = None,
        min_similarity: float = 0.5,
        max_groups: int = 10,
    ) -> GroupingResult:
        """
        Cluster signals on word overlap.

        Only multi-member groups are returned, most similar first. Features
        are attached by name/keyword rules when a catalog is given.
        """
        _check_unit_threshold("min_similarity", min_similarity)
        _check_max_groups(max_groups)

        mapper = self.feature_mapper(features)
        groups = []
        for members in greedy_clusters(signals, _lexical_similarity, min_similarity):
            if len(members) < 2:
                continue
            member_signals = [signals[i] for i in members]
            text = " ".join(signal_text(s) for s in member_signals)
            groups.append(Group(
                id=f"group-{len(groups) + 1}",
                signals=member_signals,
                similarity=mean_pairwise(member_signals, _lexical_similarity, singleton=0.0),
                suggested_title=generate_group_title(member_signals),
                affects_features=mapper.match_by_rules(text),
                canonical_issue=find_canonical_issue(member_signals),
            ))

        groups.sort(key=lambda g: -g.similarity)
        result = self._result(signals, groups[:max_groups])
        self._log_result("Lexical grouping finished", result)
        return result

    def group_by_classification(
        self,
        classified: List[ClassifiedMessage],
        min_similarity: float = 60.0,
        max_groups: int = 50,
        top_issues_per_thread: int = 3,
    ) -> IssueGroupingResult:
        """
        Regroup classifier output by matched issue.

        Each signal contributes to the groups of its top issues scoring at
        least min_similarity (0-100). Threads inside a group are ordered by
        descending score; groups by descending thread count.
        """
        if not 0.0 <= min_similarity <= 100.0:
            raise ValidationException(
                "min_similarity must be between 0 and 100",
                {"min_similarity": min_similarity}
            )
        _check_max_groups(max_groups)
        if top_issues_per_thread < 1:
            raise ValidationException("top_issues_per_thread must be at least 1")

        issues: Dict[str, Signal] = {}
        threads: Dict[str, List[ThreadMatch]] = {}
        grouped_threads = 0

        for message in classified:
            top = [
                m for m in message.related_issues
                if m.similarity_score >= min_similarity
            ][:top_issues_per_thread]
            if top:
                grouped_threads += 1
            for match in top:
                issues.setdefault(match.issue.key, match.issue)
                threads.setdefault(match.issue.key, []).append(
                    ThreadMatch(signal=message.signal, similarity_score=match.similarity_score)
                )

        groups = []
        for key, members in threads.items():
            members.sort(key=lambda t: -t.similarity_score)
            issue = issues[key]
            groups.append(IssueGroup(
                id=f"issue-{issue.source_id}",
                issue=issue,
                threads=members,
                avg_similarity=sum(t.similarity_score for t in members) / len(members),
            ))
        groups.sort(key=lambda g: -len(g.threads))

        self._logger.info(
            "Issue-anchored grouping finished",
            extra={
                "threads": len(classified),
                "grouped_threads": grouped_threads,
                "groups": min(len(groups), max_groups),
            }
        )
        return IssueGroupingResult(
            groups=groups[:max_groups],
            total_threads=len(classified),
            grouped_threads=grouped_threads,
            unique_issues=len(groups),
        )

    def find_duplicates(self, signals: List[Signal], threshold: float = 0.9) -> List[Group]:
        """Near-identical signals by word overlap, as multi-member groups."""
        _check_unit_threshold("threshold", threshold)
        clusters = greedy_clusters(signals, _lexical_similarity, threshold)
        return self._duplicate_groups(signals, clusters, _lexical_similarity)

    async def find_duplicates_semantic(self, signals: List[Signal], threshold: float = 0.9) -> List[Group]:
        """Near-identical signals by embedding similarity on [0, 1]."""
        if self._resolver is None:
            raise ConfigurationException("Semantic duplicate detection requires an embedding provider")
        _check_unit_threshold("threshold", threshold)

        report = await self._resolver.resolve(
            [EmbeddingRequest(s.entity_type, s.source_id, signal_text(s)) for s in signals],
            batch_size=self._signal_batch_size,
        )
        vectors = {}
        embedded = []
        for signal in signals:
            vector = report.vector_for(signal.entity_type, signal.source_id)
            if vector is not None:
                vectors[signal.key] = vector
                embedded.append(signal)

        def similarity(a: Signal, b: Signal) -> float:
            return similarity_unit(vectors[a.key], vectors[b.key])

        return self._duplicate_groups(embedded, greedy_clusters(embedded, similarity, threshold), similarity)

    def _duplicate_groups(self, signals, clusters, similarity) -> List[Group]:
        groups = []
        for members in clusters:
            if len(members) < 2:
                continue
            member_signals = [signals[i] for i in members]
            groups.append(Group(
                id=f"duplicate-{len(groups) + 1}",
                signals=member_signals,
                similarity=mean_pairwise(member_signals, similarity),
                suggested_title=generate_group_title(member_signals),
                canonical_issue=find_canonical_issue(member_signals),
            ))
        self._logger.info(
            "Duplicate detection finished",
            extra={"signals": len(signals), "duplicate_groups": len(groups)}
        )
        return groups

    @staticmethod
    def _result(signals: Sequence[Signal], groups: List[Group]) -> GroupingResult:
        ungrouped = _ungrouped(signals, groups)
        return GroupingResult(
            groups=groups,
            ungrouped_signals=ungrouped,
            stats=GroupingStats(
                total_signals=len(signals),
                grouped_signals=len(signals) - len(ungrouped),
                cross_cutting_groups=sum(1 for g in groups if g.is_cross_cutting),
            ),
        )

    def _log_result(self, message: str, result: GroupingResult) -> None:
        self._logger.info(
            message,
            extra={
                "groups": len(result.groups),
                "grouped_signals": result.stats.grouped_signals,
                "ungrouped_signals": len(result.ungrouped_signals),
                "cross_cutting_groups": result.stats.cross_cutting_groups,
            }
        )
