"""Tests for grouping, issue-anchored grouping and duplicate detection."""

from datetime import datetime, timezone

import pytest

from signal_engine.classification.domain import CandidateMatch, ClassifiedMessage
from signal_engine.core import ConfigurationException, ValidationException
from signal_engine.correlation.application import CorrelationService
from signal_engine.correlation.domain import (
    UNTITLED_GROUP,
    find_canonical_issue,
    generate_group_title,
    greedy_clusters,
)
from signal_engine.embeddings.application import EmbeddingResolver
from signal_engine.features.domain import Feature
from signal_engine.shared.domain import Signal
from tests.factories import FakeEmbeddingProvider, make_issue, make_signal, no_sleep


def semantic_service(provider, cache, **kwargs) -> CorrelationService:
    resolver = EmbeddingResolver(provider, cache, batch_delay=0.0, sleep=no_sleep)
    return CorrelationService(resolver=resolver, **kwargs)


def ids(signals):
    return [s.source_id for s in signals]


class TestGreedyClusters:

    def test_members_compared_with_seed_only(self):
        # 0~1 and 0~2, but 1 and 2 are far apart
        sims = {(0, 1): 0.65, (0, 2): 0.65, (1, 2): 0.1}

        def similarity(a, b):
            return sims[tuple(sorted((a, b)))]

        assert greedy_clusters([0, 1, 2], similarity, 0.6) == [[0, 1, 2]]

    def test_input_order_matters(self):
        sims = {(0, 1): 0.65, (0, 2): 0.65, (1, 2): 0.1}

        def similarity(a, b):
            return sims[tuple(sorted((a, b)))]

        assert greedy_clusters([1, 0, 2], similarity, 0.6) == [[0, 1], [2]]


class TestSemanticGrouping:

    async def test_dissimilar_thread_never_joins_the_pair(self, cache):
        provider = FakeEmbeddingProvider(axes=["login", "billing"])
        signals = [
            make_signal("a", body="login broken on mobile"),
            make_signal("b", body="cannot login since yesterday"),
            make_signal("c", body="billing invoice is wrong"),
        ]

        result = await semantic_service(provider, cache).group_signals_semantic(signals)

        assert [g.size for g in result.groups] == [2, 1]
        assert ids(result.groups[0].signals) == ["a", "b"]
        assert ids(result.groups[1].signals) == ["c"]
        assert result.groups[0].similarity == pytest.approx(1.0)
        assert result.stats.total_signals == 3
        assert result.stats.grouped_signals == 3
        assert result.stats.embeddings_computed == 3

    async def test_seed_only_chaining_is_preserved(self, cache):
        provider = FakeEmbeddingProvider(vectors={
            "seed": [1.0, 0.0],
            "left": [0.3, 0.954],
            "right": [0.3, -0.954],
        })
        signals = [make_signal("s", body="seed"), make_signal("l", body="left"), make_signal("r", body="right")]

        result = await semantic_service(provider, cache).group_signals_semantic(signals)

        assert len(result.groups) == 1
        assert ids(result.groups[0].signals) == ["s", "l", "r"]
        assert result.groups[0].similarity < 0.6

    async def test_raising_threshold_never_grows_clusters(self, cache):
        # Unit vectors at 0, 20, 45, 90, 100 and 180 degrees
        provider = FakeEmbeddingProvider(vectors={
            "a": [1.0, 0.0],
            "b": [0.9397, 0.3420],
            "c": [0.7071, 0.7071],
            "d": [0.0, 1.0],
            "e": [-0.1736, 0.9848],
            "f": [-1.0, 0.0],
        })
        signals = [make_signal(name, body=name) for name in "abcdef"]
        service = semantic_service(provider, cache)

        shapes = []
        for threshold in (0.55, 0.7, 0.9, 0.98, 0.995):
            result = await service.group_signals_semantic(signals, min_similarity=threshold)
            sizes = [g.size for g in result.groups]
            shapes.append((sum(1 for s in sizes if s > 1), max(sizes)))

        assert shapes == [(2, 3), (2, 3), (2, 2), (1, 2), (0, 1)]
        counts, largest = zip(*shapes)
        assert list(counts) == sorted(counts, reverse=True)
        assert list(largest) == sorted(largest, reverse=True)

    async def test_groups_sorted_by_size_and_capped(self, cache):
        provider = FakeEmbeddingProvider(axes=["alpha", "beta", "gamma"])
        signals = [
            make_signal("1", body="alpha"),
            make_signal("2", body="beta"),
            make_signal("3", body="beta two"),
            make_signal("4", body="gamma"),
        ]

        result = await semantic_service(provider, cache).group_signals_semantic(signals, max_groups=2)

        assert [g.id for g in result.groups] == ["group-2", "group-1"]
        assert ids(result.ungrouped_signals) == ["4"]
        assert result.stats.grouped_signals == 3

    async def test_signals_without_text_are_skipped(self, cache):
        provider = FakeEmbeddingProvider(axes=["login"])
        signals = [make_signal("a", body="login"), make_signal("b", body="  ")]

        result = await semantic_service(provider, cache).group_signals_semantic(signals)

        assert ids(result.ungrouped_signals) == ["b"]
        assert result.stats.skipped_signals == 1

    async def test_feature_affinity_from_group_centroid(self, cache):
        provider = FakeEmbeddingProvider(axes=["login", "billing"])
        features = [
            Feature("auth", "Authentication", "Sign-in", ("login",)),
            Feature("billing", "Billing", "Invoices", ("billing",)),
        ]
        signals = [make_signal("a", body="login fails"), make_signal("b", body="login slow")]
        service = semantic_service(provider, cache, feature_min_similarity=0.75)

        result = await service.group_signals_semantic(signals, features=features)

        matches = result.groups[0].affects_features
        assert [m.feature.id for m in matches] == ["auth"]
        assert matches[0].similarity == pytest.approx(1.0)
        assert not result.groups[0].is_cross_cutting

    async def test_features_without_embeddings_matched_by_rules(self, cache):
        provider = FakeEmbeddingProvider(axes=["login", "billing"], reject=lambda t: t.startswith("Login:"))
        features = [
            Feature("auth", "Login", "Sign-in", ("login",)),
            Feature("billing", "Billing", "Invoices", ("billing",)),
        ]
        signals = [make_signal("a", body="login fails"), make_signal("b", body="login slow")]
        service = semantic_service(provider, cache, feature_min_similarity=0.75)

        result = await service.group_signals_semantic(signals, features=features)

        matches = result.groups[0].affects_features
        assert [(m.feature.id, m.similarity, m.rule_based) for m in matches] == [("auth", 0.9, True)]

    async def test_cross_cutting_group(self, cache):
        provider = FakeEmbeddingProvider(axes=["login", "billing"])
        features = [
            Feature("auth", "Authentication", "", ("login",)),
            Feature("billing", "Billing", "", ("billing",)),
        ]
        signals = [make_signal("a", body="login billing"), make_signal("b", body="billing login")]
        service = semantic_service(provider, cache, feature_min_similarity=0.75)

        result = await service.group_signals_semantic(signals, features=features)

        assert result.groups[0].is_cross_cutting
        assert result.stats.cross_cutting_groups == 1

    async def test_requires_resolver(self):
        with pytest.raises(ConfigurationException):
            await CorrelationService().group_signals_semantic([make_signal("a", body="x")])

    async def test_threshold_validated(self, cache):
        service = semantic_service(FakeEmbeddingProvider(), cache)

        with pytest.raises(ValidationException):
            await service.group_signals_semantic([], min_similarity=60)


class TestLexicalGrouping:

    def test_multi_member_groups_only(self):
        signals = [
            make_signal("a", body="export report fails with timeout error"),
            make_signal("b", body="export report fails with permission error"),
            make_signal("c", body="dark mode colors look off"),
        ]

        result = CorrelationService().group_signals_lexical(signals)

        assert len(result.groups) == 1
        assert ids(result.groups[0].signals) == ["a", "b"]
        assert result.groups[0].similarity == pytest.approx(5 / 7)
        assert ids(result.ungrouped_signals) == ["c"]

    def test_features_matched_by_rules(self):
        features = [
            Feature("exports", "Export", "", ("csv",)),
            Feature("reports", "Dashboards", "", ("report",)),
        ]
        signals = [
            make_signal("a", body="export report fails with timeout error"),
            make_signal("b", body="export report fails with permission error"),
        ]

        result = CorrelationService().group_signals_lexical(signals, features=features)

        matches = result.groups[0].affects_features
        assert [(m.feature.id, m.similarity) for m in matches] == [("exports", 0.9), ("reports", 0.8)]
        assert all(m.rule_based for m in matches)


class TestIssueAnchoredGrouping:

    def test_threads_matched_to_same_issue_form_one_group(self):
        issue = make_issue("42", "Fix trusted-origins CORS bug")
        other = make_issue("7", "Other")
        classified = [
            ClassifiedMessage(make_signal("t1", body="x"), [CandidateMatch(issue, 70.0)]),
            ClassifiedMessage(make_signal("t2", body="y"), [CandidateMatch(issue, 90.0), CandidateMatch(other, 50.0)]),
            ClassifiedMessage(make_signal("t3", body="z"), [CandidateMatch(issue, 80.0)]),
        ]

        result = CorrelationService().group_by_classification(classified)

        assert len(result.groups) == 1
        group = result.groups[0]
        assert group.id == "issue-42"
        assert [t.signal.source_id for t in group.threads] == ["t2", "t3", "t1"]
        assert group.avg_similarity == pytest.approx(80.0)
        assert result.grouped_threads == 3
        assert result.unique_issues == 1

    def test_thread_can_join_several_issues(self):
        a, b, c = make_issue("1", "a"), make_issue("2", "b"), make_issue("3", "c")
        classified = [
            ClassifiedMessage(
                make_signal("t1", body="x"),
                [CandidateMatch(a, 95.0), CandidateMatch(b, 90.0), CandidateMatch(c, 85.0)],
            ),
            ClassifiedMessage(make_signal("t2", body="y"), [CandidateMatch(b, 75.0)]),
        ]

        result = CorrelationService().group_by_classification(classified, top_issues_per_thread=2)

        assert [g.id for g in result.groups] == ["issue-2", "issue-1"]
        assert result.unique_issues == 2


class TestDuplicates:

    def test_timestamp_only_difference_is_duplicate(self):
        signals = [
            make_signal("a", body="Checkout crashes when applying discount code 2025-01-14T09:12:00Z"),
            make_signal("b", body="Checkout crashes when applying discount code 2025-01-15T11:02:31Z"),
            make_signal("c", body="Search results are empty"),
        ]

        groups = CorrelationService().find_duplicates(signals, threshold=0.9)

        assert len(groups) == 1
        assert groups[0].id == "duplicate-1"
        assert ids(groups[0].signals) == ["a", "b"]

    def test_grouping_bar_is_not_duplicate_bar(self):
        signals = [
            make_signal("a", body="export report fails with timeout error"),
            make_signal("b", body="export report fails with permission error"),
        ]
        service = CorrelationService()

        assert len(service.group_signals_lexical(signals, min_similarity=0.5).groups) == 1
        assert service.find_duplicates(signals, threshold=0.9) == []

    async def test_semantic_duplicates(self, cache):
        provider = FakeEmbeddingProvider(axes=["login", "billing"])
        signals = [make_signal("a", body="login"), make_signal("b", body="login!"), make_signal("c", body="billing")]

        groups = await semantic_service(provider, cache).find_duplicates_semantic(signals)

        assert [ids(g.signals) for g in groups] == [["a", "b"]]


class TestCanonicalIssueAndTitle:

    def test_tracker_issue_preferred(self):
        thread = make_signal("t1", body="x", updated_minutes=500)
        issue = make_issue("42", "Bug")

        ref = find_canonical_issue([thread, issue])

        assert ref.source_id == "42"

    def test_most_recent_wins_earlier_on_tie(self):
        older = make_issue("1", "a", minutes=0)
        newer = make_issue("2", "b", minutes=0, updated_minutes=60)
        tie = make_issue("3", "c", minutes=0, updated_minutes=60)

        assert find_canonical_issue([older, newer, tie]).source_id == "2"
        assert find_canonical_issue([older, older]).source_id == "1"

    def test_mixed_naive_and_aware_timestamps(self):
        aware = Signal(
            source="tracker_issue", source_id="1", body="x",
            created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        naive = Signal(source="tracker_issue", source_id="2", body="x", created_at=datetime(2025, 1, 2))

        assert find_canonical_issue([aware, naive]).source_id == "2"

    def test_title_fallbacks(self):
        long_body = "x" * 80

        assert generate_group_title([make_signal("t", body="b", title="Thread"), make_issue("1", "Issue")]) == "Issue"
        assert generate_group_title([make_signal("t", body="b", title="Thread")]) == "Thread"
        assert generate_group_title([make_signal("t", body=long_body)]) == "x" * 60 + "..."
        assert generate_group_title([make_signal("t", body="short")]) == "short"
        assert generate_group_title([make_signal("t", body="")]) == UNTITLED_GROUP
