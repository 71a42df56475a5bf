"""Tests for feature mapping and the YAML catalog."""

import pytest

from signal_engine.core import ConfigurationException
from signal_engine.correlation.domain import Group
from signal_engine.embeddings.application import EmbeddingResolver
from signal_engine.features.application import FeatureMapper, build_feature_index
from signal_engine.features.domain import Feature, FeatureMatch
from signal_engine.features.infrastructure import load_feature_catalog, parse_feature_catalog
from tests.factories import FakeEmbeddingProvider, make_signal, no_sleep

CATALOG = """
features:
  - id: auth
    name: Authentication
    description: Sign-in, sessions and tokens
    related_keywords: [login, sso, "  "]
  - id: billing
    name: Billing
    related_keywords: [invoice]
"""


@pytest.fixture
def features():
    return [
        Feature("auth", "Authentication", "Sign-in", ("login", "ui")),
        Feature("billing", "Billing", "Invoices", ("invoice",)),
        Feature("search", "Search", "Full text search", ()),
    ]


class TestRuleMatching:

    def test_name_beats_keyword(self, features):
        matches = FeatureMapper(features).match_by_rules("Billing page and LOGIN screen")

        assert [(m.feature.id, m.similarity) for m in matches] == [("billing", 0.9), ("auth", 0.8)]

    def test_short_keywords_ignored(self, features):
        assert FeatureMapper(features).match_by_rules("the ui is slow") == []

    def test_capped(self, features):
        matches = FeatureMapper(features, max_features=1).match_by_rules("billing search login")

        assert len(matches) == 1


class TestAffinity:

    def test_threshold_order_and_cap(self, features):
        mapper = FeatureMapper(features, min_similarity=0.6, max_features=2)
        vectors = {"auth": [1.0, 0.0], "billing": [1.0, 1.0], "search": [-1.0, 0.0]}

        matches = mapper.affected_features([1.0, 0.0], vectors)

        assert [m.feature.id for m in matches] == ["auth", "billing"]
        assert matches[0].similarity == pytest.approx(1.0)

    def test_empty_group_vector(self, features):
        assert FeatureMapper(features).affected_features([], {"auth": [1.0]}) == []

    def test_map_group_uses_rules_for_unembedded_features(self, features):
        mapper = FeatureMapper(features, min_similarity=0.6)

        matches = mapper.map_group([1.0, 0.0], {"auth": [1.0, 0.0]}, "Invoice totals are off")

        assert [(m.feature.id, m.rule_based) for m in matches] == [("auth", False), ("billing", True)]

    def test_map_group_capped_after_merge(self, features):
        mapper = FeatureMapper(features, max_features=1)

        matches = mapper.map_group([1.0, 0.0], {"auth": [0.0, 1.0]}, "billing page")

        assert [m.feature.id for m in matches] == ["billing"]

    async def test_feature_vectors_resolved_once(self, cache, features):
        provider = FakeEmbeddingProvider(axes=["login", "invoice"])
        resolver = EmbeddingResolver(provider, cache, batch_delay=0.0, sleep=no_sleep)
        mapper = FeatureMapper(features, resolver=resolver)

        first = await mapper.feature_vectors()
        second = await mapper.feature_vectors()

        assert first is second
        assert len(provider.calls) == 1
        assert first["auth"] == [1.0, 0.0, 0.0]
        assert set(first) == {"auth", "billing", "search"}

    async def test_feature_vectors_without_resolver(self, features):
        assert await FeatureMapper(features).feature_vectors() == {}


class TestFeatureIndex:

    def test_lists_whole_catalog(self, features):
        group = Group(
            id="group-1",
            signals=[make_signal("a", body="x"), make_signal("b", body="y")],
            similarity=1.0,
            suggested_title="x",
            affects_features=[FeatureMatch(features[1], 0.9)],
        )

        index = build_feature_index([group], features)

        assert [m.feature.id for m in index] == ["auth", "billing", "search"]
        assert index[1].group_ids == ["group-1"]
        assert index[1].signal_count == 2
        assert index[0].group_ids == []


class TestCatalog:

    def test_parse_mapping_layout(self):
        features = parse_feature_catalog(CATALOG)

        assert [f.id for f in features] == ["auth", "billing"]
        assert features[0].related_keywords == ("login", "sso")
        assert features[1].description == ""

    def test_parse_list_layout(self):
        features = parse_feature_catalog("- id: a\n  name: Alpha\n")

        assert features[0].name == "Alpha"

    def test_empty_catalog(self):
        assert parse_feature_catalog("") == []

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ConfigurationException):
            parse_feature_catalog("- {id: a, name: A}\n- {id: a, name: B}\n")

    def test_invalid_entry_rejected(self):
        with pytest.raises(ConfigurationException):
            parse_feature_catalog("- {id: a}\n")

    def test_invalid_yaml_rejected(self):
        with pytest.raises(ConfigurationException):
            parse_feature_catalog("features: [unclosed")

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "features.yaml"
        path.write_text(CATALOG)

        assert len(load_feature_catalog(path)) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationException):
            load_feature_catalog(tmp_path / "missing.yaml")
