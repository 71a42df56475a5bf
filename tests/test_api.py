"""API tests against the FastAPI app with an injected engine context."""

import pytest
from fastapi.testclient import TestClient

from signal_engine.embeddings.infrastructure import InMemoryEmbeddingStore
from signal_engine.engine import EngineContext
from signal_engine.features.domain import Feature
from signal_engine.main import app
from tests.factories import FakeEmbeddingProvider


def signal(source_id, body, title=None, source="chat_thread"):
    return {
        "source": source,
        "source_id": source_id,
        "title": title,
        "body": body,
        "created_at": "2025-01-14T09:12:00Z",
    }


ISSUES = [
    signal("41", "Add release notes", title="Update changelog", source="tracker_issue"),
    signal("42", "Requests from trusted origins are rejected", title="Fix trusted-origins CORS bug",
           source="tracker_issue"),
]


@pytest.fixture
def engine(settings):
    return EngineContext(
        settings=settings,
        store=InMemoryEmbeddingStore(),
        provider=None,
        features=[Feature("auth", "Authentication", "Sign-in", ("login",))],
    )


@pytest.fixture
def client(engine):
    # Lifespan is not entered; the engine is injected directly
    app.state.engine = engine
    yield TestClient(app)
    del app.state.engine


class TestClassificationApi:

    def test_classify_lexical(self, client):
        response = client.post("/classification/classify", json={
            "signals": [signal("t1", "CSRF trusted origins misconfigured")],
            "issues": ISSUES,
        })

        assert response.status_code == 200
        body = response.json()
        assert body["strategy_used"] == "lexical"
        assert body["classified"][0]["related_issues"][0]["issue"]["source_id"] == "42"
        assert body["run_id"]

    def test_embedding_strategy_without_provider(self, client):
        response = client.post("/classification/classify", json={
            "signals": [signal("t1", "x")],
            "issues": ISSUES,
            "strategy": "embedding",
        })

        assert response.status_code == 503
        assert response.json()["error_type"] == "ConfigurationException"

    def test_invalid_threshold(self, client):
        response = client.post("/classification/classify", json={
            "signals": [],
            "issues": ISSUES,
            "min_similarity": 150,
        })

        assert response.status_code == 422

    def test_embedding_strategy_with_provider(self, client, engine):
        engine.provider = FakeEmbeddingProvider(axes=["cors"])

        response = client.post("/classification/classify", json={
            "signals": [signal("t1", "cors broken")],
            "issues": ISSUES,
            "strategy": "embedding",
        })

        assert response.status_code == 200
        body = response.json()
        assert body["strategy_used"] == "embedding"
        assert body["embeddings_computed"] == 3


class TestCorrelationApi:

    def test_lexical_groups_with_feature_index(self, client):
        response = client.post("/correlation/groups", json={
            "mode": "lexical",
            "signals": [
                signal("a", "login export fails with timeout error"),
                signal("b", "login export fails with permission error"),
                signal("c", "dark mode colors"),
            ],
        })

        assert response.status_code == 200
        body = response.json()
        assert [s["source_id"] for s in body["groups"][0]["signals"]] == ["a", "b"]
        assert body["groups"][0]["affects_features"][0]["id"] == "auth"
        assert body["feature_index"][0]["group_ids"] == ["group-1"]
        assert [s["source_id"] for s in body["ungrouped_signals"]] == ["c"]

    def test_mixed_naive_and_aware_timestamps(self, client):
        naive = dict(signal("b", "login export fails with permission error"), created_at="2025-01-15T10:00:00")

        response = client.post("/correlation/groups", json={
            "mode": "lexical",
            "signals": [signal("a", "login export fails with timeout error"), naive],
        })

        assert response.status_code == 200
        assert response.json()["groups"][0]["canonical_issue"]["source_id"] == "b"

    def test_semantic_groups_require_provider(self, client):
        response = client.post("/correlation/groups", json={"signals": [signal("a", "x")]})

        assert response.status_code == 503

    def test_semantic_groups(self, client, engine):
        engine.provider = FakeEmbeddingProvider(axes=["login", "billing"])

        response = client.post("/correlation/groups", json={
            "signals": [signal("a", "login"), signal("b", "billing"), signal("c", "login again")],
            "features": [],
        })

        assert response.status_code == 200
        body = response.json()
        assert [len(g["signals"]) for g in body["groups"]] == [2, 1]
        assert body["stats"]["embeddings_computed"] == 3
        assert body["mode"] == "semantic"

    def test_group_by_issue(self, client):
        issue = ISSUES[1]
        classified = [
            {"signal": signal(f"t{i}", "x"), "related_issues": [
                {"issue": issue, "similarity_score": score, "matched_terms": []}
            ]}
            for i, score in enumerate((70.0, 90.0, 40.0))
        ]

        response = client.post("/correlation/groups/by-issue", json={"classified": classified})

        assert response.status_code == 200
        group = response.json()["groups"][0]
        assert group["id"] == "issue-42"
        assert [t["signal"]["source_id"] for t in group["threads"]] == ["t1", "t0"]

    def test_duplicates(self, client):
        response = client.post("/correlation/duplicates", json={
            "signals": [
                signal("a", "Checkout crashes on discount code 2025-01-14T09:12:00Z"),
                signal("b", "Checkout crashes on discount code 2025-01-15T10:00:00Z"),
            ],
        })

        assert response.status_code == 200
        assert response.json()["duplicate_signals"] == 2


class TestServiceEndpoints:

    def test_features(self, client):
        response = client.get("/features")

        assert response.status_code == 200
        assert response.json()[0]["id"] == "auth"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["checks"]["embeddings"] == "not_configured"
        assert response.json()["checks"]["feature_catalog"] == "loaded (1 features)"

    def test_correlation_id_echoed(self, client):
        response = client.get("/", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_engine_missing(self):
        response = TestClient(app).get("/features")

        assert response.status_code == 503
