"""Tests for the embedding cache and its stores."""

import json

import pytest

from signal_engine.core import EmbeddingCacheException
from signal_engine.embeddings.application import EmbeddingCache
from signal_engine.embeddings.domain import EmbeddingRecord
from signal_engine.embeddings.infrastructure import (
    CACHE_FORMAT_VERSION,
    InMemoryEmbeddingStore,
    JsonFileEmbeddingStore,
    SQLAlchemyEmbeddingStore,
)
from signal_engine.infrastructure.database import (
    close_database,
    create_tables,
    get_session_maker,
    init_database,
)
from signal_engine.shared.domain import hash_content
from tests.factories import FailingEmbeddingStore


def record(entity_id: str, text: str, vector, model: str = "m1", entity_type: str = "thread") -> EmbeddingRecord:
    return EmbeddingRecord(
        entity_type=entity_type,
        entity_id=entity_id,
        content_hash=hash_content(text),
        model=model,
        vector=list(vector),
    )


class TestEmbeddingCache:

    async def test_hit_requires_matching_hash(self, store):
        cache = EmbeddingCache(store, model="m1")
        await cache.put("thread", "t1", hash_content("v1"), [1.0, 0.0])

        assert await cache.get("thread", "t1", hash_content("v1")) == [1.0, 0.0]
        assert await cache.get("thread", "t1", hash_content("v2")) is None
        assert cache.stats.hits == 1
        assert cache.stats.misses == 1

    async def test_reverted_content_hits_again(self, store):
        first = EmbeddingCache(store, model="m1")
        await first.put("thread", "t1", hash_content("v1"), [1.0, 0.0])
        await first.put("thread", "t1", hash_content("v2"), [0.0, 1.0])

        later = EmbeddingCache(store, model="m1")
        assert await later.get("thread", "t1", hash_content("v1")) == [1.0, 0.0]
        assert await later.get("thread", "t1", hash_content("v2")) == [0.0, 1.0]

    async def test_model_change_is_a_miss(self, store):
        await EmbeddingCache(store, model="m1").put("issue", "1", "h", [1.0])

        assert await EmbeddingCache(store, model="m2").get("issue", "1", "h") is None

    async def test_entity_types_are_separate(self, store):
        cache = EmbeddingCache(store, model="m1")
        await cache.put("issue", "1", "h", [1.0])

        assert await cache.get("thread", "1", "h") is None

    async def test_persist_failure_keeps_vector_for_the_run(self):
        cache = EmbeddingCache(FailingEmbeddingStore(fail_writes=True), model="m1")

        persisted = await cache.put("thread", "t1", "h", [0.5])

        assert persisted is False
        assert cache.stats.persist_failures == 1
        assert cache.stats.writes == 0
        assert await cache.get("thread", "t1", "h") == [0.5]

    async def test_read_failure_is_a_miss(self):
        cache = EmbeddingCache(FailingEmbeddingStore(fail_reads=True, fail_writes=False), model="m1")

        assert await cache.get_many("thread", [("t1", "h"), ("t2", "h")]) == {}
        assert cache.stats.misses == 2

    async def test_sessions_do_not_leak_between_caches(self):
        failing = FailingEmbeddingStore(fail_writes=True)
        await EmbeddingCache(failing, model="m1").put("thread", "t1", "h", [0.5])

        assert await EmbeddingCache(failing, model="m1").get("thread", "t1", "h") is None


class TestInMemoryStore:

    async def test_clear_by_type(self):
        store = InMemoryEmbeddingStore()
        await store.put_many([
            record("1", "a", [1.0], entity_type="issue"),
            record("2", "b", [1.0], entity_type="thread"),
        ])

        await store.clear("issue")

        assert len(store) == 1


class TestJsonFileStore:

    async def test_persists_across_instances(self, tmp_path):
        await JsonFileEmbeddingStore(tmp_path, model="m1").put(record("t1", "hello", [0.1, 0.2]))

        reopened = JsonFileEmbeddingStore(tmp_path, model="m1")
        found = await reopened.get_many("thread", [("t1", hash_content("hello"))], "m1")

        assert found == {"t1": [0.1, 0.2]}
        payload = json.loads((tmp_path / "thread-embeddings.json").read_text())
        assert payload["version"] == CACHE_FORMAT_VERSION
        assert payload["model"] == "m1"

    async def test_file_from_other_model_is_discarded(self, tmp_path):
        await JsonFileEmbeddingStore(tmp_path, model="m1").put(record("t1", "hello", [0.1]))

        other = JsonFileEmbeddingStore(tmp_path, model="m2")

        assert await other.get_many("thread", [("t1", hash_content("hello"))], "m2") == {}

    async def test_file_from_other_version_is_discarded(self, tmp_path):
        path = tmp_path / "thread-embeddings.json"
        path.write_text(json.dumps({
            "version": CACHE_FORMAT_VERSION + 1,
            "model": "m1",
            "entries": {"t1": {hash_content("hello"): {"vector": [1.0]}}},
        }))

        store = JsonFileEmbeddingStore(tmp_path, model="m1")

        assert await store.get_many("thread", [("t1", hash_content("hello"))], "m1") == {}

    async def test_unreadable_file_starts_empty(self, tmp_path):
        (tmp_path / "issue-embeddings.json").write_text("{not json")

        store = JsonFileEmbeddingStore(tmp_path, model="m1")

        assert await store.get_many("issue", [("1", "h")], "m1") == {}

    async def test_old_versions_are_pruned(self, tmp_path):
        store = JsonFileEmbeddingStore(tmp_path, model="m1", max_versions=2)
        for text in ("v1", "v2", "v3"):
            await store.put(record("t1", text, [1.0]))

        reopened = JsonFileEmbeddingStore(tmp_path, model="m1")
        found_v1 = await reopened.get_many("thread", [("t1", hash_content("v1"))], "m1")
        found_v3 = await reopened.get_many("thread", [("t1", hash_content("v3"))], "m1")

        assert found_v1 == {}
        assert found_v3 == {"t1": [1.0]}

    async def test_record_for_other_model_rejected(self, tmp_path):
        store = JsonFileEmbeddingStore(tmp_path, model="m1")

        with pytest.raises(EmbeddingCacheException):
            await store.put(record("t1", "hello", [1.0], model="m2"))

    async def test_clear_removes_files(self, tmp_path):
        store = JsonFileEmbeddingStore(tmp_path, model="m1")
        await store.put(record("t1", "hello", [1.0]))

        await store.clear()

        assert not (tmp_path / "thread-embeddings.json").exists()
        assert await store.get_many("thread", [("t1", hash_content("hello"))], "m1") == {}

    async def test_no_temp_files_left_behind(self, tmp_path):
        store = JsonFileEmbeddingStore(tmp_path, model="m1")
        await store.put_many([record("a", "1", [1.0]), record("b", "2", [2.0])])

        assert [p.name for p in tmp_path.iterdir()] == ["thread-embeddings.json"]


class TestSQLAlchemyStore:

    @pytest.fixture
    async def sql_store(self, tmp_path):
        init_database(f"sqlite+aiosqlite:///{tmp_path / 'embeddings.db'}")
        await create_tables()
        yield SQLAlchemyEmbeddingStore(get_session_maker())
        await close_database()

    async def test_round_trip_filters_on_hash_and_model(self, sql_store):
        await sql_store.put(record("42", "body", [0.25, 0.75]))

        assert await sql_store.get("thread", "42", hash_content("body"), "m1") == [0.25, 0.75]
        assert await sql_store.get("thread", "42", hash_content("changed"), "m1") is None
        assert await sql_store.get("thread", "42", hash_content("body"), "m2") is None

    async def test_upsert_last_writer_wins(self, sql_store):
        await sql_store.put(record("42", "body", [1.0]))
        await sql_store.put(record("42", "body", [2.0]))

        assert await sql_store.get("thread", "42", hash_content("body"), "m1") == [2.0]

    async def test_get_many_returns_only_hits(self, sql_store):
        await sql_store.put_many([record("1", "a", [1.0]), record("2", "b", [2.0])])

        found = await sql_store.get_many(
            "thread",
            [("1", hash_content("a")), ("2", hash_content("stale")), ("3", hash_content("c"))],
            "m1",
        )

        assert found == {"1": [1.0]}

    async def test_clear(self, sql_store):
        await sql_store.put_many([
            record("1", "a", [1.0], entity_type="issue"),
            record("2", "b", [2.0]),
        ])

        await sql_store.clear("issue")

        assert await sql_store.get("issue", "1", hash_content("a"), "m1") is None
        assert await sql_store.get("thread", "2", hash_content("b"), "m1") == [2.0]
