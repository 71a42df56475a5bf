import pytest

from signal_engine.config import Settings
from signal_engine.embeddings.application import EmbeddingCache
from signal_engine.embeddings.infrastructure import InMemoryEmbeddingStore
from tests.factories import SleepRecorder


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        cache_backend="memory",
        embedding_batch_delay_seconds=0.0,
        retry_base_delay_seconds=0.0,
        retry_max_delay_seconds=0.0,
    )


@pytest.fixture
def store() -> InMemoryEmbeddingStore:
    return InMemoryEmbeddingStore()


@pytest.fixture
def cache(store) -> EmbeddingCache:
    return EmbeddingCache(store, model="fake-embedding")


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()
