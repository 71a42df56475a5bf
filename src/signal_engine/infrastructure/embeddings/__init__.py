"""
Embedding Provider Infrastructure
=================================

Wrappers for embedding providers exposing a single `embed(texts)` operation.

This module abstracts the provider implementation following the
Dependency Inversion Principle - the embeddings context depends on the
IEmbeddingProvider abstraction, not on the OpenAI SDK.

Provider errors are translated into the core taxonomy so the resolver can
tell retryable failures (rate limits, 5xx, connection) from fatal ones
(authentication) and from bad input.
"""

import hashlib
import re
import time
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np
import openai
from openai import AsyncOpenAI

from signal_engine.config import Settings
from signal_engine.core import (
    ConfigurationException,
    InvalidProviderInputException,
    ProviderAuthenticationException,
    RateLimitException,
    TransientProviderException,
)
from signal_engine.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_RETRY_IN_RE = re.compile(r"try again in\s+([\d.]+)\s*(ms|s)", re.IGNORECASE)
_TOKEN_RE = re.compile(r"[a-z0-9]{3,}")


class EmbeddingResult:
    """Result of a batch embedding call."""

    def __init__(self, embeddings: List[List[float]], model: str):
        self.embeddings = embeddings
        self.model = model
        self.dimension = len(embeddings[0]) if embeddings else 0


class IEmbeddingProvider(ABC):
    """
    Interface for embedding providers.

    One vector per input text, in input order.
    """

    model: str

    @abstractmethod
    async def embed(self, texts: List[str]) -> EmbeddingResult:
        """Embed a batch of texts."""


def parse_retry_after(header: Optional[str], message: str = "") -> Optional[float]:
    """
    Extract a retry hint in seconds.

    Prefers the Retry-After header, then a "try again in 1.5s" / "in 300ms"
    phrase in the error message. Message hints get one extra second of slack.
    """
    if header:
        try:
            return max(float(header), 0.0)
        except ValueError:
            pass

    match = _RETRY_IN_RE.search(message or "")
    if match:
        value = float(match.group(1))
        seconds = value / 1000 if match.group(2).lower() == "ms" else value
        return max(seconds + 1.0, 2.0)
    return None


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """
    OpenAI embeddings client.

    SDK retries are disabled; retry and backoff are owned by the resolver.
    """

    def __init__(self, settings: Settings, api_key: Optional[str] = None):
        self._api_key = api_key or settings.openai_api_key
        if not self._api_key:
            raise ConfigurationException("OpenAI API key not configured")

        self._client = AsyncOpenAI(
            api_key=self._api_key,
            base_url=settings.openai_base_url,
            max_retries=0,
        )
        self.model = settings.embedding_model

    async def embed(self, texts: List[str]) -> EmbeddingResult:
        """
        Embed texts with the configured OpenAI model.

        Raises:
            RateLimitException: HTTP 429, with the provider's retry hint
            TransientProviderException: 5xx, timeout or connection failure
            ProviderAuthenticationException: Invalid or unauthorized key
            InvalidProviderInputException: Provider rejected the input
        """
        start_time = time.perf_counter()
        try:
            response = await self._client.embeddings.create(model=self.model, input=texts)
        except openai.RateLimitError as e:
            retry_after = parse_retry_after(e.response.headers.get("retry-after"), str(e))
            raise RateLimitException(str(e), retry_after=retry_after)
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise ProviderAuthenticationException(str(e))
        except (openai.BadRequestError, openai.UnprocessableEntityError) as e:
            raise InvalidProviderInputException(str(e), {"batch_size": len(texts)})
        except openai.APIConnectionError as e:
            raise TransientProviderException(f"Connection failed: {e}")
        except openai.APIStatusError as e:
            if e.status_code >= 500:
                raise TransientProviderException(str(e), {"status_code": e.status_code})
            raise InvalidProviderInputException(str(e), {"status_code": e.status_code})

        embeddings = [item.embedding for item in sorted(response.data, key=lambda d: d.index)]
        logger.debug(
            "Embedding batch completed",
            extra={
                "model": self.model,
                "batch_size": len(texts),
                "latency_ms": int((time.perf_counter() - start_time) * 1000),
            }
        )
        return EmbeddingResult(embeddings=embeddings, model=self.model)


class MockEmbeddingProvider(IEmbeddingProvider):
    """
    Deterministic offline embeddings.

    Each word contributes a pseudo-random direction seeded by its hash, so
    texts sharing vocabulary land close together. No external calls.
    """

    def __init__(self, dimension: int = 256, model: str = "mock-embedding"):
        self.dimension = dimension
        self.model = model

    def _word_vector(self, word: str) -> np.ndarray:
        seed = int(hashlib.sha256(word.encode()).hexdigest()[:8], 16)
        return np.random.default_rng(seed).standard_normal(self.dimension)

    def vector_for(self, text: str) -> List[float]:
        words = _TOKEN_RE.findall(text.lower()) or [text]
        vector = np.sum([self._word_vector(w) for w in words], axis=0)
        norm = np.linalg.norm(vector)
        if norm > 0:
            vector = vector / norm
        return vector.tolist()

    async def embed(self, texts: List[str]) -> EmbeddingResult:
        return EmbeddingResult(
            embeddings=[self.vector_for(t) for t in texts],
            model=self.model
        )


def create_embedding_provider(settings: Settings) -> Optional[IEmbeddingProvider]:
    """
    Build the configured provider.

    Returns None when neither mock mode nor an API key is configured; callers
    then run in lexical-only mode.
    """
    if settings.mock_embeddings:
        logger.info("Using mock embedding provider")
        return MockEmbeddingProvider(dimension=settings.embedding_dimension)
    if settings.openai_api_key:
        return OpenAIEmbeddingProvider(settings)
    logger.warning("No embedding provider configured, lexical scoring only")
    return None


__all__ = [
    "EmbeddingResult",
    "IEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "MockEmbeddingProvider",
    "create_embedding_provider",
    "parse_retry_after",
]
