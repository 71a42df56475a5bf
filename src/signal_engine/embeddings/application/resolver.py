"""
Embedding Resolver
==================

Turns a list of embedding requests into vectors, reusing the cache and
computing the rest in sequential provider batches.

Each batch is a transaction boundary: successful batches are written
through to the cache immediately, failed items are recorded as skipped and
the run continues with the next batch.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from signal_engine.config import Settings
from signal_engine.core import EmbeddingProviderException, InvalidProviderInputException
from signal_engine.embeddings.application.cache import EmbeddingCache
from signal_engine.embeddings.domain import (
    EmbeddingRecord,
    EmbeddingRequest,
    ResolutionReport,
    SkippedEmbedding,
)
from signal_engine.infrastructure.embeddings import IEmbeddingProvider
from signal_engine.shared.domain import DEFAULT_MAX_CHARS, truncate_text
from signal_engine.shared.infrastructure.logging import get_run_logger

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Capped exponential backoff; a provider retry hint wins when present."""
    max_attempts: int = 3
    base_delay: float = 2.0
    max_delay: float = 30.0

    def delay_for(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """Delay before retrying after the given zero-based attempt failed."""
        delay = retry_after if retry_after is not None else self.base_delay * (2 ** attempt)
        return min(delay, self.max_delay)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay_seconds,
            max_delay=settings.retry_max_delay_seconds,
        )


class EmbeddingResolver:
    """
    Resolves embeddings through the cache and the provider.

    Authentication failures propagate; rate limits and transient failures
    are retried per batch and then skipped; rejected input is narrowed to
    the offending items.
    """

    def __init__(
        self,
        provider: IEmbeddingProvider,
        cache: EmbeddingCache,
        retry_policy: Optional[RetryPolicy] = None,
        batch_delay: float = 0.5,
        max_chars: int = DEFAULT_MAX_CHARS,
        sleep: SleepFn = asyncio.sleep,
        run_id: Optional[str] = None,
    ):
        self._provider = provider
        self._cache = cache
        self._retry = retry_policy or RetryPolicy()
        self._batch_delay = batch_delay
        self._max_chars = max_chars
        self._sleep = sleep
        self._logger = get_run_logger(__name__, run_id)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        provider: IEmbeddingProvider,
        cache: EmbeddingCache,
        **kwargs
    ) -> "EmbeddingResolver":
        return cls(
            provider,
            cache,
            retry_policy=RetryPolicy.from_settings(settings),
            batch_delay=settings.embedding_batch_delay_seconds,
            max_chars=settings.embedding_max_chars,
            **kwargs
        )

    @property
    def cache(self) -> EmbeddingCache:
        return self._cache

    async def resolve(self, requests: List[EmbeddingRequest], batch_size: int = 50) -> ResolutionReport:
        """
        Resolve vectors for every request.

        Args:
            requests: Entities to embed; duplicates by (entity_type, entity_id) are collapsed
            batch_size: Texts per provider call

        Returns:
            ResolutionReport with vectors, cache/computed counts and skips
        """
        report = ResolutionReport()
        unique: Dict[tuple, EmbeddingRequest] = {}
        for request in requests:
            if request.is_empty:
                report.skipped.append(SkippedEmbedding(request.key[0], request.entity_id, "empty_text"))
                continue
            unique.setdefault(request.key, request)

        missing: List[EmbeddingRequest] = []
        by_type: Dict[str, List[EmbeddingRequest]] = {}
        for request in unique.values():
            by_type.setdefault(request.key[0], []).append(request)

        for entity_type, group in by_type.items():
            found = await self._cache.get_many(
                entity_type, [(r.entity_id, r.content_hash) for r in group]
            )
            for request in group:
                vector = found.get(request.entity_id)
                if vector is None:
                    missing.append(request)
                else:
                    report.vectors[request.key] = vector
                    report.from_cache += 1

        if not missing:
            return report

        batches = [missing[i:i + batch_size] for i in range(0, len(missing), max(batch_size, 1))]
        self._logger.info(
            "Computing embeddings",
            extra={
                "cached": report.from_cache,
                "to_compute": len(missing),
                "batches": len(batches),
            }
        )

        for index, batch in enumerate(batches):
            if index > 0 and self._batch_delay > 0:
                await self._sleep(self._batch_delay)
            await self._resolve_batch(batch, report)
            self._logger.info(
                "Embedding batch finished",
                extra={"batch": index + 1, "batches": len(batches), "computed": report.computed}
            )

        if report.skipped:
            self._logger.warning(
                "Some embeddings were skipped",
                extra={"skipped": len(report.skipped), "cache": self._cache.stats.to_dict()}
            )
        return report

    async def _resolve_batch(self, batch: List[EmbeddingRequest], report: ResolutionReport) -> None:
        try:
            vectors = await self._embed_with_retry([truncate_text(r.text, self._max_chars) for r in batch])
        except InvalidProviderInputException as e:
            if len(batch) == 1:
                self._skip(report, batch, "invalid_input", e)
                return
            self._logger.warning(
                "Batch rejected by provider, retrying items individually",
                extra={"batch_size": len(batch), "error": str(e)}
            )
            for request in batch:
                await self._resolve_batch([request], report)
            return
        except EmbeddingProviderException as e:
            if not e.retryable:
                raise
            self._skip(report, batch, "retries_exhausted", e)
            return

        if len(vectors) != len(batch):
            self._skip(report, batch, "vector_count_mismatch", None)
            return

        records = [
            EmbeddingRecord(
                entity_type=r.key[0],
                entity_id=r.entity_id,
                content_hash=r.content_hash,
                model=self._cache.model,
                vector=v,
            )
            for r, v in zip(batch, vectors)
        ]
        await self._cache.put_many(records)
        for request, vector in zip(batch, vectors):
            report.vectors[request.key] = vector
        report.computed += len(batch)

    async def _embed_with_retry(self, texts: List[str]) -> List[List[float]]:
        last_error: Optional[EmbeddingProviderException] = None
        for attempt in range(self._retry.max_attempts):
            try:
                result = await self._provider.embed(texts)
                return result.embeddings
            except EmbeddingProviderException as e:
                if not e.retryable:
                    raise
                last_error = e
                if attempt == self._retry.max_attempts - 1:
                    break
                delay = self._retry.delay_for(attempt, getattr(e, "retry_after", None))
                self._logger.warning(
                    "Embedding call failed, retrying",
                    extra={"attempt": attempt + 1, "delay_seconds": delay, "error": str(e)}
                )
                await self._sleep(delay)
        raise last_error

    def _skip(self, report: ResolutionReport, batch: List[EmbeddingRequest], reason: str, error) -> None:
        for request in batch:
            report.skipped.append(SkippedEmbedding(request.key[0], request.entity_id, reason))
        self._logger.warning(
            "Skipping embeddings",
            extra={
                "reason": reason,
                "entity_ids": [r.entity_id for r in batch],
                "error": str(error) if error else None,
            }
        )
