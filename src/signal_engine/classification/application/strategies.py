"""
Scoring Strategies
==================

Interchangeable ways of ranking issues for each signal. Both produce the
same ClassifiedMessage shape on the [0, 100] scale, so the classifier and
everything downstream are indifferent to which one ran.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple, Type

from signal_engine.classification.domain import CandidateMatch, ClassifiedMessage, StrategyResult
from signal_engine.config import EntityType, ScoringStrategyName, Settings
from signal_engine.core import ConfigurationException, ExternalServiceException
from signal_engine.embeddings.application import EmbeddingCache, EmbeddingResolver
from signal_engine.embeddings.domain import EmbeddingRequest
from signal_engine.infrastructure.embeddings import IEmbeddingProvider
from signal_engine.shared.domain import Signal, signal_text
from signal_engine.similarity.domain import LexicalScorer, build_profile, similarity_percent
from signal_engine.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def _rank(matches: List[CandidateMatch], top_n: int) -> List[CandidateMatch]:
    # sorted() is stable: equal scores keep issue input order
    return sorted(matches, key=lambda m: -m.similarity_score)[:top_n]


class IScoringStrategy(ABC):
    """Interface for signal-to-issue scoring."""

    name: str

    @abstractmethod
    async def match(self, signals: List[Signal], issues: List[Signal], top_n: int = 5) -> StrategyResult:
        """Rank the top_n issues for every signal."""


class LexicalScoringStrategy(IScoringStrategy):
    """Keyword/phrase scoring; no external calls."""

    name = ScoringStrategyName.LEXICAL.value

    def __init__(self, scorer: Optional[LexicalScorer] = None):
        self._scorer = scorer or LexicalScorer()

    async def match(self, signals: List[Signal], issues: List[Signal], top_n: int = 5) -> StrategyResult:
        return StrategyResult(
            messages=[self.match_one(signal, issues, top_n) for signal in signals],
            strategy=self.name,
        )

    def match_one(self, signal: Signal, issues: List[Signal], top_n: int = 5) -> ClassifiedMessage:
        profile = build_profile(signal_text(signal))
        if profile.is_empty:
            return ClassifiedMessage(signal=signal)

        matches = []
        for issue in issues:
            result = self._scorer.score_profile(profile, issue.title, issue.body)
            matches.append(CandidateMatch(
                issue=issue,
                similarity_score=result.score,
                matched_terms=result.matched_terms,
            ))
        return ClassifiedMessage(signal=signal, related_issues=_rank(matches, top_n))


class EmbeddingScoringStrategy(IScoringStrategy):
    """
    Cosine scoring over cached or freshly computed embeddings.

    Issue embeddings are fully resolved before any signal is embedded or
    scored.
    """

    name = ScoringStrategyName.EMBEDDING.value

    def __init__(self, resolver: EmbeddingResolver, issue_batch_size: int = 50, signal_batch_size: int = 25):
        self._resolver = resolver
        self._issue_batch_size = issue_batch_size
        self._signal_batch_size = signal_batch_size

    async def match(self, signals: List[Signal], issues: List[Signal], top_n: int = 5) -> StrategyResult:
        issue_report = await self._resolver.resolve(
            [EmbeddingRequest(EntityType.ISSUE, i.source_id, signal_text(i)) for i in issues],
            batch_size=self._issue_batch_size,
        )
        issue_vectors: List[Tuple[Signal, List[float]]] = []
        for issue in issues:
            vector = issue_report.vector_for(EntityType.ISSUE, issue.source_id)
            if vector is not None:
                issue_vectors.append((issue, vector))

        embeddable = [s for s in signals if signal_text(s).strip()]
        signal_report = await self._resolver.resolve(
            [EmbeddingRequest(s.entity_type, s.source_id, signal_text(s)) for s in embeddable],
            batch_size=self._signal_batch_size,
        )

        messages = []
        skipped = []
        for signal in signals:
            if not signal_text(signal).strip():
                messages.append(ClassifiedMessage(signal=signal))
                continue
            vector = signal_report.vector_for(signal.entity_type, signal.source_id)
            if vector is None:
                skipped.append(signal.source_id)
                messages.append(ClassifiedMessage(signal=signal))
                continue
            matches = [
                CandidateMatch(issue=issue, similarity_score=similarity_percent(vector, issue_vector))
                for issue, issue_vector in issue_vectors
            ]
            messages.append(ClassifiedMessage(signal=signal, related_issues=_rank(matches, top_n)))

        report = issue_report.merge(signal_report)
        return StrategyResult(
            messages=messages,
            strategy=self.name,
            skipped_signal_ids=skipped,
            embeddings_computed=report.computed,
            embeddings_from_cache=report.from_cache,
        )


class FallbackScoringStrategy(IScoringStrategy):
    """
    Tries the primary strategy and reruns with the fallback on a defined
    error subset (provider and configuration failures). Anything else
    propagates.
    """

    FALLBACK_ON: Tuple[Type[Exception], ...] = (ExternalServiceException, ConfigurationException)

    def __init__(self, primary: IScoringStrategy, fallback: IScoringStrategy):
        self._primary = primary
        self._fallback = fallback
        self.name = primary.name

    async def match(self, signals: List[Signal], issues: List[Signal], top_n: int = 5) -> StrategyResult:
        try:
            return await self._primary.match(signals, issues, top_n)
        except self.FALLBACK_ON as e:
            logger.warning(
                "Primary scoring strategy failed, falling back",
                extra={
                    "primary": self._primary.name,
                    "fallback": self._fallback.name,
                    "error_type": type(e).__name__,
                    "error": str(e),
                }
            )
            return await self._fallback.match(signals, issues, top_n)


def build_scoring_strategy(
    settings: Settings,
    provider: Optional[IEmbeddingProvider] = None,
    cache: Optional[EmbeddingCache] = None,
    strategy: ScoringStrategyName | str = ScoringStrategyName.AUTO,
    run_id: Optional[str] = None,
) -> IScoringStrategy:
    """
    Choose a scoring strategy.

    AUTO uses embeddings with lexical fallback when a provider and cache are
    available, lexical otherwise. EMBEDDING without a provider is a
    configuration error.
    """
    strategy = ScoringStrategyName(strategy)
    lexical = LexicalScoringStrategy()
    if strategy == ScoringStrategyName.LEXICAL:
        return lexical

    if provider is None or cache is None:
        if strategy == ScoringStrategyName.EMBEDDING:
            raise ConfigurationException("Embedding strategy requested but no embedding provider is configured")
        return lexical

    resolver = EmbeddingResolver.from_settings(settings, provider, cache, run_id=run_id)
    embedding = EmbeddingScoringStrategy(
        resolver,
        issue_batch_size=settings.issue_batch_size,
        signal_batch_size=settings.signal_batch_size,
    )
    if strategy == ScoringStrategyName.EMBEDDING:
        return embedding
    return FallbackScoringStrategy(embedding, lexical)
