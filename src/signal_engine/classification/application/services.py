"""
Classification Application Services
===================================

Service for matching signals against tracker issues.

Orchestrates the scoring strategy and applies the caller's threshold.
"""

from typing import List, Optional

from signal_engine.classification.application.strategies import IScoringStrategy
from signal_engine.classification.domain import ClassificationReport, ClassifiedMessage
from signal_engine.core import ValidationException
from signal_engine.shared.domain import Signal
from signal_engine.shared.infrastructure.logging import get_run_logger, log_latency

DEFAULT_MIN_SIMILARITY = 20.0
DEFAULT_TOP_N = 5


class ClassificationService:
    """
    Service for signal classification.

    Deterministic for a fixed strategy, input order and cache state.
    """

    def __init__(
        self,
        strategy: IScoringStrategy,
        top_n: int = DEFAULT_TOP_N,
        run_id: Optional[str] = None
    ):
        self._strategy = strategy
        self._top_n = top_n
        self._logger = get_run_logger(__name__, run_id)

    async def classify(
        self,
        signals: List[Signal],
        issues: List[Signal],
        min_similarity: float = DEFAULT_MIN_SIMILARITY
    ) -> ClassificationReport:
        """
        Classify signals against issues.

        Args:
            signals: Chat threads/messages to classify
            issues: Candidate tracker issues
            min_similarity: Minimum score (0-100) for a match to be kept

        Returns:
            ClassificationReport listing signals with at least one match
        """
        if not 0.0 <= min_similarity <= 100.0:
            raise ValidationException(
                "min_similarity must be between 0 and 100",
                {"min_similarity": min_similarity}
            )

        with log_latency(self._logger, "classify", signals=len(signals), issues=len(issues)):
            result = await self._strategy.match(signals, issues, self._top_n)

        classified = [
            message for message in (m.filtered(min_similarity) for m in result.messages)
            if message.has_matches
        ]

        self._logger.info(
            "Classification finished",
            extra={
                "strategy": result.strategy,
                "signals": len(signals),
                "classified": len(classified),
                "skipped": len(result.skipped_signal_ids),
            }
        )
        return ClassificationReport(
            classified=classified,
            strategy_used=result.strategy,
            total_signals=len(signals),
            total_issues=len(issues),
            skipped_signal_ids=result.skipped_signal_ids,
            embeddings_computed=result.embeddings_computed,
            embeddings_from_cache=result.embeddings_from_cache,
        )

    async def match_signal(
        self,
        signal: Signal,
        issues: List[Signal],
        min_similarity: float = 0.0
    ) -> ClassifiedMessage:
        """Rank issues for a single signal."""
        result = await self._strategy.match([signal], issues, self._top_n)
        return result.messages[0].filtered(min_similarity)
