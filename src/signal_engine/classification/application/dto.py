"""
Classification Application DTOs
===============================

Data Transfer Objects for the classification API.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from signal_engine.classification.domain import CandidateMatch, ClassificationReport, ClassifiedMessage
from signal_engine.shared.application import SignalDTO

ScoringStrategyStr = Literal["lexical", "embedding", "auto"]


# ========== Request DTOs ==========

class ClassifyRequest(BaseModel):
    """Request model for classifying signals against issues."""
    signals: List[SignalDTO] = Field(..., description="Chat threads/messages to classify")
    issues: List[SignalDTO] = Field(..., description="Candidate tracker issues")
    min_similarity: float = Field(default=20.0, ge=0.0, le=100.0, description="Minimum match score (0-100)")
    strategy: ScoringStrategyStr = Field(default="auto", description="Scoring strategy")

    @field_validator("signals")
    @classmethod
    def validate_signal_count(cls, v: List[SignalDTO]) -> List[SignalDTO]:
        """Keep one request to a single run's worth of work."""
        if len(v) > 5000:
            raise ValueError("Too many signals (max 5000)")
        return v


# ========== Response DTOs ==========

class CandidateMatchInfo(BaseModel):
    """One ranked issue for a signal."""
    issue: SignalDTO
    similarity_score: float = Field(..., ge=0.0, le=100.0)
    matched_terms: List[str]

    @classmethod
    def from_domain(cls, match: CandidateMatch) -> "CandidateMatchInfo":
        return cls(
            issue=SignalDTO.from_domain(match.issue),
            similarity_score=round(match.similarity_score, 4),
            matched_terms=list(match.matched_terms),
        )


class ClassifiedMessageInfo(BaseModel):
    """A signal with its ranked issues."""
    signal: SignalDTO
    related_issues: List[CandidateMatchInfo]

    @classmethod
    def from_domain(cls, message: ClassifiedMessage) -> "ClassifiedMessageInfo":
        return cls(
            signal=SignalDTO.from_domain(message.signal),
            related_issues=[CandidateMatchInfo.from_domain(m) for m in message.related_issues],
        )


class ClassificationResponse(BaseModel):
    """Response model for a classification run."""
    run_id: Optional[str] = None
    strategy_used: str
    total_signals: int
    total_issues: int
    classified_count: int
    skipped_signal_ids: List[str]
    embeddings_computed: int
    embeddings_from_cache: int
    classified: List[ClassifiedMessageInfo]
    processing_time_ms: int

    @classmethod
    def from_domain(
        cls,
        report: ClassificationReport,
        processing_time_ms: int,
        run_id: Optional[str] = None
    ) -> "ClassificationResponse":
        return cls(
            run_id=run_id,
            strategy_used=report.strategy_used,
            total_signals=report.total_signals,
            total_issues=report.total_issues,
            classified_count=report.classified_count,
            skipped_signal_ids=report.skipped_signal_ids,
            embeddings_computed=report.embeddings_computed,
            embeddings_from_cache=report.embeddings_from_cache,
            classified=[ClassifiedMessageInfo.from_domain(m) for m in report.classified],
            processing_time_ms=processing_time_ms,
        )
