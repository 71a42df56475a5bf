"""
Classification Domain Layer
===========================

Contains:
- Entities: CandidateMatch, ClassifiedMessage
- Reports: StrategyResult, ClassificationReport

This layer is framework-agnostic and contains pure business objects.
"""

from signal_engine.classification.domain.entities import (
    CandidateMatch,
    ClassifiedMessage,
    StrategyResult,
    ClassificationReport,
)

__all__ = [
    "CandidateMatch",
    "ClassifiedMessage",
    "StrategyResult",
    "ClassificationReport",
]
