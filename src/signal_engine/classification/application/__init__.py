"""
Classification Application Layer
================================

Application layer for signal classification.

Contains:
- Strategies: lexical, embedding and fallback scoring
- Services: ClassificationService
- DTOs: Data transfer objects for API serialization
"""

from signal_engine.classification.application.dto import (
    ClassifyRequest,
    CandidateMatchInfo,
    ClassifiedMessageInfo,
    ClassificationResponse,
)
from signal_engine.classification.application.strategies import (
    IScoringStrategy,
    LexicalScoringStrategy,
    EmbeddingScoringStrategy,
    FallbackScoringStrategy,
    build_scoring_strategy,
)
from signal_engine.classification.application.services import ClassificationService

__all__ = [
    # DTOs
    "ClassifyRequest",
    "CandidateMatchInfo",
    "ClassifiedMessageInfo",
    "ClassificationResponse",
    # Strategies
    "IScoringStrategy",
    "LexicalScoringStrategy",
    "EmbeddingScoringStrategy",
    "FallbackScoringStrategy",
    "build_scoring_strategy",
    # Services
    "ClassificationService",
]
