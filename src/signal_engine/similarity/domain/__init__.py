"""
Similarity Domain Layer
=======================

Pure scoring primitives shared by classification, correlation and
feature mapping.

Contains:
- Lexical scorer: tiered keyword/phrase relevance on [0, 100]
- Vector math: cosine, rescaling, centroids
- Word overlap: Jaccard similarity on [0, 1]
"""

from signal_engine.similarity.domain.terms import TermTier, tier_of
from signal_engine.similarity.domain.lexical import (
    KeywordProfile,
    LexicalMatch,
    LexicalScorer,
    build_profile,
    extract_keywords,
    extract_phrases,
)
from signal_engine.similarity.domain.vectors import (
    cosine_similarity,
    similarity_percent,
    similarity_unit,
    mean_vector,
)
from signal_engine.similarity.domain.overlap import word_overlap, word_set

__all__ = [
    "TermTier",
    "tier_of",
    "KeywordProfile",
    "LexicalMatch",
    "LexicalScorer",
    "build_profile",
    "extract_keywords",
    "extract_phrases",
    "cosine_similarity",
    "similarity_percent",
    "similarity_unit",
    "mean_vector",
    "word_overlap",
    "word_set",
]
