"""
Word Overlap Similarity
=======================

Jaccard similarity on word sets, in [0, 1]. Used by lexical grouping and
duplicate detection where no embeddings are available.

Timestamps and bare numbers are dropped before tokenizing, so two bodies
that differ only by when they were posted compare as identical.
"""

import re

_TIMESTAMP_RE = re.compile(
    r"\d{4}-\d{2}-\d{2}(?:[T ]\d{1,2}:\d{2}(?::\d{2})?(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?",
    re.IGNORECASE,
)
_TIME_RE = re.compile(r"\b\d{1,2}:\d{2}(?::\d{2})?(?:\s?[ap]m)?\b", re.IGNORECASE)
_WORD_RE = re.compile(r"[a-z0-9][a-z0-9_\-']*")

MIN_WORD_LENGTH = 3


def word_set(text: str) -> set[str]:
    """Lowercased words longer than two chars, without timestamps or numbers."""
    text = _TIME_RE.sub(" ", _TIMESTAMP_RE.sub(" ", (text or "").lower()))
    return {
        w for w in _WORD_RE.findall(text)
        if len(w) >= MIN_WORD_LENGTH and not w.replace("-", "").replace("_", "").isdigit()
    }


def word_overlap(text_a: str, text_b: str) -> float:
    """Jaccard similarity of the two word sets; 0 when both are empty."""
    a = word_set(text_a)
    b = word_set(text_b)
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)
