"""
Lexical Similarity Scorer
=========================

Keyword and phrase based relevance of a signal against an issue, on a
[0, 100] scale. Used when no embedding provider is available and as the
fallback when the provider fails.

Scoring outline:
1. Keywords are extracted from both texts (URLs, numbers and stop words
   removed; compound terms expanded into variants and parts).
2. Contiguous 2- and 3-word phrases are built from the keyword sequence.
3. Matched phrases earn a base score plus a bonus per tier-ranked word;
   matched standalone keywords earn their tier weight (half for partials).
4. The weighted total is normalised by the signal's keyword count, blended
   with keyword coverage and boosted by title matches.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from signal_engine.similarity.domain.terms import (
    EXACT_WEIGHTS,
    PHRASE_BASE_SCORE,
    PHRASE_BONUS,
    STOP_WORDS,
    tier_of,
)

_URL_RE = re.compile(r"https?://\S+")
_NON_WORD_RE = re.compile(r"[^\w\s\-]")
_NUMBER_RE = re.compile(r"\b\d+\b")
_COMPOUND_SPLIT_RE = re.compile(r"[-_]")

MAX_SCORE = 100.0


@dataclass(frozen=True)
class KeywordProfile:
    """Keywords and phrases extracted from one text."""
    text: str
    sequence: Tuple[str, ...]
    keywords: Tuple[str, ...]
    phrases: Tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.keywords


@dataclass(frozen=True)
class LexicalMatch:
    """Outcome of scoring one signal against one issue."""
    score: float
    matched_terms: List[str]


def _unique(items) -> List[str]:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def _compound_variants(word: str) -> List[str]:
    if "-" in word:
        return [word.replace("-", ""), word.replace("-", "_")]
    if "_" in word:
        return [word.replace("_", ""), word.replace("_", "-")]
    return []


def extract_keywords(text: str) -> Tuple[List[str], List[str]]:
    """
    Extract keywords from text.

    Returns:
        (sequence, keywords): the text-ordered unique word sequence used for
        phrase building, and the full keyword list including compound
        variants used for token matching.
    """
    text = _URL_RE.sub("", text or "")
    normalized = _NUMBER_RE.sub("", _NON_WORD_RE.sub(" ", text.lower()))

    sequence: List[str] = []
    variants: List[str] = []
    for raw in normalized.split():
        word = raw.strip("-_")
        if len(word) <= 2 or word in STOP_WORDS:
            continue
        sequence.append(word)
        variants.extend(_compound_variants(word))
        parts = [
            p for p in _COMPOUND_SPLIT_RE.split(word)
            if len(p) > 2 and p not in STOP_WORDS
        ]
        if len(parts) > 1:
            sequence.extend(parts)

    sequence = _unique(sequence)
    return sequence, _unique(sequence + variants)


def extract_phrases(sequence: List[str]) -> List[str]:
    """Contiguous 2- and 3-word phrases, skipping degenerate repeats."""
    phrases = []
    for i in range(len(sequence) - 1):
        if sequence[i] != sequence[i + 1]:
            phrases.append(f"{sequence[i]} {sequence[i + 1]}")
    for i in range(len(sequence) - 2):
        w1, w2, w3 = sequence[i:i + 3]
        if w1 != w2 and w2 != w3:
            phrases.append(f"{w1} {w2} {w3}")
    return _unique(phrases)


def build_profile(text: str) -> KeywordProfile:
    """Extract the keyword profile of a text."""
    sequence, keywords = extract_keywords(text)
    return KeywordProfile(
        text=(text or "").lower(),
        sequence=tuple(sequence),
        keywords=tuple(keywords),
        phrases=tuple(extract_phrases(sequence)),
    )


def _phrase_points(phrase: str) -> float:
    words = phrase.split(" ")
    points = PHRASE_BASE_SCORE.get(len(words), 0.0)
    return points + sum(PHRASE_BONUS[tier_of(w)] for w in words)


def _phrase_hits(phrases, profile: KeywordProfile) -> List[str]:
    known = set(profile.phrases)
    return [p for p in phrases if p in known or p in profile.text]


class LexicalScorer:
    """
    Directional lexical scorer: how well does a signal's text explain an issue.

    Stateless; the profile helpers are exposed so callers scoring one signal
    against many issues extract the signal profile once.
    """

    def score(self, signal_text: str, issue_title: Optional[str], issue_body: Optional[str]) -> LexicalMatch:
        """Score signal text against an issue's title and body."""
        return self.score_profile(build_profile(signal_text), issue_title, issue_body)

    def score_profile(
        self,
        signal: KeywordProfile,
        issue_title: Optional[str],
        issue_body: Optional[str]
    ) -> LexicalMatch:
        """Score a pre-extracted signal profile against an issue."""
        if signal.is_empty:
            return LexicalMatch(score=0.0, matched_terms=[])

        title = issue_title or ""
        issue = build_profile(f"{title} {issue_body or ''}")
        issue_keywords = set(issue.keywords)

        matched_phrases = _phrase_hits(signal.phrases, issue)

        exact: set = set()
        partial: set = set()
        matched: List[str] = []
        for term in signal.keywords:
            if term in issue_keywords:
                exact.add(term)
                matched.append(term)
            elif any(term in other or other in term for other in issue.keywords):
                partial.add(term)
                matched.append(term)
        matched = _unique(matched)

        weighted = sum(_phrase_points(p) for p in matched_phrases)
        phrase_words = {w for p in matched_phrases for w in p.split(" ")}
        for term in matched:
            if term in phrase_words:
                continue
            weight = EXACT_WEIGHTS[tier_of(term)]
            weighted += weight if term in exact else weight / 2

        keyword_count = len(signal.keywords)
        coverage = (len(matched_phrases) + len(matched)) / max(keyword_count, 1)
        normalized = min(
            weighted / max(keyword_count * 2, 10) * 50 + coverage * 50,
            MAX_SCORE,
        )

        title_profile = build_profile(title)
        title_keywords = set(title_profile.keywords)
        title_phrase_matches = len(_phrase_hits(signal.phrases, title_profile))
        title_word_matches = sum(1 for k in signal.keywords if k in title_keywords)
        boost = (
            title_phrase_matches / max(len(signal.phrases), 1) * 25
            + title_word_matches / max(keyword_count, 1) * 15
        )

        final = max(0.0, min(normalized + boost, MAX_SCORE))
        terms = [f'"{p}"' for p in matched_phrases] + [t for t in matched if t not in phrase_words]
        return LexicalMatch(score=round(final, 4), matched_terms=terms)

    def similarity(self, text_a: str, text_b: str) -> float:
        """
        Symmetric lexical similarity in [0, 100].

        Mean of scoring each text against the other treated as an issue body.
        """
        forward = self.score(text_a, None, text_b).score
        backward = self.score(text_b, None, text_a).score
        return (forward + backward) / 2
