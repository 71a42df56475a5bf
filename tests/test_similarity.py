"""Tests for lexical scoring, vector similarity and word overlap."""

import pytest

from signal_engine.core import VectorDimensionMismatchException
from signal_engine.similarity.domain import (
    LexicalScorer,
    build_profile,
    cosine_similarity,
    extract_keywords,
    extract_phrases,
    mean_vector,
    similarity_percent,
    similarity_unit,
    word_overlap,
    word_set,
)


class TestLexicalScorer:

    def test_concept_phrase_overlap_beats_unrelated_issue(self):
        scorer = LexicalScorer()
        signal = "CSRF trusted origins misconfigured"

        related = scorer.score(signal, "Fix trusted-origins CORS bug", "")
        unrelated = scorer.score(signal, "Update changelog", "")

        assert related.score >= unrelated.score + 20
        assert '"trusted origins"' in related.matched_terms
        assert unrelated.score == 0

    def test_scores_stay_in_range(self):
        scorer = LexicalScorer()
        text = "session cookie refresh token expired after deployment"

        identical = scorer.score(text, text, text)
        assert 0 <= identical.score <= 100
        assert identical.score == 100

    def test_empty_signal_scores_zero(self):
        result = LexicalScorer().score("   ", "Anything", "at all")

        assert result.score == 0
        assert result.matched_terms == []

    def test_title_matches_are_boosted(self):
        scorer = LexicalScorer()
        signal = "alpha bravo charlie delta echo foxtrot golf hotel"

        in_title = scorer.score(signal, "hotel", "unrelated text")
        in_body = scorer.score(signal, "unrelated", "hotel text")

        assert in_body.score == pytest.approx(12.5)
        assert in_title.score > in_body.score

    def test_similarity_is_symmetric(self):
        scorer = LexicalScorer()
        a = "prisma migration fails on postgres"
        b = "postgres schema migration error with prisma adapter"

        assert scorer.similarity(a, b) == pytest.approx(scorer.similarity(b, a))
        assert 0 <= scorer.similarity(a, b) <= 100

    def test_deterministic(self):
        scorer = LexicalScorer()
        first = scorer.score("oauth callback url", "OAuth callback broken", "redirect")
        second = scorer.score("oauth callback url", "OAuth callback broken", "redirect")

        assert first == second


class TestKeywordExtraction:

    def test_urls_and_numbers_removed(self):
        _, keywords = extract_keywords("See https://example.com/issues/404 trusted-origins 404")

        assert "404" not in keywords
        assert not any("example" in k for k in keywords)

    def test_compound_terms_expand(self):
        sequence, keywords = extract_keywords("trusted-origins")

        assert sequence == ["trusted-origins", "trusted", "origins"]
        assert "trustedorigins" in keywords
        assert "trusted_origins" in keywords

    def test_phrases_follow_text_order(self):
        phrases = extract_phrases(["csrf", "trusted", "origins"])

        assert phrases == ["csrf trusted", "trusted origins", "csrf trusted origins"]

    def test_empty_profile(self):
        assert build_profile("").is_empty


class TestVectors:

    def test_dimension_mismatch_raises(self):
        with pytest.raises(VectorDimensionMismatchException):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])

    def test_zero_vector_has_zero_cosine(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0

    def test_rescaling(self):
        assert similarity_percent([1.0, 0.0], [2.0, 0.0]) == pytest.approx(100.0)
        assert similarity_percent([1.0, 0.0], [0.0, 1.0]) == pytest.approx(50.0)
        assert similarity_unit([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(0.0)
        assert similarity_unit([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.5)

    def test_mean_vector(self):
        assert mean_vector([[1.0, 0.0], [0.0, 1.0]]) == pytest.approx([0.5, 0.5])
        assert mean_vector([]) == []

    def test_mean_vector_rejects_mixed_dimensions(self):
        with pytest.raises(VectorDimensionMismatchException):
            mean_vector([[1.0], [1.0, 2.0]])


class TestWordOverlap:

    def test_timestamps_ignored(self):
        a = "Checkout crashes when applying discount code 2025-01-14T09:12:00Z"
        b = "Checkout crashes when applying discount code 2025-01-15 17:40"

        assert word_overlap(a, b) == 1.0

    def test_short_words_and_numbers_dropped(self):
        assert word_set("an id 42 of the export at 10:30") == {"the", "export"}

    def test_empty_texts(self):
        assert word_overlap("", "") == 0.0

    def test_partial_overlap(self):
        a = "export report fails with timeout error"
        b = "export report fails with permission error"

        assert word_overlap(a, b) == pytest.approx(5 / 7)
