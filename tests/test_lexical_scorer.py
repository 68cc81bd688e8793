import pytest

from corpus_rag.core.strategies.scoring import LexicalScorer, LexicalWeights, extract_terms


def test_extract_terms_drops_short_terms_punctuation_and_duplicates():
    assert extract_terms("What is Prayer? prayer, AND fasting!") == ["what", "prayer", "and", "fasting"]


def test_no_matching_terms_scores_zero():
    scorer = LexicalScorer()
    assert scorer.score("fasting discipline", "Children gather every evening to sing.") == 0.0


def test_only_short_terms_scores_zero():
    scorer = LexicalScorer()
    assert scorer.score("is it of", "it is a story of hope") == 0.0


def test_empty_passage_scores_zero():
    assert LexicalScorer().score("prayer", "   ") == 0.0


def test_exact_match_outranks_substring_match():
    scorer = LexicalScorer()
    exact = "the children of the village gather to pray each evening with their families"
    substring = "the children of the village gather for prayer each evening with their families"

    exact_score = scorer.score("pray fasting", exact)
    substring_score = scorer.score("pray fasting", substring)

    assert exact_score > substring_score > 0.0


def test_coverage_rewards_matching_more_terms():
    scorer = LexicalScorer()
    passage = "fasting and prayer are practiced together during the season of lent in many churches"

    both = scorer.score("fasting prayer", passage)
    one = scorer.score("fasting orphans", passage)

    assert both > one


def test_score_is_clamped_to_unit_interval():
    scorer = LexicalScorer()
    passage = "prayer prayer prayer prayer prayer prayer prayer"
    assert scorer.score("prayer", passage) == pytest.approx(1.0)


def test_weights_are_overridable():
    passage = "a long reflection about hope where the word prayer appears late in the text"
    default = LexicalScorer().score("prayer orphans", passage)
    no_exact_bonus = LexicalScorer(LexicalWeights(exact_bonus=0.0)).score("prayer orphans", passage)

    assert no_exact_bonus < default
