import pytest

from conftest import lexical_candidate, make_passage, vector_candidate
from corpus_rag.core.models.document import FusedResult, Provenance
from corpus_rag.core.models.retrieval import RetrievalOptions
from corpus_rag.core.strategies.fusion import HybridMerger, calculate_confidence
from corpus_rag.core.strategies.scoring import TitleBoostStrategy, TitleBoostWeights

OPTIONS = RetrievalOptions(
    vector_weight=0.7,
    lexical_weight=0.3,
    min_vector_score=0.3,
    min_lexical_score=0.05,
    max_results=10,
    max_per_document=3,
)


def test_passage_in_both_sets_is_hybrid_and_outscores_each_side():
    p = make_passage("p1", title="Notes")
    merger = HybridMerger()

    results = merger.merge("unrelated", [vector_candidate(p, 0.6)], [lexical_candidate(p, 0.5)], OPTIONS)

    assert len(results) == 1
    result = results[0]
    assert result.provenance is Provenance.HYBRID
    assert result.fused_score == pytest.approx(0.6 * 0.7 + 0.5 * 0.3)
    assert result.fused_score >= max(0.6 * 0.7, 0.5 * 0.3)
    assert result.vector_score == 0.6
    assert result.lexical_score == 0.5


def test_floors_filter_before_fusion():
    strong = make_passage("strong", doc="d1")
    weak = make_passage("weak", doc="d2")
    noisy = make_passage("noisy", doc="d3")

    results = HybridMerger().merge(
        "query",
        [vector_candidate(strong, 0.9), vector_candidate(weak, 0.2)],
        [lexical_candidate(noisy, 0.01)],
        OPTIONS,
    )

    assert [r.id for r in results] == ["strong"]


def test_output_is_capped_and_scores_are_non_negative():
    vectors = [vector_candidate(make_passage(f"v{i}", doc=f"d{i}"), 0.4 + i * 0.01) for i in range(15)]
    lexicals = [lexical_candidate(make_passage(f"l{i}", doc=f"e{i}"), 0.1 + i * 0.02) for i in range(15)]
    options = RetrievalOptions(max_results=7, min_vector_score=0.0, min_lexical_score=0.0)

    results = HybridMerger().merge("query", vectors, lexicals, options)

    assert len(results) <= 7
    assert all(r.fused_score >= 0 for r in results)


def test_ties_are_broken_by_passage_id():
    a = make_passage("b-passage", doc="d1")
    b = make_passage("a-passage", doc="d2")

    results = HybridMerger().merge("query", [vector_candidate(a, 0.5), vector_candidate(b, 0.5)], [], OPTIONS)

    assert [r.id for r in results] == ["a-passage", "b-passage"]


def test_merge_is_deterministic():
    vectors = [vector_candidate(make_passage(f"v{i}", doc=f"d{i % 3}"), 0.5) for i in range(6)]
    lexicals = [lexical_candidate(make_passage(f"v{i}", doc=f"d{i % 3}"), 0.3) for i in range(0, 6, 2)]
    merger = HybridMerger()

    first = [(r.id, r.fused_score) for r in merger.merge("q", vectors, lexicals, OPTIONS)]
    second = [(r.id, r.fused_score) for r in merger.merge("q", list(reversed(vectors)), lexicals, OPTIONS)]

    assert first == second


def test_empty_inputs_return_empty_list():
    assert HybridMerger().merge("anything", [], [], OPTIONS) == []


def test_merge_diversifies_per_document():
    vectors = [vector_candidate(make_passage(f"p{i}", doc="same"), 0.9 - i * 0.01) for i in range(6)]
    options = RetrievalOptions(max_per_document=2, min_vector_score=0.0)

    results = HybridMerger().merge("query", vectors, [], options)

    assert [r.id for r in results] == ["p0", "p1"]


def test_title_boost_for_multiple_matching_terms():
    strategy = TitleBoostStrategy()
    # prayer, for and war match; orphans does not
    boost = strategy.boost_for(["prayer", "for", "orphans", "war"], "Prayers for War-Affected Children")
    assert boost == pytest.approx(3 * 0.15 + 0.3)


def test_title_boost_for_single_matching_term():
    strategy = TitleBoostStrategy()
    assert strategy.boost_for(["fasting", "orphans"], "A Guide to Fasting") == pytest.approx(0.15 + 0.2)
    assert strategy.boost_for(["orphans"], "A Guide to Fasting") == 0.0


def test_title_boost_weights_are_overridable():
    strategy = TitleBoostStrategy(TitleBoostWeights(per_term=0.0, multi_term_bonus=0.0, single_term_bonus=0.05))
    assert strategy.boost_for(["fasting"], "Fasting") == pytest.approx(0.05)


def test_scenario_title_match_wins_first_place():
    target = make_passage("p-war", doc="d-war", title="Prayers for War-Affected Children")
    other = make_passage("p-other", doc="d-other", title="Seasonal Recipes")

    results = HybridMerger().merge(
        "prayer for orphans of war",
        [vector_candidate(target, 0.8), vector_candidate(other, 0.85)],
        [lexical_candidate(target, 0.4)],
        OPTIONS,
    )

    top = results[0]
    assert top.id == "p-war"
    assert top.provenance is Provenance.HYBRID
    assert top.title_boost >= 0.3
    assert top.original_score == pytest.approx(0.8 * 0.7 + 0.4 * 0.3)
    assert top.fused_score == pytest.approx(top.original_score + top.title_boost)


def _fused(pid: str, score: float, provenance: Provenance) -> FusedResult:
    return FusedResult(passage=make_passage(pid), fused_score=score, provenance=provenance)


def test_confidence_empty_is_zero():
    assert calculate_confidence([]) == 0.0


def test_confidence_single_result():
    assert calculate_confidence([_fused("a", 0.5, Provenance.VECTOR)]) == pytest.approx(0.35)


def test_confidence_rewards_consistency_and_hybrid_share():
    results = [_fused("a", 1.0, Provenance.HYBRID), _fused("b", 0.9, Provenance.VECTOR)]
    assert calculate_confidence(results) == pytest.approx(0.7 + 0.15 + 0.075)


def test_confidence_is_capped():
    results = [_fused(str(i), 2.0, Provenance.HYBRID) for i in range(3)]
    assert calculate_confidence(results) == pytest.approx(1.0)
