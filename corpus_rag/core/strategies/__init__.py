"""Scoring, fusion and gating strategies."""
from .scoring import (
    LexicalScorer,
    LexicalWeights,
    ScoringStrategy,
    TitleBoostStrategy,
    TitleBoostWeights,
    extract_terms,
)
from .diversity import diversify, diversify_with_relax
from .fusion import HybridMerger, calculate_confidence
from .quality import QualityGate, QualityThresholds

__all__ = [
    "LexicalScorer",
    "LexicalWeights",
    "ScoringStrategy",
    "TitleBoostStrategy",
    "TitleBoostWeights",
    "extract_terms",
    "diversify",
    "diversify_with_relax",
    "HybridMerger",
    "calculate_confidence",
    "QualityGate",
    "QualityThresholds",
]
