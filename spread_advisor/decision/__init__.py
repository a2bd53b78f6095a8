"""Deterministic spread scoring public API."""

from .scoring_engine import ScoreResult, ScoringEngine

__all__ = [
    "ScoreResult",
    "ScoringEngine",
]
