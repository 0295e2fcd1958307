"""
Motor de matching.

Combina siete factores ponderados con ajustes aprendidos para
rankear maids según los criterios de un sponsor.
"""

from maidmatch.matching.engine import (
    CandidateSource,
    HistorySource,
    MatchingContext,
    MatchingEngine,
    MatchResult,
    RequesterSource,
)

__all__ = [
    "CandidateSource",
    "HistorySource",
    "MatchingContext",
    "MatchingEngine",
    "MatchResult",
    "RequesterSource",
]
