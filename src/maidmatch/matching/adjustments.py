"""
Ajustes "aprendidos" sobre el score base.

No hay modelo entrenado: son contadores acumulados (learning data),
el historial de matches y una tabla estacional de configuración.
"""

from typing import Any, Mapping

from maidmatch.config import SUCCESSFUL_OUTCOME
from maidmatch.models import LearningData, MatchOutcome, SkillDemand

NEUTRAL_SUCCESS_RATE = 0.5
SIMILARITY_THRESHOLD = 0.7
TRENDING_BONUS_PER_SKILL = 0.02
MAX_TRENDING_BONUS = 0.1
MAX_DEMAND_MULTIPLIER = 1.1

_UNTRACKED_SKILL = SkillDemand(demand=1, supply=1)


def profile_similarity(first: Mapping[str, Any], second: Mapping[str, Any]) -> float:
    """
    Similitud simple entre dos perfiles serializados.

    Promedia los factores comparables en ambos lados:
    - location: 1 si es igual, 0 si no
    - preferences: fracción de claves comunes con el mismo valor

    Returns:
        Score de 0.0 a 1.0 (0.0 si no hay nada comparable)
    """
    similarity = 0.0
    factors = 0

    if first.get("location") and second.get("location"):
        similarity += 1.0 if first["location"] == second["location"] else 0.0
        factors += 1

    first_prefs = first.get("preferences")
    second_prefs = second.get("preferences")
    if first_prefs and second_prefs:
        common = [key for key in first_prefs if key in second_prefs]
        if common:
            matching = [key for key in common if first_prefs[key] == second_prefs[key]]
            similarity += len(matching) / len(common)
            factors += 1

    return similarity / factors if factors else 0.0


def historical_success_rate(
    sponsor: Mapping[str, Any],
    maid: Mapping[str, Any],
    history: list[MatchOutcome],
) -> float:
    """Tasa de éxito de matches pasados con perfiles parecidos a este par."""
    similar = [
        match for match in history
        if profile_similarity(sponsor, match.sponsor) > SIMILARITY_THRESHOLD
        or profile_similarity(maid, match.maid) > SIMILARITY_THRESHOLD
    ]
    if not similar:
        return NEUTRAL_SUCCESS_RATE

    successful = [match for match in similar if match.outcome == SUCCESSFUL_OUTCOME]
    return len(successful) / len(similar)


def trending_bonus(skill_names: list[str], learning: LearningData) -> float:
    """+0.02 por cada skill en tendencia que tiene la maid (máximo +0.1)."""
    matches = [
        trend for trend in learning.trending_skills
        if any(trend.lower() in skill for skill in skill_names)
    ]
    return min(len(matches) * TRENDING_BONUS_PER_SKILL, MAX_TRENDING_BONUS)


def seasonal_multiplier(month: int, seasonal_factors: Mapping[int, float]) -> float:
    return seasonal_factors.get(month, 1.0)


def demand_supply_multiplier(skill_names: list[str], learning: LearningData) -> float:
    """
    Multiplicador por relación demanda/oferta de cada skill de la maid.

    Skill sin registrar = demanda y oferta 1. Con oferta 0 y demanda
    positiva el ratio es infinito y se aplica el máximo.
    """
    multiplier = 1.0
    for skill in skill_names:
        counters = learning.skill_demand.get(skill, _UNTRACKED_SKILL)
        if counters.supply == 0:
            if counters.demand > 0:
                multiplier *= MAX_DEMAND_MULTIPLIER
                continue
            ratio = 1.0
        else:
            ratio = counters.demand / counters.supply
        multiplier *= min(ratio * 0.1 + 0.95, MAX_DEMAND_MULTIPLIER)
    return multiplier
