"""
Factores de scoring sponsor-maid.

Cada función devuelve un score normalizado entre 0.0 y 1.0 y nunca
lanza excepciones: si falta un dato opcional devuelve su valor neutro.
"""

import re
from datetime import date, datetime
from typing import Optional, Union

from maidmatch.config import (
    COUNTRY_ALIASES,
    MATCH_REASONS,
    MATCHING_WEIGHTS,
    PROFICIENCY_SCORES,
    UNKNOWN_PROFICIENCY_SCORE,
)
from maidmatch.models import (
    AgeRange,
    AvailabilityRequirement,
    MaidAvailability,
    MaidLanguage,
    MaidPersonalProfile,
    MaidRatings,
    MaidSkill,
    SponsorPreferences,
)

# Defaults cuando no hay datos para comparar
DEFAULT_SKILLS_SCORE = 0.8
DEFAULT_EXPERIENCE_SCORE = 0.8
DEFAULT_LANGUAGE_SCORE = 0.8
DEFAULT_LOCATION_SCORE = 0.6
DEFAULT_AVAILABILITY_SCORE = 0.7
DEFAULT_PREFERENCES_SCORE = 0.7
DEFAULT_RATINGS_SCORE = 0.5
DEFAULT_DURATION_MONTHS = 12

Duration = Optional[Union[int, float, str]]

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def skills_score(required: list[str], maid_skills: list[MaidSkill]) -> float:
    """
    Fracción de skills requeridos que la maid tiene, más un bonus por extras.

    Un skill matchea si uno contiene al otro (sin importar mayúsculas):
    'cooking' matchea con 'arabic cooking'.
    """
    required = [r.strip().lower() for r in required if r and r.strip()]
    if not required:
        return DEFAULT_SKILLS_SCORE

    names = [s.name.strip().lower() for s in maid_skills if s.name.strip()]

    matched = [
        req for req in required
        if any(name in req or req in name for name in names)
    ]
    ratio = len(matched) / len(required)

    # Skills que ningún requisito contiene
    extra = [name for name in names if not any(name in req for req in required)]
    bonus = min(len(extra) * 0.1, 0.2)

    return min(ratio + bonus, 1.0)


def experience_score(required_years: float, maid_years: float) -> float:
    """Penaliza la falta de experiencia; el exceso no pasa de 1.0."""
    if not required_years:
        return DEFAULT_EXPERIENCE_SCORE

    maid_years = maid_years or 0
    if maid_years >= required_years:
        bonus = min((maid_years - required_years) * 0.05, 0.2)
        return min(1.0 + bonus, 1.0)

    shortfall = required_years - maid_years
    return max(0.5 - shortfall * 0.1, 0.0)


def language_score(preferred: list[str], maid_languages: list[MaidLanguage]) -> float:
    """Promedio del nivel de la maid en cada idioma preferido."""
    preferred = [p.strip().lower() for p in preferred if p and p.strip()]
    if not preferred:
        return DEFAULT_LANGUAGE_SCORE

    by_language = {lang.language.strip().lower(): lang for lang in maid_languages}

    scores = []
    for language in preferred:
        maid_lang = by_language.get(language)
        if maid_lang is None:
            scores.append(0.0)
            continue
        proficiency = (maid_lang.proficiency or "").strip().lower()
        scores.append(PROFICIENCY_SCORES.get(proficiency, UNKNOWN_PROFICIENCY_SCORE))

    return sum(scores) / len(scores)


def extract_country(location: str) -> Optional[str]:
    """
    Detecta el país de una ubicación en texto libre.

    Returns:
        Nombre normalizado del país o None si no se reconoce
    """
    lowered = (location or "").lower()
    for country, aliases in COUNTRY_ALIASES.items():
        if any(alias in lowered for alias in aliases):
            return country
    return None


def location_score(sponsor_location: Optional[str], preferred_locations: list[str]) -> float:
    """1.0 si coincide la ubicación, 0.8 si coincide el país, 0.3 si no."""
    sponsor_location = (sponsor_location or "").strip().lower()
    preferred = [loc.strip().lower() for loc in preferred_locations if loc and loc.strip()]
    if not sponsor_location or not preferred:
        return DEFAULT_LOCATION_SCORE

    if any(loc in sponsor_location or sponsor_location in loc for loc in preferred):
        return 1.0

    sponsor_country = extract_country(sponsor_location)
    if sponsor_country is not None and sponsor_country in {extract_country(loc) for loc in preferred}:
        return 0.8

    return 0.3


def to_months(duration: Duration) -> float:
    """
    Convierte una duración a meses.

    Acepta números (ya en meses) o texto como '2 years' / '6 months'.
    Cualquier otra cosa se toma como un año.
    """
    if isinstance(duration, (int, float)) and not isinstance(duration, bool):
        return float(duration)

    if isinstance(duration, str):
        text = duration.lower()
        number = _NUMBER_RE.search(text)
        if number:
            if "year" in text:
                return float(number.group()) * 12
            if "month" in text:
                return float(number.group())

    return float(DEFAULT_DURATION_MONTHS)


def duration_score(required: Duration, preferred: Duration) -> float:
    if not required or not preferred:
        return DEFAULT_AVAILABILITY_SCORE

    required_months = to_months(required)
    preferred_months = to_months(preferred)

    if preferred_months >= required_months:
        return 1.0
    return max(preferred_months / required_months, 0.3)


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def availability_score(
    required: Optional[AvailabilityRequirement],
    maid_availability: Optional[MaidAvailability],
) -> float:
    """Promedio entre fecha de inicio y compatibilidad de duración."""
    if required is None or maid_availability is None:
        return DEFAULT_AVAILABILITY_SCORE

    if required.start_date is None or maid_availability.available_from is None:
        start_score = DEFAULT_AVAILABILITY_SCORE
    elif _as_date(maid_availability.available_from) <= _as_date(required.start_date):
        start_score = 1.0
    else:
        start_score = 0.5

    duration = duration_score(required.duration, maid_availability.preferred_duration)

    return (start_score + duration) / 2


def preferences_score(
    preferences: Optional[SponsorPreferences],
    profile: Optional[MaidPersonalProfile],
) -> float:
    """Parte de 0.7 y suma por edad, religión y estado civil."""
    if preferences is None or profile is None:
        return DEFAULT_PREFERENCES_SCORE

    score = DEFAULT_PREFERENCES_SCORE

    age_range: Optional[AgeRange] = preferences.age_range
    if age_range is not None and profile.age is not None and age_range.contains(profile.age):
        score += 0.1

    if _same_text(preferences.religion, profile.religion):
        score += 0.1

    if _same_text(preferences.marital_status, profile.marital_status):
        score += 0.05

    return min(score, 1.0)


def _same_text(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    return a.strip().lower() == b.strip().lower()


def ratings_score(ratings: Optional[MaidRatings]) -> float:
    if ratings is None or ratings.count == 0:
        return DEFAULT_RATINGS_SCORE

    average = ratings.average / 5
    volume_bonus = min(ratings.count * 0.01, 0.2)
    return min(max(average + volume_bonus, 0.0), 1.0)


def weighted_score(breakdown: dict[str, float]) -> float:
    """Combinación convexa de factores con MATCHING_WEIGHTS."""
    return sum(breakdown[factor] * weight for factor, weight in MATCHING_WEIGHTS.items())


def variance(scores: list[float]) -> float:
    """Varianza poblacional; 1.0 si no hay scores."""
    if not scores:
        return 1.0
    mean = sum(scores) / len(scores)
    return sum((s - mean) ** 2 for s in scores) / len(scores)


def confidence(breakdown: dict[str, float]) -> float:
    """Menor dispersión entre factores = mayor confianza."""
    non_zero = [score for score in breakdown.values() if score > 0]
    return max(0.1, 1 - variance(non_zero))


def match_reasons(breakdown: dict[str, float]) -> list[str]:
    """Un motivo legible por cada factor con score > 0.8."""
    return [
        MATCH_REASONS[factor]
        for factor in MATCHING_WEIGHTS
        if breakdown.get(factor, 0.0) > 0.8
    ]
