"""
Modelos de datos del motor de matching.

- Sponsor: quien busca contratar (requester)
- Maid: candidatas del pool
- Learning: estadísticas acumuladas e historial
"""

from maidmatch.models.sponsor import (
    AgeRange,
    AvailabilityRequirement,
    RequesterProfile,
    SearchCriteria,
    SponsorPreferences,
    SponsorRequirements,
)
from maidmatch.models.maid import (
    CandidateProfile,
    MaidAvailability,
    MaidLanguage,
    MaidPersonalProfile,
    MaidRatings,
    MaidSkill,
)
from maidmatch.models.learning import LearningData, MatchOutcome, SkillDemand

__all__ = [
    # Sponsor
    "AgeRange",
    "AvailabilityRequirement",
    "RequesterProfile",
    "SearchCriteria",
    "SponsorPreferences",
    "SponsorRequirements",
    # Maid
    "CandidateProfile",
    "MaidAvailability",
    "MaidLanguage",
    "MaidPersonalProfile",
    "MaidRatings",
    "MaidSkill",
    # Learning
    "LearningData",
    "MatchOutcome",
    "SkillDemand",
]
