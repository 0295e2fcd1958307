"""
Learning data e historial de matching.

Ambos son agregados entre llamadas: learning data lo escribe el motor,
el historial lo escribe el resto de la plataforma.
"""

from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from maidmatch.models.defaults import none_to_default


class SkillDemand(BaseModel):
    """Contadores de búsquedas (demand) y oferta (supply) de un skill."""

    demand: int = Field(default=0, ge=0)
    supply: int = Field(default=0, ge=0)


class MatchOutcome(BaseModel):
    """Resultado de un match pasado."""

    sponsor: dict[str, Any] = Field(default_factory=dict, description="Snapshot del sponsor")
    maid: dict[str, Any] = Field(default_factory=dict, description="Snapshot de la maid")
    outcome: str = Field(..., description="'successful' u otro estado final")

    @field_validator("sponsor", "maid", mode="before")
    @classmethod
    def null_as_default(cls, value, info: ValidationInfo):
        return none_to_default(cls, value, info)


class LearningData(BaseModel):
    """Estadísticas acumuladas que sesgan rankings futuros."""

    trending_skills: list[str] = Field(default_factory=list)
    skill_demand: dict[str, SkillDemand] = Field(default_factory=dict)
    success_patterns: list[MatchOutcome] = Field(default_factory=list)
    seasonal_trends: dict[str, Any] = Field(default_factory=dict)

    @field_validator(
        "trending_skills", "skill_demand", "success_patterns", "seasonal_trends", mode="before"
    )
    @classmethod
    def null_as_default(cls, value, info: ValidationInfo):
        return none_to_default(cls, value, info)
