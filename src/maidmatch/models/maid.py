"""
Modelo de Maid (candidata) tal como lo entrega el pool de candidatas.
"""

from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from maidmatch.models.defaults import none_to_default


class MaidSkill(BaseModel):
    name: str = Field(..., description="Nombre del skill: 'cooking', 'childcare'")
    level: Optional[str] = Field(None, description="Nivel declarado: 'expert', 'beginner'")


class MaidLanguage(BaseModel):
    language: str = Field(..., description="Idioma")
    proficiency: Optional[str] = Field(None, description="native, fluent, intermediate, basic, beginner")


class MaidAvailability(BaseModel):
    available_from: Optional[Union[datetime, date]] = Field(None, description="Desde cuándo puede empezar")
    preferred_duration: Optional[Union[int, float, str]] = Field(
        None, description="Duración de contrato preferida"
    )


class MaidPersonalProfile(BaseModel):
    age: Optional[int] = Field(None, ge=0)
    religion: Optional[str] = None
    marital_status: Optional[str] = None


class MaidRatings(BaseModel):
    average: float = Field(default=0.0, ge=0, le=5, description="Promedio de 0 a 5")
    count: int = Field(default=0, ge=0, description="Cantidad de reviews")

    @field_validator("average", "count", mode="before")
    @classmethod
    def null_as_default(cls, value, info: ValidationInfo):
        return none_to_default(cls, value, info)


class CandidateProfile(BaseModel):
    """
    Snapshot de solo lectura de una candidata.

    Los campos opcionales ausentes no rompen el scoring: cada factor
    tiene un valor neutro por defecto.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="ID de la maid")
    skills: list[MaidSkill] = Field(default_factory=list)
    experience: float = Field(default=0, ge=0, description="Años de experiencia")
    languages: list[MaidLanguage] = Field(default_factory=list)
    preferred_locations: list[str] = Field(default_factory=list)
    availability: Optional[MaidAvailability] = None
    profile: MaidPersonalProfile = Field(default_factory=MaidPersonalProfile)
    ratings: MaidRatings = Field(default_factory=MaidRatings)

    @field_validator(
        "skills", "experience", "languages", "preferred_locations", "profile", "ratings",
        mode="before",
    )
    @classmethod
    def null_as_default(cls, value, info: ValidationInfo):
        return none_to_default(cls, value, info)

    @property
    def skill_names(self) -> list[str]:
        """Nombres de skills en minúscula, sin vacíos."""
        return [s.name.strip().lower() for s in self.skills if s.name.strip()]
