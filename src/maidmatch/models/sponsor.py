"""
Modelo de Sponsor (empleador) y sus criterios de búsqueda.

Separa preferencias (ponderables, se pueden sobreescribir por búsqueda)
de requisitos (lo que el sponsor necesita para el contrato).
"""

from datetime import date, datetime
from typing import Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from maidmatch.models.defaults import none_to_default

logger = structlog.get_logger()


class AgeRange(BaseModel):
    """Rango de edad aceptado (inclusive)."""

    min: int = Field(..., ge=0, description="Edad mínima")
    max: int = Field(..., ge=0, description="Edad máxima")

    def contains(self, age: int) -> bool:
        return self.min <= age <= self.max


class AvailabilityRequirement(BaseModel):
    """Cuándo empieza el contrato y cuánto dura."""

    start_date: Optional[Union[datetime, date]] = Field(None, description="Fecha de inicio requerida")
    duration: Optional[Union[int, float, str]] = Field(
        None, description="Duración: meses como número o texto ('2 years', '6 months')"
    )


class SponsorPreferences(BaseModel):
    """
    Preferencias del sponsor. Cualquier clave se puede sobreescribir por búsqueda.

    Acepta las claves en snake_case o camelCase ('age_range' o 'ageRange').
    """

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    skills: list[str] = Field(default_factory=list, description="Skills buscados")
    languages: list[str] = Field(default_factory=list, description="Idiomas preferidos")
    experience: float = Field(default=0, ge=0, description="Años de experiencia preferidos")
    age_range: Optional[AgeRange] = Field(None, description="Rango de edad aceptado")
    religion: Optional[str] = Field(None, description="Religión preferida")
    marital_status: Optional[str] = Field(None, description="Estado civil preferido")

    @field_validator("skills", "languages", "experience", mode="before")
    @classmethod
    def null_as_default(cls, value, info: ValidationInfo):
        return none_to_default(cls, value, info)

    @classmethod
    def unknown_keys(cls, data: dict) -> list[str]:
        """Claves que no corresponden a ningún campo ni alias."""
        known = set(cls.model_fields)
        known.update(f.alias for f in cls.model_fields.values() if f.alias)
        return [key for key in data if key not in known]


class SponsorRequirements(BaseModel):
    """Requisitos duros del contrato."""

    availability: Optional[AvailabilityRequirement] = Field(None)
    skills: list[str] = Field(default_factory=list, description="Skills requeridos")
    experience: float = Field(default=0, ge=0, description="Años de experiencia requeridos")

    @field_validator("skills", "experience", mode="before")
    @classmethod
    def null_as_default(cls, value, info: ValidationInfo):
        return none_to_default(cls, value, info)


class RequesterProfile(BaseModel):
    """
    Perfil del sponsor que busca contratar.

    Es un input inmutable durante un matching.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="ID del sponsor")
    location: Optional[str] = Field(None, description="Ubicación en texto libre")
    preferences: SponsorPreferences = Field(default_factory=SponsorPreferences)
    requirements: SponsorRequirements = Field(default_factory=SponsorRequirements)

    @field_validator("preferences", "requirements", mode="before")
    @classmethod
    def null_as_default(cls, value, info: ValidationInfo):
        return none_to_default(cls, value, info)


class SearchCriteria(BaseModel):
    """Criterios efectivos de una búsqueda: preferencias mergeadas + requisitos."""

    preferences: SponsorPreferences = Field(default_factory=SponsorPreferences)
    requirements: SponsorRequirements = Field(default_factory=SponsorRequirements)

    @classmethod
    def merge(
        cls,
        requester: RequesterProfile,
        overrides: Optional[Union[dict, SponsorPreferences]] = None,
    ) -> "SearchCriteria":
        """
        Combina las preferencias guardadas con las de la búsqueda.

        La búsqueda gana clave por clave; las claves no enviadas
        conservan el valor guardado del sponsor. Las claves desconocidas
        se ignoran y se loguean.
        """
        if isinstance(overrides, dict):
            ignored = SponsorPreferences.unknown_keys(overrides)
            if ignored:
                logger.warning(
                    "Preferencias desconocidas ignoradas",
                    requester_id=requester.id,
                    keys=ignored,
                )
            overrides = SponsorPreferences.model_validate(overrides)

        merged = requester.preferences.model_dump()
        if overrides is not None:
            merged.update(overrides.model_dump(exclude_unset=True))

        return cls(
            preferences=SponsorPreferences.model_validate(merged),
            requirements=requester.requirements,
        )
