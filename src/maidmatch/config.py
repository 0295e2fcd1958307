"""
Configuración centralizada del motor de matching.
Carga variables de entorno y define settings globales.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py -> maidmatch/ -> src/ -> raíz del proyecto
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Configuración principal de la aplicación."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase (solo requerido si se usan los repositorios)
    supabase_url: Optional[str] = Field(None, description="URL del proyecto Supabase")
    supabase_key: Optional[str] = Field(None, description="Anon key de Supabase")
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key para operaciones admin"
    )

    # Learning data
    learning_store: str = Field(
        "file", description="Backend de learning data: 'file' o 'supabase'"
    )
    learning_data_path: Path = Field(
        _PROJECT_ROOT / "data" / "learning_data.json",
        description="Archivo JSON para el store 'file'",
    )
    max_trending_skills: int = Field(
        50, ge=1, description="Máximo de skills en tendencia que se guardan"
    )

    # Matching
    min_match_score: float = Field(
        0.3, ge=0.0, le=1.0, description="Score base mínimo (exclusivo) para aparecer en resultados"
    )
    default_match_limit: int = Field(10, ge=1, description="Cantidad de resultados por defecto")
    candidate_pool_timeout_seconds: float = Field(
        30.0, gt=0, description="Tiempo máximo para obtener el pool de candidatas"
    )

    # Ajuste estacional por mes (1-12). Aproximado: Ramadán cambia de mes cada año.
    # En .env se pasa como JSON: SEASONAL_FACTORS='{"12": 1.1, "1": 1.1}'
    seasonal_factors: dict[int, float] = Field(
        default_factory=lambda: {
            12: 1.1,
            1: 1.1,
            2: 1.05,
            4: 1.05,
            6: 1.1,
            7: 1.1,
            8: 1.05,
        },
        description="Multiplicador de demanda por mes; los meses ausentes valen 1.0",
    )

    # Logging
    log_level: str = Field("INFO", description="Nivel de logging")


@lru_cache
def get_settings() -> Settings:
    """Obtiene la configuración cacheada."""
    return Settings()


# Constantes del sistema

MATCHING_WEIGHTS = {
    "skills": 0.25,
    "experience": 0.20,
    "language": 0.15,
    "location": 0.15,
    "availability": 0.10,
    "preferences": 0.10,
    "ratings": 0.05,
}

PROFICIENCY_SCORES = {
    "native": 1.0,
    "fluent": 0.9,
    "intermediate": 0.7,
    "basic": 0.4,
    "beginner": 0.2,
}

# Nivel declarado pero fuera de la tabla
UNKNOWN_PROFICIENCY_SCORE = 0.5

MATCH_REASONS = {
    "skills": "Excellent skills match",
    "experience": "Strong experience alignment",
    "language": "Great language compatibility",
    "location": "Perfect location match",
    "availability": "Available when needed",
    "preferences": "Fits household preferences",
    "ratings": "Highly rated professional",
}

# País -> alias reconocidos (ciudades incluidas). El orden define prioridad.
COUNTRY_ALIASES = {
    "saudi arabia": ["saudi arabia", "saudi", "ksa", "riyadh", "jeddah", "dammam", "mecca", "medina"],
    "uae": ["uae", "united arab emirates", "emirates", "dubai", "abu dhabi", "sharjah", "ajman"],
    "kuwait": ["kuwait"],
    "qatar": ["qatar", "doha"],
    "bahrain": ["bahrain", "manama"],
    "oman": ["oman", "muscat"],
    "lebanon": ["lebanon", "beirut"],
    "jordan": ["jordan", "amman"],
}

SUCCESSFUL_OUTCOME = "successful"
