"""
Módulo de base de datos.

Provee acceso a Supabase y las fuentes de datos del matching.
"""

from maidmatch.database.supabase_client import get_supabase_client, SupabaseClient
from maidmatch.database.repositories import (
    SponsorRepository,
    MaidRepository,
    MatchingHistoryRepository,
    LearningDataRepository,
)

__all__ = [
    "get_supabase_client",
    "SupabaseClient",
    "SponsorRepository",
    "MaidRepository",
    "MatchingHistoryRepository",
    "LearningDataRepository",
]
