"""
Repositorios sobre Supabase.

Implementan las fuentes de datos que consume el motor de matching
(sponsor, pool de maids, historial) y el store de learning data.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from pydantic import BaseModel, ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from maidmatch.database.supabase_client import get_supabase_client, SupabaseClient
from maidmatch.exceptions import NotFoundError, PersistenceWarning, UpstreamFetchError
from maidmatch.models import CandidateProfile, LearningData, MatchOutcome, RequesterProfile

logger = structlog.get_logger()

_fetch_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def _validate_rows(model: type[BaseModel], rows: list[dict], table: str) -> list:
    """Valida cada fila; las inválidas se descartan con un warning."""
    valid = []
    for row in rows:
        try:
            valid.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(
                "Fila inválida descartada",
                table=table,
                row_id=row.get("id") if isinstance(row, dict) else None,
                errors=e.error_count(),
            )
    return valid


class BaseRepository:
    """Clase base para repositorios."""

    ADMIN = False

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or get_supabase_client(admin=self.ADMIN)

    @property
    def client(self) -> SupabaseClient:
        return self._client


class SponsorRepository(BaseRepository):
    """Perfiles de sponsors (requesters)."""

    TABLE = "sponsor_profiles"

    @_fetch_retry
    def _select_by_id(self, sponsor_id: str) -> list[dict]:
        response = (
            self.client.table(self.TABLE)
            .select("id, location, preferences, requirements")
            .eq("id", sponsor_id)
            .limit(1)
            .execute()
        )
        return response.data

    def get_requester_profile(self, sponsor_id: str) -> RequesterProfile:
        """
        Obtiene el perfil de un sponsor.

        Raises:
            NotFoundError: Si el sponsor no existe
            UpstreamFetchError: Si falla la consulta a Supabase
        """
        try:
            rows = self._select_by_id(sponsor_id)
        except Exception as e:
            logger.error("Error obteniendo sponsor", sponsor_id=sponsor_id, error=str(e))
            raise UpstreamFetchError(self.TABLE, e) from e

        if not rows:
            raise NotFoundError("Sponsor", sponsor_id)

        try:
            return RequesterProfile.model_validate(rows[0])
        except ValidationError as e:
            logger.error("Perfil de sponsor inválido", sponsor_id=sponsor_id, error=str(e))
            raise UpstreamFetchError(self.TABLE, e) from e


class MaidRepository(BaseRepository):
    """Pool de maids disponibles para matching."""

    TABLE = "maid_profiles"

    @_fetch_retry
    def _select_available(self) -> list[dict]:
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("is_available", True)
            .execute()
        )
        return response.data

    def get_candidate_pool(self) -> list[CandidateProfile]:
        """
        Obtiene todas las maids marcadas como disponibles.

        Raises:
            UpstreamFetchError: Si falla la consulta a Supabase
        """
        try:
            rows = self._select_available()
        except Exception as e:
            logger.error("Error obteniendo pool de maids", error=str(e))
            raise UpstreamFetchError(self.TABLE, e) from e

        pool = _validate_rows(CandidateProfile, rows, self.TABLE)
        logger.info("Pool de maids obtenido", total=len(rows), valid=len(pool))
        return pool


class MatchingHistoryRepository(BaseRepository):
    """Historial de matches cerrados. Lo escribe el flujo de placements."""

    TABLE = "matching_history"

    def __init__(self, client: Optional[SupabaseClient] = None, limit: int = 1000):
        super().__init__(client)
        self.limit = limit

    @_fetch_retry
    def _select_recent(self) -> list[dict]:
        response = (
            self.client.table(self.TABLE)
            .select("sponsor, maid, outcome")
            .order("created_at", desc=True)
            .limit(self.limit)
            .execute()
        )
        return response.data

    def get_matching_history(self) -> list[MatchOutcome]:
        """
        Obtiene los últimos resultados de matching.

        Raises:
            UpstreamFetchError: Si falla la consulta a Supabase
        """
        try:
            rows = self._select_recent()
        except Exception as e:
            logger.error("Error obteniendo historial de matching", error=str(e))
            raise UpstreamFetchError(self.TABLE, e) from e

        return _validate_rows(MatchOutcome, rows, self.TABLE)


class LearningDataRepository(BaseRepository):
    """Learning data como una fila clave-valor (JSONB)."""

    TABLE = "matching_learning_data"
    KEY = "intelligent_matching"
    ADMIN = True

    def load(self) -> LearningData:
        """
        Lee learning data.

        Returns:
            LearningData vacío si todavía no hay fila

        Raises:
            PersistenceWarning: Si falla la consulta o el JSON es inválido
        """
        try:
            response = (
                self.client.table(self.TABLE)
                .select("data")
                .eq("key", self.KEY)
                .limit(1)
                .execute()
            )
            if not response.data:
                return LearningData()
            return LearningData.model_validate(response.data[0]["data"])
        except Exception as e:
            raise PersistenceWarning(f"No se pudo leer learning data: {e}") from e

    def save(self, data: LearningData) -> None:
        """Guarda learning data (upsert sobre la clave)."""
        row = {
            "key": self.KEY,
            "data": data.model_dump(mode="json"),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.client.table(self.TABLE).upsert(row, on_conflict="key").execute()
        except Exception as e:
            raise PersistenceWarning(f"No se pudo guardar learning data: {e}") from e
