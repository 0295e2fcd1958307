"""
Motor de matching entre sponsors y maids.

Implementa:
- Scoring: siete factores ponderados, cada uno entre 0.0 y 1.0
- Ajustes: historial de éxito, skills en tendencia, estacionalidad y demanda/oferta
- Aprendizaje: acumula skills buscados y su demanda entre llamadas
"""

import asyncio
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Protocol, Union

import structlog

from maidmatch.config import Settings, get_settings
from maidmatch.exceptions import PersistenceWarning, UpstreamFetchError
from maidmatch.learning import LearningStore, get_learning_store
from maidmatch.matching import adjustments, scoring
from maidmatch.models import (
    CandidateProfile,
    LearningData,
    MatchOutcome,
    RequesterProfile,
    SearchCriteria,
    SkillDemand,
    SponsorPreferences,
)

logger = structlog.get_logger()


class RequesterSource(Protocol):
    def get_requester_profile(self, requester_id: str) -> RequesterProfile: ...


class CandidateSource(Protocol):
    def get_candidate_pool(self) -> list[CandidateProfile]: ...


class HistorySource(Protocol):
    def get_matching_history(self) -> list[MatchOutcome]: ...


@dataclass
class MatchResult:
    """Resultado de matching para una maid."""

    candidate_id: str
    candidate: CandidateProfile
    score: float  # Score base ponderado, 0.0 a 1.0
    adjusted_score: float  # Score tras ajustes, usado para ordenar
    breakdown: dict[str, float] = field(default_factory=dict)
    confidence: float = 0.0
    reasons: list[str] = field(default_factory=list)


@dataclass
class MatchingContext:
    """Snapshot de solo lectura usado durante un matching."""

    learning: LearningData
    history: list[MatchOutcome]
    month: int


class MatchingEngine:
    """
    Motor de matching sponsor-maid.

    Flujo de find_matches:
    1. Obtener perfil del sponsor y mergear preferencias de la búsqueda
    2. Obtener el pool de maids (ya filtrado por disponibilidad)
    3. Calcular score y ajustes para cada maid sobre un snapshot de learning data
    4. Descartar score base <= umbral, ordenar por score ajustado y truncar
    5. Actualizar y persistir learning data (un solo escritor a la vez)
    """

    def __init__(
        self,
        requesters: RequesterSource,
        candidates: CandidateSource,
        history: Optional[HistorySource] = None,
        learning_store: Optional[LearningStore] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.settings = settings or get_settings()
        self.requesters = requesters
        self.candidates = candidates
        self.history = history
        self.learning_store = learning_store or get_learning_store(self.settings)
        self.clock = clock

        self._lock = threading.Lock()
        self._learning_data = self._load_learning_data()

    def _load_learning_data(self) -> LearningData:
        try:
            data = self.learning_store.load()
        except PersistenceWarning as e:
            logger.warning("No se pudo cargar learning data, se arranca vacío", error=str(e))
            return LearningData()

        logger.info(
            "Learning data cargado",
            trending_skills=len(data.trending_skills),
            tracked_skills=len(data.skill_demand),
        )
        return data

    async def find_matches(
        self,
        requester_id: str,
        preferences: Optional[Union[dict, SponsorPreferences]] = None,
        limit: Optional[int] = None,
    ) -> list[MatchResult]:
        """
        Encuentra las maids que mejor matchean con un sponsor.

        Args:
            requester_id: ID del sponsor
            preferences: Preferencias de esta búsqueda (pisan a las guardadas)
            limit: Máximo de resultados (default: settings.default_match_limit)

        Returns:
            Lista de MatchResult ordenados por adjusted_score descendente

        Raises:
            NotFoundError: Si el sponsor no existe
            UpstreamFetchError: Si falla o demora demasiado una fuente de datos
        """
        limit = self.settings.default_match_limit if limit is None else limit
        if limit < 1:
            raise ValueError(f"limit debe ser positivo: {limit}")

        started = time.perf_counter()

        try:
            requester = await asyncio.to_thread(
                self.requesters.get_requester_profile, requester_id
            )
            criteria = SearchCriteria.merge(requester, preferences)

            pool = await self._fetch_candidate_pool()
            context = await self._build_context()

            scored = [
                self.calculate_match_score(requester, candidate, criteria, context)
                for candidate in pool
            ]

            threshold = self.settings.min_match_score
            matches = [m for m in scored if m.score > threshold]
            matches.sort(key=lambda m: m.adjusted_score, reverse=True)
            matches = matches[:limit]

            self._track_matching_metrics(
                requester_id,
                match_count=len(matches),
                candidates=len(pool),
                duration=time.perf_counter() - started,
            )

            await asyncio.to_thread(self.update_learning_data, criteria)

            return matches

        except Exception as e:
            logger.error(
                "Error en matching",
                requester_id=requester_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

    async def _fetch_candidate_pool(self) -> list[CandidateProfile]:
        timeout = self.settings.candidate_pool_timeout_seconds
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.candidates.get_candidate_pool),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamFetchError(f"candidate pool (timeout {timeout}s)", e) from e

    async def _build_context(self) -> MatchingContext:
        history = []
        if self.history is not None:
            try:
                history = await asyncio.to_thread(self.history.get_matching_history)
            except UpstreamFetchError as e:
                logger.warning("Historial no disponible, se usa tasa neutra", error=str(e))

        with self._lock:
            learning = self._learning_data.model_copy(deep=True)

        return MatchingContext(learning=learning, history=history, month=self.clock().month)

    def _current_context(self) -> MatchingContext:
        """Contexto sin historial, para llamadas sueltas fuera de find_matches."""
        with self._lock:
            learning = self._learning_data.model_copy(deep=True)
        return MatchingContext(learning=learning, history=[], month=self.clock().month)

    def calculate_match_score(
        self,
        requester: RequesterProfile,
        candidate: CandidateProfile,
        criteria: Optional[SearchCriteria] = None,
        context: Optional[MatchingContext] = None,
    ) -> MatchResult:
        """
        Calcula el score de una maid para un sponsor.

        No modifica learning data; solo lo lee para los ajustes.
        """
        criteria = criteria or SearchCriteria.merge(requester)
        prefs = criteria.preferences
        reqs = criteria.requirements

        breakdown = {
            "skills": scoring.skills_score(reqs.skills, candidate.skills),
            "experience": scoring.experience_score(reqs.experience, candidate.experience),
            "language": scoring.language_score(prefs.languages, candidate.languages),
            "location": scoring.location_score(requester.location, candidate.preferred_locations),
            "availability": scoring.availability_score(reqs.availability, candidate.availability),
            "preferences": scoring.preferences_score(prefs, candidate.profile),
            "ratings": scoring.ratings_score(candidate.ratings),
        }

        base_score = scoring.weighted_score(breakdown)

        return MatchResult(
            candidate_id=candidate.id,
            candidate=candidate,
            score=base_score,
            adjusted_score=self.apply_ml_adjustments(requester, candidate, base_score, context),
            breakdown=breakdown,
            confidence=scoring.confidence(breakdown),
            reasons=scoring.match_reasons(breakdown),
        )

    def apply_ml_adjustments(
        self,
        requester: RequesterProfile,
        candidate: CandidateProfile,
        base_score: float,
        context: Optional[MatchingContext] = None,
    ) -> float:
        """
        Aplica los ajustes en orden; cada paso usa el resultado del anterior.

        1. Historial: x (0.8 + 0.4 * tasa de éxito)
        2. Tendencias: + bonus por skills en tendencia
        3. Estacionalidad: x factor del mes
        4. Demanda/oferta: x factor por skill
        """
        context = context or self._current_context()
        skill_names = candidate.skill_names

        success_rate = adjustments.historical_success_rate(
            requester.model_dump(mode="json", exclude_none=True),
            candidate.model_dump(mode="json", exclude_none=True),
            context.history,
        )
        adjusted = base_score * (0.8 + 0.4 * success_rate)

        adjusted += adjustments.trending_bonus(skill_names, context.learning)

        adjusted *= adjustments.seasonal_multiplier(context.month, self.settings.seasonal_factors)

        adjusted *= adjustments.demand_supply_multiplier(skill_names, context.learning)

        return min(adjusted, 1.0)

    def update_learning_data(self, criteria: SearchCriteria) -> None:
        """
        Registra los skills buscados y persiste learning data.

        Un skill ya en tendencia pasa al final de la lista; si se supera
        max_trending_skills se descartan los buscados hace más tiempo.
        Si falla el guardado se loguea y se sigue.
        """
        skills = []
        for skill in [*criteria.preferences.skills, *criteria.requirements.skills]:
            key = skill.strip().lower()
            if key and key not in skills:
                skills.append(key)

        with self._lock:
            data = self._learning_data

            for skill in skills:
                if skill in data.trending_skills:
                    data.trending_skills.remove(skill)
                data.trending_skills.append(skill)

                counters = data.skill_demand.setdefault(skill, SkillDemand())
                counters.demand += 1

            overflow = len(data.trending_skills) - self.settings.max_trending_skills
            if overflow > 0:
                del data.trending_skills[:overflow]

            try:
                self.learning_store.save(data)
            except Exception as e:
                logger.warning(
                    "No se pudo guardar learning data",
                    error=str(e),
                    error_type=type(e).__name__,
                )

    def get_learning_data(self) -> LearningData:
        """Copia de learning data para diagnóstico."""
        with self._lock:
            return self._learning_data.model_copy(deep=True)

    def _track_matching_metrics(
        self,
        requester_id: str,
        match_count: int,
        candidates: int,
        duration: float,
    ) -> None:
        logger.info(
            "matching_performance",
            requester_id=requester_id,
            match_count=match_count,
            candidates_scored=candidates,
            duration_ms=round(duration * 1000, 2),
            avg_score_ms=round(duration * 1000 / candidates, 4) if candidates else 0.0,
        )
