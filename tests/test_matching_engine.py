import asyncio
import threading
import time

import pytest
from structlog.testing import capture_logs

from conftest import FakeHistory, FakeMaids
from maidmatch.exceptions import NotFoundError, PersistenceWarning, UpstreamFetchError
from maidmatch.learning import InMemoryLearningStore
from maidmatch.matching import MatchingEngine
from maidmatch.models import (
    CandidateProfile,
    LearningData,
    MatchOutcome,
    RequesterProfile,
    SearchCriteria,
    SkillDemand,
)


def maid(maid_id, **data):
    return CandidateProfile.model_validate({"id": maid_id, **data})


@pytest.fixture
def weak_maid():
    """Maid con score base por debajo del umbral para el sponsor base."""
    return maid(
        "maid-weak",
        skills=[{"name": "gardening"}],
        experience=0,
        preferred_locations=["Manila"],
    )


@pytest.fixture
def demanding_sponsor():
    return RequesterProfile.model_validate({
        "id": "sponsor-2",
        "location": "Riyadh, Saudi Arabia",
        "preferences": {"languages": ["Arabic"]},
        "requirements": {"skills": ["cooking", "childcare", "eldercare"], "experience": 10},
    })


class TestCalculateMatchScore:
    """Score base, breakdown y explicaciones"""

    def test_end_to_end_scenario_breakdown(self, make_engine, sponsor, experienced_maid):
        engine = make_engine([sponsor], [experienced_maid])

        result = engine.calculate_match_score(sponsor, experienced_maid)

        assert result.breakdown == pytest.approx({
            "skills": 1.0,
            "experience": 1.0,
            "language": 0.8,
            "location": 0.6,
            "availability": 0.7,
            "preferences": 0.7,
            "ratings": 1.0,
        })
        assert result.score == pytest.approx(0.85)
        assert result.confidence == pytest.approx(0.975102, abs=1e-5)
        assert result.reasons == [
            "Excellent skills match",
            "Strong experience alignment",
            "Highly rated professional",
        ]

    def test_default_neutrality(self, make_engine):
        requester = RequesterProfile(id="empty-sponsor")
        candidate = CandidateProfile(id="empty-maid")
        engine = make_engine([requester], [candidate])

        result = engine.calculate_match_score(requester, candidate)

        assert result.breakdown["skills"] == 0.8
        assert result.breakdown["experience"] == 0.8
        assert result.breakdown["language"] == 0.8
        assert result.breakdown["preferences"] == 0.7
        assert result.breakdown["availability"] == 0.7
        assert result.breakdown["ratings"] == 0.5
        assert result.breakdown["location"] == 0.6
        assert result.score == pytest.approx(0.735)

    def test_scores_are_bounded(self, make_engine, demanding_sponsor, experienced_maid, weak_maid):
        engine = make_engine(
            [demanding_sponsor],
            [experienced_maid, weak_maid],
            store=InMemoryLearningStore(LearningData(
                trending_skills=["cooking", "housekeeping"],
                skill_demand={"cooking": SkillDemand(demand=50, supply=0)},
            )),
            seasonal_factors={3: 1.1},
        )

        for candidate in (experienced_maid, weak_maid):
            result = engine.calculate_match_score(demanding_sponsor, candidate)
            assert all(0.0 <= score <= 1.0 for score in result.breakdown.values())
            assert 0.0 <= result.score <= 1.0
            assert 0.0 <= result.adjusted_score <= 1.0
            assert 0.1 <= result.confidence <= 1.0

    def test_merged_preferences_drive_language_factor(self, make_engine, demanding_sponsor):
        candidate = maid("maid-en", languages=[{"language": "English", "proficiency": "fluent"}])
        engine = make_engine([demanding_sponsor], [candidate])

        stored = engine.calculate_match_score(demanding_sponsor, candidate)
        overridden = engine.calculate_match_score(
            demanding_sponsor,
            candidate,
            SearchCriteria.merge(demanding_sponsor, {"languages": ["English"]}),
        )

        assert stored.breakdown["language"] == 0.0
        assert overridden.breakdown["language"] == pytest.approx(0.9)


class TestApplyMLAdjustments:
    """Ajustes secuenciales sobre el score base"""

    def test_neutral_adjustments(self, make_engine, sponsor):
        candidate = maid("maid-no-skills")
        engine = make_engine([sponsor], [candidate])

        assert engine.apply_ml_adjustments(sponsor, candidate, 0.6) == pytest.approx(0.6)

    def test_adjustments_in_order(self, make_engine, sponsor, experienced_maid):
        engine = make_engine(
            [sponsor],
            [experienced_maid],
            store=InMemoryLearningStore(LearningData(trending_skills=["cooking"])),
            seasonal_factors={3: 1.1},
        )

        adjusted = engine.apply_ml_adjustments(sponsor, experienced_maid, 0.5)

        # (0.5 * 1.0 + 0.02) * 1.1 * 1.05 * 1.05
        assert adjusted == pytest.approx(0.52 * 1.1 * 1.05 * 1.05)

    def test_clamped_to_one(self, make_engine, sponsor, experienced_maid):
        engine = make_engine([sponsor], [experienced_maid], seasonal_factors={3: 1.1})

        assert engine.apply_ml_adjustments(sponsor, experienced_maid, 0.99) == 1.0

    @pytest.mark.asyncio
    async def test_history_multiplier(self, make_engine, experienced_maid):
        requester = RequesterProfile(id="sponsor-riyadh", location="Riyadh")
        history = FakeHistory([
            MatchOutcome(sponsor={"location": "Riyadh"}, maid={}, outcome="successful"),
        ])
        engine = make_engine([requester], [experienced_maid], history=history)

        context = await engine._build_context()
        candidate = maid("maid-no-skills")

        assert engine.apply_ml_adjustments(requester, candidate, 0.5, context) == pytest.approx(0.6)


class TestFindMatches:
    """Flujo completo de find_matches"""

    @pytest.mark.asyncio
    async def test_single_candidate_ranked_first(self, make_engine, sponsor, experienced_maid):
        engine = make_engine([sponsor], [experienced_maid])

        matches = await engine.find_matches("sponsor-1")

        assert [m.candidate_id for m in matches] == ["maid-1"]
        assert matches[0].score == pytest.approx(0.85)
        assert matches[0].adjusted_score == pytest.approx(0.85 * 1.05 * 1.05)

    @pytest.mark.asyncio
    async def test_low_base_score_is_filtered(self, make_engine, demanding_sponsor, weak_maid):
        # Aunque los ajustes suban el score, el corte es sobre el score base
        engine = make_engine(
            [demanding_sponsor],
            [weak_maid],
            store=InMemoryLearningStore(LearningData(
                trending_skills=["gardening"],
                skill_demand={"gardening": SkillDemand(demand=10, supply=0)},
            )),
            seasonal_factors={3: 1.1},
        )

        assert engine.calculate_match_score(demanding_sponsor, weak_maid).score <= 0.3
        assert await engine.find_matches("sponsor-2") == []

    @pytest.mark.asyncio
    async def test_limit_and_ordering(self, make_engine, sponsor):
        pool = [
            maid(
                f"maid-{i}",
                skills=[{"name": "housekeeping"}, {"name": "cooking"}][: 1 + i % 2],
                experience=i % 4,
                ratings={"average": 2 + i % 3, "count": i},
            )
            for i in range(8)
        ]
        engine = make_engine([sponsor], pool)

        matches = await engine.find_matches("sponsor-1", limit=3)

        assert len(matches) == 3
        scores = [m.adjusted_score for m in matches]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.asyncio
    async def test_invalid_limit(self, make_engine, sponsor, experienced_maid):
        engine = make_engine([sponsor], [experienced_maid])

        with pytest.raises(ValueError):
            await engine.find_matches("sponsor-1", limit=0)

    @pytest.mark.asyncio
    async def test_unknown_requester(self, make_engine, sponsor, experienced_maid):
        engine = make_engine([sponsor], [experienced_maid])

        with pytest.raises(NotFoundError):
            await engine.find_matches("missing")

    @pytest.mark.asyncio
    async def test_pool_failure_propagates(self, make_engine, sponsor):
        class BrokenPool:
            def get_candidate_pool(self):
                raise UpstreamFetchError("maid_profiles", ConnectionError("reset"))

        engine = make_engine([sponsor], BrokenPool())

        with pytest.raises(UpstreamFetchError) as exc_info:
            await engine.find_matches("sponsor-1")
        assert exc_info.value.source == "maid_profiles"
        assert engine.get_learning_data().skill_demand == {}

    @pytest.mark.asyncio
    async def test_pool_timeout(self, make_engine, sponsor, experienced_maid):
        class SlowPool(FakeMaids):
            def get_candidate_pool(self):
                time.sleep(0.3)
                return super().get_candidate_pool()

        engine = make_engine(
            [sponsor], SlowPool(experienced_maid), candidate_pool_timeout_seconds=0.05
        )

        with pytest.raises(UpstreamFetchError):
            await engine.find_matches("sponsor-1")


class TestLearningData:
    """Actualización y persistencia de learning data"""

    @pytest.mark.asyncio
    async def test_demand_grows_on_each_call(self, make_engine, sponsor, experienced_maid):
        store = InMemoryLearningStore()
        engine = make_engine([sponsor], [experienced_maid], store=store)

        await engine.find_matches("sponsor-1", {"skills": ["Cooking"]})
        first = engine.get_learning_data().skill_demand["cooking"].demand
        await engine.find_matches("sponsor-1", {"skills": ["Cooking"]})
        second = engine.get_learning_data().skill_demand["cooking"].demand

        assert second == first + 1
        assert store.load().skill_demand["cooking"].demand == second
        assert "cooking" in store.load().trending_skills

    @pytest.mark.asyncio
    async def test_requirement_skills_are_tracked(self, make_engine, sponsor, experienced_maid):
        engine = make_engine([sponsor], [experienced_maid])

        await engine.find_matches("sponsor-1")

        data = engine.get_learning_data()
        assert data.trending_skills == ["housekeeping", "cooking"]
        assert data.skill_demand["housekeeping"] == SkillDemand(demand=1, supply=0)

    def test_trending_skills_are_bounded(self, make_engine, sponsor, experienced_maid):
        engine = make_engine([sponsor], [experienced_maid], max_trending_skills=3)

        for skills in (["a", "b"], ["c", "d"], ["a"]):
            engine.update_learning_data(SearchCriteria(preferences={"skills": skills}))

        assert engine.get_learning_data().trending_skills == ["c", "d", "a"]
        assert engine.get_learning_data().skill_demand["a"].demand == 2

    @pytest.mark.asyncio
    async def test_save_failure_does_not_fail_matching(self, make_engine, sponsor, experienced_maid):
        class FailingStore(InMemoryLearningStore):
            def save(self, data):
                raise PersistenceWarning("disk full")

        engine = make_engine([sponsor], [experienced_maid], store=FailingStore())

        matches = await engine.find_matches("sponsor-1")

        assert len(matches) == 1
        assert engine.get_learning_data().skill_demand["cooking"].demand == 1

    def test_load_failure_starts_empty(self, settings, fixed_clock, sponsor):
        class UnreadableStore(InMemoryLearningStore):
            def load(self):
                raise PersistenceWarning("corrupt")

        engine = MatchingEngine(
            requesters=None,
            candidates=None,
            learning_store=UnreadableStore(),
            settings=settings,
            clock=fixed_clock,
        )

        assert engine.get_learning_data() == LearningData()

    def test_learning_data_is_a_copy(self, make_engine, sponsor, experienced_maid):
        engine = make_engine([sponsor], [experienced_maid])

        engine.get_learning_data().trending_skills.append("tampered")

        assert engine.get_learning_data().trending_skills == []

    @pytest.mark.asyncio
    async def test_learning_loaded_at_startup_affects_ranking(self, make_engine, sponsor):
        cook = maid("maid-cook", skills=[{"name": "cooking"}], experience=1)
        cleaner = maid("maid-clean", skills=[{"name": "housekeeping"}], experience=1)
        store = InMemoryLearningStore(LearningData(
            trending_skills=["cooking"],
            skill_demand={"cooking": SkillDemand(demand=5, supply=1)},
        ))
        engine = make_engine([sponsor], [cleaner, cook], store=store)

        matches = await engine.find_matches("sponsor-1")

        assert [m.candidate_id for m in matches] == ["maid-cook", "maid-clean"]
        assert matches[0].score == pytest.approx(matches[1].score)

    @pytest.mark.asyncio
    async def test_concurrent_calls_count_every_search(self, make_engine, sponsor, experienced_maid):
        store = InMemoryLearningStore()
        engine = make_engine([sponsor], [experienced_maid], store=store)
        calls = 8

        await asyncio.gather(*(engine.find_matches("sponsor-1") for _ in range(calls)))

        assert engine.get_learning_data().skill_demand["cooking"].demand == calls
        assert store.load() == engine.get_learning_data()

    @pytest.mark.asyncio
    async def test_save_runs_off_the_event_loop(self, make_engine, sponsor, experienced_maid):
        class RecordingStore(InMemoryLearningStore):
            saved_from = None

            def save(self, data):
                self.saved_from = threading.get_ident()
                super().save(data)

        store = RecordingStore()
        engine = make_engine([sponsor], [experienced_maid], store=store)

        await engine.find_matches("sponsor-1")

        assert store.saved_from is not None
        assert store.saved_from != threading.get_ident()


class TestNullColumns:
    """Filas con columnas NULL no rompen el matching"""

    @pytest.mark.asyncio
    async def test_null_fields_degrade_to_defaults(self, make_engine, sponsor, experienced_maid):
        sparse = maid(
            "maid-2",
            skills=None,
            experience=None,
            languages=None,
            preferred_locations=None,
            profile=None,
            ratings=None,
        )
        engine = make_engine([sponsor], [experienced_maid, sparse])

        matches = await engine.find_matches("sponsor-1")

        assert matches[0].candidate_id == "maid-1"
        assert sparse.ratings.count == 0
        assert engine.calculate_match_score(sponsor, sparse).breakdown["ratings"] == 0.5

    @pytest.mark.asyncio
    async def test_sponsor_with_null_preferences(self, make_engine, experienced_maid):
        requester = RequesterProfile.model_validate({
            "id": "sponsor-null",
            "location": None,
            "preferences": None,
            "requirements": {"skills": ["cooking"], "experience": None},
        })
        engine = make_engine([requester], [experienced_maid])

        matches = await engine.find_matches("sponsor-null")

        assert [m.candidate_id for m in matches] == ["maid-1"]
        assert matches[0].breakdown["language"] == 0.8


class TestSearchCriteriaMerge:
    """Merge de preferencias guardadas con las de la búsqueda"""

    def test_camel_case_keys_are_accepted(self, sponsor):
        criteria = SearchCriteria.merge(
            sponsor, {"ageRange": {"min": 25, "max": 35}, "maritalStatus": "single"}
        )

        assert criteria.preferences.age_range.max == 35
        assert criteria.preferences.marital_status == "single"

    def test_override_wins_over_stored(self, demanding_sponsor):
        criteria = SearchCriteria.merge(demanding_sponsor, {"languages": ["English"]})

        assert criteria.preferences.languages == ["English"]
        assert criteria.requirements.experience == 10

    def test_unknown_keys_are_logged(self, sponsor):
        with capture_logs() as logs:
            criteria = SearchCriteria.merge(sponsor, {"hairColor": "black", "skills": ["cooking"]})

        assert criteria.preferences.skills == ["cooking"]
        warnings = [entry for entry in logs if entry["log_level"] == "warning"]
        assert warnings[0]["keys"] == ["hairColor"]
