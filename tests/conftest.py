from datetime import datetime

import pytest

from maidmatch.config import Settings
from maidmatch.exceptions import NotFoundError
from maidmatch.learning import InMemoryLearningStore
from maidmatch.matching import MatchingEngine
from maidmatch.models import CandidateProfile, RequesterProfile


class FakeSponsors:
    """Fuente de sponsors en memoria."""

    def __init__(self, *profiles: RequesterProfile):
        self.profiles = {p.id: p for p in profiles}

    def get_requester_profile(self, requester_id):
        if requester_id not in self.profiles:
            raise NotFoundError("Sponsor", requester_id)
        return self.profiles[requester_id]


class FakeMaids:
    """Pool de maids en memoria."""

    def __init__(self, *candidates: CandidateProfile):
        self.candidates = list(candidates)
        self.calls = 0

    def get_candidate_pool(self):
        self.calls += 1
        return list(self.candidates)


class FakeHistory:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)

    def get_matching_history(self):
        return list(self.outcomes)


@pytest.fixture
def settings(tmp_path):
    # Sin tabla estacional para que los scores sean deterministas
    return Settings(
        seasonal_factors={},
        learning_data_path=tmp_path / "learning.json",
        candidate_pool_timeout_seconds=5,
    )


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2025, 3, 15, 10, 0)


@pytest.fixture
def sponsor():
    """Sponsor del escenario base: requiere housekeeping y cooking, 1 año."""
    return RequesterProfile.model_validate({
        "id": "sponsor-1",
        "requirements": {
            "skills": ["housekeeping", "cooking"],
            "experience": 1,
        },
    })


@pytest.fixture
def experienced_maid():
    return CandidateProfile.model_validate({
        "id": "maid-1",
        "skills": [
            {"name": "housekeeping", "level": "expert"},
            {"name": "cooking", "level": "intermediate"},
        ],
        "experience": 3,
        "ratings": {"average": 4.5, "count": 12},
    })


@pytest.fixture
def make_engine(settings, fixed_clock):
    """Factory de MatchingEngine con fuentes en memoria."""

    def _make(sponsors, maids, history=None, store=None, **overrides):
        return MatchingEngine(
            requesters=FakeSponsors(*sponsors),
            candidates=maids if hasattr(maids, "get_candidate_pool") else FakeMaids(*maids),
            history=history,
            learning_store=store if store is not None else InMemoryLearningStore(),
            settings=settings.model_copy(update=overrides) if overrides else settings,
            clock=fixed_clock,
        )

    return _make
