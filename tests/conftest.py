import pytest

from feedback_engine.config import EngineSettings
from feedback_engine.orchestrator import FeedbackOrchestrator
from feedback_engine.retry import RetryPolicy

from helpers.mocks import (
    MockFeedbackStore,
    MockIdentity,
    MockQuestionSource,
    authorized,
    boolean,
    choice,
    make_edition,
    rating,
    text,
)


def default_questions():
    """Global questions for every category plus one product-specific extra."""
    return [
        rating("p_exp", "product", order=1),
        choice("p_buy", "product", order=2),
        text("p_comment", "product", order=3),
        rating("p1_extra", "product", product_id="p1", order=4),
        rating("e_variety", "experimentai", order=1),
        boolean("e_recommend", "experimentai", order=2),
        rating("d_time", "delivery", order=1),
        text("d_notes", "delivery", order=2),
    ]


@pytest.fixture
def settings():
    """Engine settings with no retry delay so failing fetches stay fast."""
    return EngineSettings(fetch_retry_delay=0.0)


@pytest.fixture
def fast_retry():
    return RetryPolicy(max_attempts=3, base_delay=0.0)


@pytest.fixture
def source():
    return MockQuestionSource(default_questions())


@pytest.fixture
def store():
    return MockFeedbackStore()


@pytest.fixture
def identity():
    return MockIdentity()


@pytest.fixture
def edition():
    return make_edition(2)


@pytest.fixture
def make_orchestrator(source, store, identity, edition, settings):
    """Factory so tests can override the edition, respondent or source."""

    def _make(*, edition=edition, respondent=None, source=source):
        return FeedbackOrchestrator(
            edition,
            respondent or authorized(),
            question_source=source,
            feedback_store=store,
            identity=identity,
            settings=settings,
        )

    return _make


@pytest.fixture
def orchestrator(make_orchestrator):
    return make_orchestrator()
