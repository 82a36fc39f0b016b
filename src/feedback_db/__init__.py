"""feedback_db — PostgreSQL persistence for the feedback engine.

ORM models for the question catalog and submissions, the async engine
factory, and adapters implementing the engine's ``QuestionSource`` and
``FeedbackStore`` interfaces.
"""

from feedback_db.engine import dispose_engine, get_engine, get_session_factory
from feedback_db.models import (
    FeedbackSubmission,
    QuestionCategory,
    QuestionType,
    SurveyQuestion,
    SurveyQuestionOption,
)
from feedback_db.repository import (
    QuestionRepository,
    SqlFeedbackStore,
    SqlQuestionSource,
    SubmissionRepository,
    row_to_question,
)

__all__ = [
    "FeedbackSubmission",
    "QuestionCategory",
    "QuestionType",
    "SurveyQuestion",
    "SurveyQuestionOption",
    "get_engine",
    "get_session_factory",
    "dispose_engine",
    "QuestionRepository",
    "SubmissionRepository",
    "SqlQuestionSource",
    "SqlFeedbackStore",
    "row_to_question",
]
