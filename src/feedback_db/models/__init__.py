"""ORM models for feedback_db."""

from feedback_db.models.base import Base
from feedback_db.models.enums import QuestionType
from feedback_db.models.question import (
    QuestionCategory,
    SurveyQuestion,
    SurveyQuestionOption,
)
from feedback_db.models.submission import FeedbackSubmission

__all__ = [
    "Base",
    "QuestionType",
    "QuestionCategory",
    "SurveyQuestion",
    "SurveyQuestionOption",
    "FeedbackSubmission",
]
