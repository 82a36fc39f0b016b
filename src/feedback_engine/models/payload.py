"""Submission payload models.

Each answer carries its question text and type alongside the value so the
persisted result stays interpretable even if the question catalog changes
after submission.
"""

from typing import Any, List, Optional

from pydantic import BaseModel


class AnswerRecord(BaseModel):
    """One answered (or skipped) question, denormalized for storage."""

    question_id: str
    question_text: str
    question_type: str
    answer: Any = None


class ProductFeedback(BaseModel):
    """Answers for one product section."""

    product_id: str
    product_name: str
    answers: List[AnswerRecord] = []


class GeneralFeedback(BaseModel):
    """Answers for one of the fixed general sections."""

    answers: List[AnswerRecord] = []


class FeedbackPayload(BaseModel):
    """The full submission sent to the persistence collaborator."""

    edition_id: str
    respondent_email: Optional[str] = None
    product_feedbacks: List[ProductFeedback] = []
    experimentai_feedback: GeneralFeedback = GeneralFeedback()
    delivery_feedback: GeneralFeedback = GeneralFeedback()
    completion_badge: str

    def iter_records(self):
        """Yield every AnswerRecord in section order."""
        for product in self.product_feedbacks:
            yield from product.answers
        yield from self.experimentai_feedback.answers
        yield from self.delivery_feedback.answers


class SubmitResult(BaseModel):
    """Result returned by ``FeedbackStore.submit``."""

    success: bool
    session_reference: Optional[str] = None
