"""Submission payload building and the at-most-once submission guard.

``SubmissionBuilder.build`` is pure: it can be called any number of times
(for previews or debugging) without side effects.  Only *sending* the
payload is guarded, by ``SubmissionGuard``, which the orchestrator holds
for the whole persistence call.
"""

from __future__ import annotations

import logging

from feedback_engine.answers import AnswerStore
from feedback_engine.constants import (
    DEFAULT_COMPLETION_BADGE,
    DELIVERY_SECTION_ID,
    EXPERIMENTAI_SECTION_ID,
)
from feedback_engine.models.edition import Edition
from feedback_engine.models.payload import (
    AnswerRecord,
    FeedbackPayload,
    GeneralFeedback,
    ProductFeedback,
)
from feedback_engine.models.session import SubmissionState
from feedback_engine.sections import Section, SectionModel

logger = logging.getLogger(__name__)


class SubmissionBuilder:
    """Assembles a :class:`FeedbackPayload` from session state.

    Args:
        completion_badge: badge text attached to every payload
    """

    def __init__(self, completion_badge: str = DEFAULT_COMPLETION_BADGE) -> None:
        self._badge = completion_badge

    def build(
        self,
        edition: Edition,
        sections: SectionModel,
        answers: AnswerStore,
        respondent_email: str | None = None,
    ) -> FeedbackPayload:
        product_feedbacks = [
            ProductFeedback(
                product_id=section.product.id,
                product_name=section.product.name,
                answers=self._records(section, answers),
            )
            for section in sections.product_sections()
        ]
        return FeedbackPayload(
            edition_id=edition.edition_id,
            respondent_email=respondent_email,
            product_feedbacks=product_feedbacks,
            experimentai_feedback=GeneralFeedback(
                answers=self._records(sections.get(EXPERIMENTAI_SECTION_ID), answers),
            ),
            delivery_feedback=GeneralFeedback(
                answers=self._records(sections.get(DELIVERY_SECTION_ID), answers),
            ),
            completion_badge=self._badge,
        )

    @staticmethod
    def _records(section: Section, answers: AnswerStore) -> list[AnswerRecord]:
        # One record per loaded question, in display order; unanswered
        # optional questions are kept with answer=None.
        return [
            AnswerRecord(
                question_id=q.id,
                question_text=q.question_text,
                question_type=q.question_type,
                answer=answers.get(section.id, q.id),
            )
            for q in section.questions or []
        ]


class SubmissionGuard:
    """Single flag enforcing at most one in-flight / successful submission.

    ``try_acquire`` is a synchronous check-and-set: on a single event loop
    nothing can interleave between the check and the set.
    """

    def __init__(self) -> None:
        self._state = SubmissionState.IDLE

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def is_held(self) -> bool:
        return self._state != SubmissionState.IDLE

    def try_acquire(self) -> bool:
        """Move idle → submitting.  False (no-op) in any other state."""
        if self._state != SubmissionState.IDLE:
            logger.info("Submission ignored: guard is %s", self._state.value)
            return False
        self._state = SubmissionState.SUBMITTING
        return True

    def release(self) -> None:
        """Submission failed: back to idle so the respondent may retry."""
        if self._state == SubmissionState.SUBMITTING:
            self._state = SubmissionState.IDLE

    def complete(self) -> None:
        """Submission succeeded.  Terminal: never reset afterwards."""
        if self._state != SubmissionState.SUBMITTING:
            raise ValueError(
                f"Cannot complete submission from state '{self._state.value}'"
            )
        self._state = SubmissionState.SUBMITTED
