"""Async repositories and engine adapters for the feedback tables.

``QuestionRepository`` and ``SubmissionRepository`` take an ``AsyncSession``
so the caller controls transaction boundaries.  ``SqlQuestionSource`` and
``SqlFeedbackStore`` wrap them behind the engine's collaborator interfaces,
opening one short-lived session per call.

Usage::

    factory = get_session_factory()
    orchestrator = FeedbackOrchestrator(
        edition, respondent,
        question_source=SqlQuestionSource(factory),
        feedback_store=SqlFeedbackStore(factory),
        identity=identity,
    )
"""

import logging
import uuid

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import contains_eager, selectinload

from feedback_db.models.question import QuestionCategory, SurveyQuestion
from feedback_db.models.submission import FeedbackSubmission
from feedback_engine.interfaces import FeedbackStore, QuestionSource
from feedback_engine.models.payload import FeedbackPayload, SubmitResult
from feedback_engine.models.question import BaseQuestion, question_from_dict

logger = logging.getLogger(__name__)


def row_to_question(row: SurveyQuestion) -> BaseQuestion:
    """Convert a question row (with category and options loaded) to a model.

    Inactive options are dropped; the rest keep their ``order_index``.
    """
    options = [
        {
            "value": opt.option_value,
            "label": opt.option_label,
            "icon": opt.option_icon,
            "order_index": opt.order_index,
        }
        for opt in sorted(row.options, key=lambda o: o.order_index)
        if opt.is_active
    ]
    return question_from_dict({
        "id": str(row.id),
        "category": row.category.name,
        "product_id": row.product_id,
        "question_text": row.question_text,
        "question_type": row.question_type,
        "is_required": row.is_required,
        "order_index": row.order_index,
        "config": row.config or {},
        "options": options,
    })


class QuestionRepository:
    """Read operations on ``questions`` and their options."""

    async def list_questions(
        self,
        db: AsyncSession,
        category: str,
        product_id: str | None = None,
        *,
        include_global: bool = True,
    ) -> list[SurveyQuestion]:
        """Active questions of ``category``, ordered by ``order_index``.

        With ``product_id=None`` only global questions are returned.
        Otherwise the product's questions, plus the globals when
        ``include_global`` is set.
        """
        stmt = (
            select(SurveyQuestion)
            .join(SurveyQuestion.category)
            .where(
                QuestionCategory.name == category,
                SurveyQuestion.is_active.is_(True),
            )
            .options(
                contains_eager(SurveyQuestion.category),
                selectinload(SurveyQuestion.options),
            )
            .order_by(SurveyQuestion.order_index)
        )
        if product_id is None:
            stmt = stmt.where(SurveyQuestion.product_id.is_(None))
        elif include_global:
            stmt = stmt.where(
                (SurveyQuestion.product_id == product_id)
                | SurveyQuestion.product_id.is_(None)
            )
        else:
            stmt = stmt.where(SurveyQuestion.product_id == product_id)

        result = await db.execute(stmt)
        return list(result.scalars().all())


class SubmissionRepository:
    """Read/write operations on ``feedback_submissions``."""

    async def create_submission(
        self, db: AsyncSession, payload: FeedbackPayload
    ) -> FeedbackSubmission:
        """Insert a submission row.  The caller must commit."""
        if not payload.respondent_email:
            raise ValueError("Submission payload has no respondent email")
        row = FeedbackSubmission(
            id=uuid.uuid4(),
            edition_id=payload.edition_id,
            respondent_id=payload.respondent_email,
            completion_badge=payload.completion_badge,
            payload=payload.model_dump(mode="json"),
        )
        db.add(row)
        await db.flush()
        return row

    async def exists(
        self, db: AsyncSession, edition_id: str, respondent_id: str
    ) -> bool:
        stmt = (
            select(FeedbackSubmission.id)
            .where(
                FeedbackSubmission.edition_id == edition_id,
                FeedbackSubmission.respondent_id == respondent_id,
            )
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none() is not None


# ---------------------------------------------------------------------------
# Engine adapters
# ---------------------------------------------------------------------------

class SqlQuestionSource(QuestionSource):
    """``QuestionSource`` backed by the ``questions`` table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        repo: QuestionRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._repo = repo or QuestionRepository()

    async def get_questions_by_category_and_product(
        self, category: str, product_id: str | None = None
    ) -> list[BaseQuestion]:
        async with self._session_factory() as db:
            rows = await self._repo.list_questions(db, category, product_id)
        return self._to_questions(rows)

    async def get_questions_by_category(self, category: str) -> list[BaseQuestion]:
        async with self._session_factory() as db:
            rows = await self._repo.list_questions(db, category)
        return self._to_questions(rows)

    @staticmethod
    def _to_questions(rows: list[SurveyQuestion]) -> list[BaseQuestion]:
        """Map rows to models; rows that fail validation are logged and skipped."""
        questions: list[BaseQuestion] = []
        for row in rows:
            try:
                questions.append(row_to_question(row))
            except ValidationError as exc:
                logger.warning(
                    "Skipping invalid question row %s (%s): %s",
                    row.id, row.question_type, exc.errors()[0]["msg"],
                )
        return questions


class SqlFeedbackStore(FeedbackStore):
    """``FeedbackStore`` backed by the ``feedback_submissions`` table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        repo: SubmissionRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._repo = repo or SubmissionRepository()

    async def submit(self, payload: FeedbackPayload) -> SubmitResult:
        """Persist ``payload``.

        A unique-constraint violation (the respondent already submitted this
        edition) is reported as ``success=False``; other DB errors propagate.
        """
        async with self._session_factory() as db:
            try:
                row = await self._repo.create_submission(db, payload)
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                logger.warning(
                    "Duplicate submission rejected: edition=%s respondent=%s (%s)",
                    payload.edition_id, payload.respondent_email, exc.orig,
                )
                return SubmitResult(success=False)
        logger.info("Stored submission %s for edition %s", row.id, payload.edition_id)
        return SubmitResult(success=True, session_reference=str(row.id))

    async def has_already_submitted(self, edition_id: str, respondent_id: str) -> bool:
        async with self._session_factory() as db:
            return await self._repo.exists(db, edition_id, respondent_id)
