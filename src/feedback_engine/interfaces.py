"""Abstract interfaces for the engine's external collaborators.

These ABCs define the contract that integrators must fulfil.  The SDK ships
two concrete question sources (``feedback_engine.catalog.QuestionCatalog``
and ``feedback_db.SqlQuestionSource``) and one store
(``feedback_db.SqlFeedbackStore``); anything else plugs in here.

Typical integration flow::

    respondent = Respondent(status="authorized", email="ana@example.com",
                            may_proceed=True)
    edition = await my_catalog.current_edition()

    orchestrator = FeedbackOrchestrator(
        edition, respondent,
        question_source=QuestionCatalog(),
        feedback_store=SqlFeedbackStore(get_session_factory()),
        identity=MyIdentityProvider(),
    )
    await orchestrator.start()
    # ... update_answer / advance / go_back ...
    result = await orchestrator.submit()
"""

from abc import ABC, abstractmethod

from feedback_engine.models.payload import FeedbackPayload, SubmitResult
from feedback_engine.models.question import BaseQuestion


class QuestionSource(ABC):
    """Read access to the question catalog.

    Both methods must return an empty list when a category has no
    questions, and raise only for genuine transport/availability failures.
    """

    @abstractmethod
    async def get_questions_by_category_and_product(
        self, category: str, product_id: str | None = None
    ) -> list[BaseQuestion]:
        """Return active questions for ``category`` scoped to ``product_id``.

        Implementations may return only the product-specific questions or
        the union with the category's global questions; the repository
        client merges either form.  With ``product_id=None`` only global
        questions are returned.
        """
        ...

    @abstractmethod
    async def get_questions_by_category(self, category: str) -> list[BaseQuestion]:
        """Return the active global (``product_id is None``) questions of ``category``."""
        ...


class FeedbackStore(ABC):
    """Persistence of completed feedback."""

    @abstractmethod
    async def submit(self, payload: FeedbackPayload) -> SubmitResult:
        """Persist ``payload``; raise on transport failure."""
        ...

    @abstractmethod
    async def has_already_submitted(self, edition_id: str, respondent_id: str) -> bool:
        """True if ``respondent_id`` already submitted feedback for ``edition_id``.

        Raising means "cannot verify": the engine then blocks the session.
        """
        ...


class IdentityProvider(ABC):
    """The respondent's authenticated context."""

    @abstractmethod
    async def sign_out(self) -> None:
        """End the respondent's authenticated context (called on confirmed exit)."""
        ...
