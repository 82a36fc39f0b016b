"""FeedbackOrchestrator — the state machine that runs one feedback session.

The orchestrator exclusively owns the session: section statuses, the active
cursor, the answer store and the submission guard.  Renderers get read-only
projections (``SectionView``, ``SectionInfo``, ``Progress``) and may only
write through ``update_answer`` / ``touch_field``.

Section lifecycle (per section):

    pending ──► in_progress ──► completed

Session track for the terminal action:

    idle ──► submitting ──► submitted
              │
              └──► idle   (persistence failure, retry allowed)

Flow::

    orch = FeedbackOrchestrator(edition, respondent,
                                question_source=..., feedback_store=...,
                                identity=...)
    view = await orch.start()                 # eligibility check, first section
    orch.update_answer(view.section_id, "q1", 5)
    result = await orch.advance()             # validate, complete, move on
    ...
    await orch.submit()                       # on the terminal section

Concurrency: everything runs on one event loop.  The only background work
is the prefetch of the next product section's questions, which writes to
the repository client's cache and never to session state.  Once the session
is closed (exit or successful submission) late fetch results are dropped.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

from feedback_engine.answers import AnswerStore
from feedback_engine.config import EngineSettings, load_settings
from feedback_engine.errors import (
    AlreadySubmittedError,
    EligibilityError,
    IncompleteSessionError,
    NavigationError,
    QuestionFetchError,
    SessionClosedError,
    SubmissionError,
)
from feedback_engine.interfaces import FeedbackStore, IdentityProvider, QuestionSource
from feedback_engine.models.edition import Edition, Respondent
from feedback_engine.models.payload import FeedbackPayload, SubmitResult
from feedback_engine.models.question import BaseQuestion
from feedback_engine.models.session import (
    AdvanceResult,
    Progress,
    SectionInfo,
    SectionStatus,
    SectionView,
    SubmissionState,
)
from feedback_engine.questions import QuestionRepositoryClient
from feedback_engine.retry import RetryPolicy
from feedback_engine.sections import Section, SectionModel
from feedback_engine.submission import SubmissionBuilder, SubmissionGuard
from feedback_engine.validation import ValidationEngine

logger = logging.getLogger(__name__)


class FeedbackOrchestrator:
    """Runs a single respondent's feedback session for one edition.

    Args:
        edition: the edition under review (immutable for the session)
        respondent: resolved identity of the person answering
        question_source: question catalog collaborator
        feedback_store: persistence collaborator
        identity: identity collaborator, signed out on confirmed exit
        retry_policy: retry policy for question fetches; defaults to the
            policy described by ``settings``
        settings: engine settings; defaults to ``load_settings()``
    """

    def __init__(
        self,
        edition: Edition,
        respondent: Respondent,
        *,
        question_source: QuestionSource,
        feedback_store: FeedbackStore,
        identity: IdentityProvider,
        retry_policy: RetryPolicy | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        self._settings = settings or load_settings()
        self._edition = edition
        self._respondent = respondent
        self._store = feedback_store
        self._identity = identity
        self._questions = QuestionRepositoryClient(
            question_source,
            retry_policy or RetryPolicy.from_settings(self._settings),
        )
        self._validator = ValidationEngine()
        self._builder = SubmissionBuilder(self._settings.completion_badge)

        # --- Session state ---
        self.session_id = uuid.uuid4().hex
        self._sections = SectionModel.from_edition(edition)
        self._answers = AnswerStore()
        self._guard = SubmissionGuard()
        self._active_id: str | None = None
        self._started = False
        self._closed = False
        self._navigating = False
        self._exit_pending = False
        self._prefetch_tasks: set[asyncio.Task] = set()
        self._submitted_payload: FeedbackPayload | None = None

    # ==================================================================
    # Session lifecycle
    # ==================================================================

    async def start(self) -> SectionView:
        """Check eligibility, activate the first section and load its questions.

        Raises:
            EligibilityError: the respondent is not verified, or the
                duplicate-submission check could not be performed
            AlreadySubmittedError: feedback for this edition already exists
        """
        self._ensure_open()
        if self._started:
            raise ValueError(f"Session {self.session_id} already started")

        await self._check_eligibility()
        self._started = True
        logger.info(
            "Session %s started: edition=%s sections=%d",
            self.session_id, self._edition.edition_id, len(self._sections),
        )
        await self._activate(self._sections.first)
        self._ensure_open()
        return self.current_view()

    async def _check_eligibility(self) -> None:
        """Fail closed: anything short of a verified, first-time respondent blocks."""
        respondent = self._respondent
        if not respondent.may_proceed or not respondent.respondent_id:
            raise EligibilityError(
                f"Respondent cannot start feedback (status '{respondent.status}'): "
                f"a verified, authorized identity is required"
            )

        try:
            already = await self._store.has_already_submitted(
                self._edition.edition_id, respondent.respondent_id,
            )
        except Exception as exc:
            logger.error(
                "Duplicate-submission check failed for edition %s: %s",
                self._edition.edition_id, exc,
            )
            raise EligibilityError(
                "Could not verify previous submissions; please try again later"
            ) from exc

        if already:
            raise AlreadySubmittedError(
                f"Feedback for edition '{self._edition.edition_name}' "
                f"was already submitted"
            )

    # ==================================================================
    # Read-only projections
    # ==================================================================

    @property
    def edition(self) -> Edition:
        return self._edition

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def exit_requested(self) -> bool:
        return self._exit_pending

    @property
    def submission_state(self) -> SubmissionState:
        return self._guard.state

    @property
    def sections(self) -> list[SectionInfo]:
        return [s.to_info() for s in self._sections]

    @property
    def active_section(self) -> SectionInfo:
        return self._active.to_info()

    @property
    def progress(self) -> Progress:
        return Progress.from_counts(
            self._sections.count(SectionStatus.COMPLETED), len(self._sections),
        )

    @property
    def can_submit(self) -> bool:
        return self._sections.all_completed()

    @property
    def incomplete_sections(self) -> list[SectionInfo]:
        return [
            s.to_info() for s in self._sections
            if s.status != SectionStatus.COMPLETED
        ]

    def current_view(self) -> SectionView:
        """Render data for the active section."""
        self._ensure_started()
        return self._view(self._active)

    # ==================================================================
    # Answers and validation
    # ==================================================================

    def update_answer(self, section_id: str, question_id: str, value: Any) -> None:
        """Record (overwrite) the answer for one question.

        Raises:
            ValueError: unknown section/question, questions not loaded, or
                a value of the wrong shape for the question type
        """
        self._ensure_mutable()
        question = self._find_question(self._section(section_id), question_id)
        question.check_answer(value)
        self._answers.update(section_id, question_id, value)

    def touch_field(self, section_id: str, question_id: str) -> None:
        """Mark a field as interacted with (blur), enabling its error display."""
        self._ensure_mutable()
        self._section(section_id)
        self._answers.touch(section_id, question_id)

    def validate(self, section_id: str | None = None) -> dict[str, str]:
        """Full error map for a section (active section by default)."""
        section = self._section_or_active(section_id)
        return self._validator.validate(
            section.questions or [], self._answers.section_answers(section.id),
        )

    def is_section_complete(self, section_id: str | None = None) -> bool:
        section = self._section_or_active(section_id)
        return self._validator.is_section_complete(
            section.questions or [], self._answers.section_answers(section.id),
        )

    def field_error(self, section_id: str, question_id: str) -> str | None:
        """The field's current error, whether or not it may be displayed."""
        section = self._section(section_id)
        return self._validator.has_error(
            section.questions or [],
            self._answers.section_answers(section_id),
            question_id,
        )

    def visible_error(self, section_id: str, question_id: str) -> str | None:
        """The field's error only if the respondent has touched the field."""
        section = self._section(section_id)
        return self._validator.should_display_error(
            section.questions or [],
            self._answers.section_answers(section_id),
            question_id,
            self._answers.is_touched(section_id, question_id),
        )

    def is_field_touched(self, section_id: str, question_id: str) -> bool:
        self._section(section_id)
        return self._answers.is_touched(section_id, question_id)

    # ==================================================================
    # Navigation
    # ==================================================================

    async def advance(self, section_id: str | None = None) -> AdvanceResult:
        """Complete the active section and move to the next one.

        If the section fails validation, every required empty field is
        touched and the errors are returned; nothing else changes.  On the
        terminal section the cursor stays and ``ready_to_submit`` reports
        whether ``submit()`` may be called.

        A call made while a submission or another navigation is in flight
        is a no-op.
        """
        self._ensure_started()
        self._ensure_open()
        section = self._active
        if section_id is not None and section_id != section.id:
            raise NavigationError(
                f"Only the active section can be advanced: "
                f"active='{section.id}', requested='{section_id}'"
            )

        if self._guard.is_held or self._navigating:
            logger.info("advance(%s) ignored: session busy", section.id)
            return AdvanceResult(
                advanced=False, ready_to_submit=self.can_submit, view=self._view(section),
            )

        if not section.is_loaded:
            # Still loading or the fetch failed; the view carries load_error
            return AdvanceResult(advanced=False, view=self._view(section))

        questions = section.questions or []
        errors = self._validator.validate(
            questions, self._answers.section_answers(section.id),
        )
        if errors:
            # Attempting to proceed reveals every blocking error at once
            self._answers.touch_all(section.id, errors.keys())
            logger.info(
                "Section %s not complete: %d required field(s) missing",
                section.id, len(errors),
            )
            return AdvanceResult(advanced=False, errors=errors, view=self._view(section))

        self._sections._set_status(section.id, SectionStatus.COMPLETED)
        logger.info("Section %s completed (%s)", section.id, self._progress_label())

        next_section = self._sections.next_after(section.id)
        if next_section is None:
            return AdvanceResult(
                advanced=True, ready_to_submit=self.can_submit, view=self._view(section),
            )

        self._navigating = True
        try:
            await self._activate(next_section)
        finally:
            self._navigating = False
        self._ensure_open()

        return AdvanceResult(
            advanced=True, ready_to_submit=self.can_submit, view=self._view(next_section),
        )

    async def go_back(self) -> SectionView:
        """Re-activate the previous section.

        Answers and status of the section being left are kept; the previous
        section's answers come back in the view and its questions are not
        refetched.

        Raises:
            NavigationError: already at the first section
        """
        self._ensure_started()
        self._ensure_open()
        section = self._active
        if self._guard.is_held or self._navigating:
            logger.info("go_back() from %s ignored: session busy", section.id)
            return self._view(section)

        previous = self._sections.previous_before(section.id)
        if previous is None:
            raise NavigationError("Cannot go back: already at the first section")

        self._navigating = True
        try:
            await self._activate(previous)
        finally:
            self._navigating = False
        self._ensure_open()
        return self._view(previous)

    async def retry_section(self) -> SectionView:
        """Fetch the active section's questions again after a failure."""
        self._ensure_started()
        self._ensure_open()
        section = self._active
        if not section.is_loaded:
            await self._load_section(section)
            self._ensure_open()
        return self._view(section)

    async def wait_for_prefetch(self) -> None:
        """Wait until background prefetches have settled."""
        if self._prefetch_tasks:
            await asyncio.gather(*list(self._prefetch_tasks), return_exceptions=True)

    # ==================================================================
    # Exit
    # ==================================================================

    def request_exit(self) -> bool:
        """Open the exit confirmation.  False while submitting or closed."""
        if self._closed or self._guard.is_held:
            return False
        self._exit_pending = True
        return True

    def handle_escape(self) -> bool:
        """Cancellation input (e.g. the Escape key): same as request_exit()."""
        return self.request_exit()

    def cancel_exit(self) -> None:
        self._exit_pending = False

    async def confirm_exit(self) -> bool:
        """Discard the session and sign the respondent out.

        Returns False (and does nothing) if a submission is in flight.

        Raises:
            NavigationError: exit was not requested first
        """
        if not self._exit_pending:
            raise NavigationError("Exit must be requested before it is confirmed")
        if self._guard.is_held:
            self._exit_pending = False
            return False

        logger.info("Session %s exited by respondent", self.session_id)
        self._close()
        await self._identity.sign_out()
        return True

    # ==================================================================
    # Submission
    # ==================================================================

    def build_payload(self) -> FeedbackPayload:
        """Assemble the submission payload.  Pure; safe to call repeatedly."""
        if self._submitted_payload is not None:
            return self._submitted_payload
        return self._builder.build(
            self._edition, self._sections, self._answers,
            respondent_email=self._respondent.email,
        )

    async def submit(self) -> SubmitResult | None:
        """Send the payload to the feedback store at most once.

        Returns None (no-op) if a submission is already in flight or done.

        Raises:
            IncompleteSessionError: some sections are not completed
            SubmissionError: the store failed or rejected the payload; the
                guard is released and the session kept so it can be retried
        """
        self._ensure_started()
        if self._guard.is_held:
            logger.info("submit() ignored: submission is %s", self._guard.state.value)
            return None
        self._ensure_open()

        if not self.can_submit:
            pending = [s.id for s in self.incomplete_sections]
            raise IncompleteSessionError(
                f"Cannot submit: sections not completed: {pending}"
            )

        # No await between the checks above and acquiring the guard
        self._guard.try_acquire()
        self._exit_pending = False
        payload = self.build_payload()

        try:
            result = await self._store.submit(payload)
        except asyncio.CancelledError:
            self._guard.release()
            raise
        except Exception as exc:
            self._guard.release()
            logger.error("Submission of session %s failed: %s", self.session_id, exc)
            raise SubmissionError(
                "Feedback could not be saved; please try again"
            ) from exc

        if not result.success:
            self._guard.release()
            logger.error("Submission of session %s was rejected", self.session_id)
            raise SubmissionError("Feedback was not accepted; please try again")

        self._guard.complete()
        self._submitted_payload = payload
        logger.info(
            "Session %s submitted: reference=%s",
            self.session_id, result.session_reference,
        )
        self._close()
        return result

    # ==================================================================
    # Internals
    # ==================================================================

    @property
    def _active(self) -> Section:
        if self._active_id is None:
            raise ValueError("Session has not been started")
        return self._sections.get(self._active_id)

    def _section(self, section_id: str) -> Section:
        try:
            return self._sections.get(section_id)
        except KeyError:
            raise ValueError(f"Section not found: {section_id}") from None

    def _section_or_active(self, section_id: str | None) -> Section:
        if section_id is None:
            self._ensure_started()
            return self._active
        return self._section(section_id)

    @staticmethod
    def _find_question(section: Section, question_id: str) -> BaseQuestion:
        if section.questions is None:
            raise ValueError(f"Questions for section '{section.id}' are not loaded")
        for question in section.questions:
            if question.id == question_id:
                return question
        raise ValueError(
            f"Question not found in section '{section.id}': {question_id}"
        )

    def _ensure_started(self) -> None:
        if not self._started:
            raise ValueError("Session has not been started; call start() first")

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"Session {self.session_id} is closed")

    def _ensure_mutable(self) -> None:
        self._ensure_open()
        if self._guard.is_held:
            raise SessionClosedError(
                f"Session {self.session_id} is being submitted"
            )

    def _progress_label(self) -> str:
        p = self.progress
        return f"{p.completed}/{p.total}"

    def _view(self, section: Section) -> SectionView:
        questions = section.questions or []
        answers = self._answers.section_answers(section.id)
        index = self._sections.index_of(section.id)
        return SectionView(
            section_id=section.id,
            kind=section.kind,
            label=section.label,
            index=index,
            total=len(self._sections),
            status=section.status,
            product=section.product,
            edition_name=self._edition.edition_name,
            questions=questions,
            answers=answers,
            errors=self._validator.displayable_errors(
                questions, answers, self._answers.touched(section.id),
            ),
            loading=section.loading,
            load_error=section.load_error,
            is_first=index == 0,
            is_last=self._sections.is_terminal(section.id),
        )

    async def _activate(self, section: Section) -> None:
        """Move the cursor to ``section``, prefetch ahead, load its questions."""
        self._active_id = section.id
        if section.status == SectionStatus.PENDING:
            self._sections._set_status(section.id, SectionStatus.IN_PROGRESS)
        logger.info("Section %s active", section.id)
        self._schedule_prefetch(section)
        await self._load_section(section)

    async def _load_section(self, section: Section) -> None:
        if section.is_loaded:
            return
        section.loading = True
        section.load_error = None
        try:
            questions = await self._questions.fetch_questions(
                section.category, section.product_id,
            )
        except QuestionFetchError as exc:
            if self._closed:
                return
            section.loading = False
            section.load_error = str(exc)
            logger.warning("Section %s failed to load: %s", section.id, exc)
            return

        # Stale-response guard: the session may have ended while we waited
        if self._closed:
            return
        section.questions = questions
        section.loading = False
        logger.debug("Section %s loaded %d questions", section.id, len(questions))

    def _schedule_prefetch(self, section: Section) -> None:
        """Warm the cache for the next product section in the background."""
        if section.kind != "product" or self._sections.is_last_product(section.id):
            return
        target = self._sections.next_after(section.id)
        if target is None or target.is_loaded:
            return
        if self._questions.is_cached(target.category, target.product_id):
            return
        task = asyncio.get_running_loop().create_task(self._prefetch(target))
        self._prefetch_tasks.add(task)
        task.add_done_callback(self._prefetch_tasks.discard)

    async def _prefetch(self, section: Section) -> None:
        try:
            await self._questions.fetch_questions(section.category, section.product_id)
        except QuestionFetchError as exc:
            # Retried lazily when the section is activated
            logger.debug("Prefetch of %s failed: %s", section.id, exc)

    def _close(self) -> None:
        """End the session: drop state, cancel background work."""
        self._closed = True
        self._exit_pending = False
        for task in list(self._prefetch_tasks):
            task.cancel()
        self._prefetch_tasks.clear()
        self._questions.clear()
        self._answers.clear()
