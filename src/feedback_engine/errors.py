"""Exceptions raised by the feedback engine.

Validation problems are *not* exceptions: they are reported as a
question-id → message dict by the validation engine.  The classes below
cover the remaining failure modes:

  - QuestionFetchError   — a section's questions could not be loaded
  - EligibilityError     — the respondent may not start a session (fail closed)
  - AlreadySubmittedError — the respondent already answered this edition
  - NavigationError      — an invalid navigation request
  - IncompleteSessionError — submit() called before every section is complete
  - SubmissionError      — the persistence call failed or was rejected
  - SessionClosedError   — the session was exited or already submitted
"""


class FeedbackError(Exception):
    """Base class for all engine errors."""


class QuestionFetchError(FeedbackError):
    """Questions for a section could not be fetched.

    Scoped to a single section: the orchestrator records it on the section
    and offers a retry without touching answers in other sections.
    """

    def __init__(self, category: str, product_id: str | None, cause: BaseException):
        self.category = category
        self.product_id = product_id
        self.cause = cause
        scope = f"product '{product_id}'" if product_id else "global"
        super().__init__(
            f"Failed to fetch {scope} questions for category '{category}': {cause}"
        )


class EligibilityError(FeedbackError):
    """The respondent is not allowed to start a feedback session."""


class AlreadySubmittedError(EligibilityError):
    """The respondent already submitted feedback for this edition."""


class NavigationError(FeedbackError, ValueError):
    """Invalid section navigation (e.g. going back from the first section)."""


class IncompleteSessionError(FeedbackError, ValueError):
    """Submission requested while some sections are not completed."""


class SubmissionError(FeedbackError):
    """The persistence collaborator failed or rejected the payload."""


class SessionClosedError(FeedbackError):
    """The session has been exited or submitted and no longer accepts changes."""
