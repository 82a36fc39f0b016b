"""feedback_engine — Box feedback survey orchestration SDK.

Public API:
    FeedbackOrchestrator     — state machine for one respondent's session
    QuestionRepositoryClient — cached, retrying question fetcher
    QuestionCatalog          — YAML-backed question source
    SectionModel             — derives the ordered sections of an edition
    ValidationEngine         — required-field checks
    SubmissionBuilder        — assembles the submission payload
    RetryPolicy              — bounded exponential-backoff retry

Collaborator interfaces:
    QuestionSource    — question catalog access
    FeedbackStore     — persistence and duplicate-submission check
    IdentityProvider  — sign-out on confirmed exit

Views:
    SectionView    — render data for the active section
    SectionInfo    — one entry per section for navigation UIs
    Progress       — completed / total with the header copy
    AdvanceResult  — outcome of advance()
"""

from feedback_engine.catalog import QuestionCatalog
from feedback_engine.config import EngineSettings, configure_logging, load_settings
from feedback_engine.errors import (
    AlreadySubmittedError,
    EligibilityError,
    FeedbackError,
    IncompleteSessionError,
    NavigationError,
    QuestionFetchError,
    SessionClosedError,
    SubmissionError,
)
from feedback_engine.interfaces import FeedbackStore, IdentityProvider, QuestionSource
from feedback_engine.models import (
    AdvanceResult,
    Edition,
    FeedbackPayload,
    Product,
    Progress,
    Respondent,
    SectionInfo,
    SectionStatus,
    SectionView,
    SubmissionState,
    SubmitResult,
)
from feedback_engine.orchestrator import FeedbackOrchestrator
from feedback_engine.questions import QuestionRepositoryClient, merge_questions
from feedback_engine.retry import RetryPolicy
from feedback_engine.sections import SectionModel
from feedback_engine.submission import SubmissionBuilder, SubmissionGuard
from feedback_engine.validation import ValidationEngine

__all__ = [
    # Engine
    "FeedbackOrchestrator",
    "QuestionRepositoryClient",
    "QuestionCatalog",
    "SectionModel",
    "ValidationEngine",
    "SubmissionBuilder",
    "SubmissionGuard",
    "RetryPolicy",
    "merge_questions",
    # Config
    "EngineSettings",
    "load_settings",
    "configure_logging",
    # Interfaces
    "QuestionSource",
    "FeedbackStore",
    "IdentityProvider",
    # Models
    "AdvanceResult",
    "Edition",
    "FeedbackPayload",
    "Product",
    "Progress",
    "Respondent",
    "SectionInfo",
    "SectionStatus",
    "SectionView",
    "SubmissionState",
    "SubmitResult",
    # Errors
    "FeedbackError",
    "QuestionFetchError",
    "EligibilityError",
    "AlreadySubmittedError",
    "NavigationError",
    "IncompleteSessionError",
    "SubmissionError",
    "SessionClosedError",
]
