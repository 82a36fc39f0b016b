"""Public model re-exports for feedback_engine.

Consumers should import from ``feedback_engine.models`` rather than
reaching into sub-modules directly.
"""

# --- Questions ---
from feedback_engine.models.question import (
    BaseQuestion,
    BooleanConfig,
    BooleanQuestion,
    ChoiceConfig,
    ChoiceQuestion,
    EmojiChoice,
    EmojiRatingConfig,
    EmojiRatingQuestion,
    Question,
    QuestionOption,
    RatingConfig,
    RatingQuestion,
    TextConfig,
    TextQuestion,
    question_from_dict,
    question_mapper,
)

# --- Inbound collaborator data ---
from feedback_engine.models.edition import Edition, Product, Respondent

# --- Session / views ---
from feedback_engine.models.session import (
    AdvanceResult,
    Progress,
    SectionInfo,
    SectionStatus,
    SectionView,
    SubmissionState,
)

# --- Submission payload ---
from feedback_engine.models.payload import (
    AnswerRecord,
    FeedbackPayload,
    GeneralFeedback,
    ProductFeedback,
    SubmitResult,
)

__all__ = [
    # Questions
    "BaseQuestion",
    "BooleanConfig",
    "BooleanQuestion",
    "ChoiceConfig",
    "ChoiceQuestion",
    "EmojiChoice",
    "EmojiRatingConfig",
    "EmojiRatingQuestion",
    "Question",
    "QuestionOption",
    "RatingConfig",
    "RatingQuestion",
    "TextConfig",
    "TextQuestion",
    "question_from_dict",
    "question_mapper",
    # Inbound
    "Edition",
    "Product",
    "Respondent",
    # Session
    "AdvanceResult",
    "Progress",
    "SectionInfo",
    "SectionStatus",
    "SectionView",
    "SubmissionState",
    # Payload
    "AnswerRecord",
    "FeedbackPayload",
    "GeneralFeedback",
    "ProductFeedback",
    "SubmitResult",
]
