"""Database-level enumerations for the feedback tables."""

import enum


class QuestionType(str, enum.Enum):
    """Values allowed in ``questions.question_type``.

    Mirrors the discriminator of ``feedback_engine.models.Question``.
    """

    RATING = "rating"
    EMOJI_RATING = "emoji_rating"
    MULTIPLE_CHOICE = "multiple_choice"
    TEXT = "text"
    BOOLEAN = "boolean"
