"""ValidationEngine — required-field checks for one section.

A question fails validation iff it is required and its answer is absent,
None, a blank string (after stripping) or an empty list.  Optional questions
never fail, whatever their value.

Two distinct queries are exposed per field:

  - ``has_error``:            the field currently fails validation
  - ``should_display_error``: it fails *and* the respondent has touched it

so errors never appear before the first interaction with a field.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from feedback_engine.constants import REQUIRED_FIELD_MESSAGE
from feedback_engine.models.question import BaseQuestion

_MISSING = object()


def is_empty_answer(value: Any) -> bool:
    """True for answers that do not satisfy a required question."""
    if value is None or value is _MISSING:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


class ValidationEngine:
    """Stateless validator; the orchestrator supplies questions and answers."""

    def __init__(self, required_message: str = REQUIRED_FIELD_MESSAGE) -> None:
        self._message = required_message

    def validate(
        self,
        questions: Iterable[BaseQuestion],
        answers: Mapping[str, Any],
    ) -> dict[str, str]:
        """Return ``{question_id: message}`` for every unmet required question."""
        errors: dict[str, str] = {}
        for question in questions:
            if not question.is_required:
                continue
            if is_empty_answer(answers.get(question.id, _MISSING)):
                errors[question.id] = self._message
        return errors

    def is_section_complete(
        self,
        questions: list[BaseQuestion],
        answers: Mapping[str, Any],
    ) -> bool:
        """No errors and at least one question.

        Zero-question sections are never "complete" here; the orchestrator
        completes them when the respondent acknowledges them.
        """
        return len(questions) > 0 and not self.validate(questions, answers)

    def has_error(
        self,
        questions: Iterable[BaseQuestion],
        answers: Mapping[str, Any],
        question_id: str,
    ) -> str | None:
        """The field's error message, or None; ignores touched state."""
        return self.validate(questions, answers).get(question_id)

    def should_display_error(
        self,
        questions: Iterable[BaseQuestion],
        answers: Mapping[str, Any],
        question_id: str,
        touched: bool,
    ) -> str | None:
        """The field's error message if it may be shown, else None."""
        if not touched:
            return None
        return self.has_error(questions, answers, question_id)

    def displayable_errors(
        self,
        questions: Iterable[BaseQuestion],
        answers: Mapping[str, Any],
        touched: Iterable[str],
    ) -> dict[str, str]:
        """Subset of ``validate()`` restricted to touched fields."""
        touched_ids = set(touched)
        return {
            qid: msg
            for qid, msg in self.validate(questions, answers).items()
            if qid in touched_ids
        }
