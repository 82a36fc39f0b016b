"""AnswerStore — in-memory answers and touched flags, per section.

Answers are keyed by ``(section_id, question_id)``; writing a pair
overwrites its previous value.  The touched set per section gates when
validation errors may be shown to the respondent.

The store is owned by the orchestrator.  Renderers write to it only through
``FeedbackOrchestrator.update_answer`` / ``touch_field``.
"""

from __future__ import annotations

from typing import Any, Iterable


class AnswerStore:
    """Per-section answer map plus per-section touched set."""

    def __init__(self) -> None:
        self._answers: dict[str, dict[str, Any]] = {}
        self._touched: dict[str, set[str]] = {}

    # --- Answers ---

    def update(self, section_id: str, question_id: str, value: Any) -> None:
        """Set the live value for (section, question), replacing any previous one."""
        self._answers.setdefault(section_id, {})[question_id] = value

    def get(self, section_id: str, question_id: str, default: Any = None) -> Any:
        return self._answers.get(section_id, {}).get(question_id, default)

    def has_answer(self, section_id: str, question_id: str) -> bool:
        return question_id in self._answers.get(section_id, {})

    def section_answers(self, section_id: str) -> dict[str, Any]:
        """Copy of the answers recorded for ``section_id``."""
        return dict(self._answers.get(section_id, {}))

    # --- Touched flags ---

    def touch(self, section_id: str, question_id: str) -> None:
        self._touched.setdefault(section_id, set()).add(question_id)

    def touch_all(self, section_id: str, question_ids: Iterable[str]) -> None:
        self._touched.setdefault(section_id, set()).update(question_ids)

    def is_touched(self, section_id: str, question_id: str) -> bool:
        return question_id in self._touched.get(section_id, set())

    def touched(self, section_id: str) -> frozenset[str]:
        return frozenset(self._touched.get(section_id, set()))

    # --- Lifecycle ---

    def clear(self) -> None:
        self._answers.clear()
        self._touched.clear()
