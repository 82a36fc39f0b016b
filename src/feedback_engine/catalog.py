"""QuestionCatalog — a YAML-backed question source.

The catalog file maps each category to a list of question dicts; a dict
with ``product_id`` set is scoped to that product, otherwise it is global.
Every dict is validated into the matching question class at load time so a
broken catalog fails at startup rather than mid-session.

Usage::

    catalog = QuestionCatalog()           # bundled default_questions.yaml
    catalog.load()
    globals_ = await catalog.get_questions_by_category("delivery")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from feedback_engine.config import DEFAULT_CATALOG_PATH
from feedback_engine.constants import CATEGORIES
from feedback_engine.interfaces import QuestionSource
from feedback_engine.models.question import BaseQuestion, question_from_dict

logger = logging.getLogger(__name__)


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


class QuestionCatalog(QuestionSource):
    """In-memory question catalog loaded from one YAML file.

    Args:
        path: catalog file; defaults to the bundled default questions
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path else DEFAULT_CATALOG_PATH
        self._questions: dict[str, list[BaseQuestion]] = {}
        self._loaded = False

    def load(self) -> "QuestionCatalog":
        """Parse and validate the catalog file.  Returns self for chaining."""
        raw = load_yaml(self.path) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Catalog {self.path} must map categories to question lists")

        unknown = set(raw) - set(CATEGORIES)
        if unknown:
            raise ValueError(f"Unknown categories in {self.path}: {sorted(unknown)}")

        questions: dict[str, list[BaseQuestion]] = {c: [] for c in CATEGORIES}
        seen: set[str] = set()
        for category, items in raw.items():
            for item in items or []:
                question = question_from_dict({"category": category, **item})
                if question.id in seen:
                    raise ValueError(f"Duplicate question id in {self.path}: {question.id}")
                seen.add(question.id)
                questions[category].append(question)

        for items in questions.values():
            items.sort(key=lambda q: q.order_index)
        self._questions = questions
        self._loaded = True
        logger.info(
            "Loaded %d questions from %s", sum(len(v) for v in questions.values()), self.path,
        )
        return self

    def questions_for(self, category: str) -> list[BaseQuestion]:
        """All questions of ``category`` (global and product-scoped)."""
        if not self._loaded:
            self.load()
        return list(self._questions.get(category, []))

    def get_question(self, question_id: str) -> BaseQuestion:
        for category in CATEGORIES:
            for q in self.questions_for(category):
                if q.id == question_id:
                    return q
        raise KeyError(f"Question not found: {question_id}")

    # ------------------------------------------------------------------
    # QuestionSource implementation
    # ------------------------------------------------------------------

    async def get_questions_by_category_and_product(
        self, category: str, product_id: str | None = None
    ) -> list[BaseQuestion]:
        return [
            q for q in self.questions_for(category)
            if q.product_id is None or q.product_id == product_id
        ]

    async def get_questions_by_category(self, category: str) -> list[BaseQuestion]:
        return [q for q in self.questions_for(category) if q.is_global]
