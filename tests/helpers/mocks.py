"""In-memory collaborators and small factories for engine tests.

Mock strategy:
  - MockQuestionSource serves questions from a plain list and can be told
    to fail global fetches (a number of times, or forever) or every
    product-specific fetch for given product ids.  ``gate`` holds every
    call until the test sets it, for in-flight/concurrency tests;
    ``product_gates`` does the same for one product's scoped fetch.
  - MockFeedbackStore records payloads; it can reject, raise, or hold the
    submit call open with its own ``gate``.
  - MockIdentity counts sign-outs.
"""

from __future__ import annotations

import asyncio
import uuid

from feedback_engine.interfaces import FeedbackStore, IdentityProvider, QuestionSource
from feedback_engine.models import (
    BaseQuestion,
    BooleanQuestion,
    ChoiceQuestion,
    Edition,
    FeedbackPayload,
    Product,
    QuestionOption,
    RatingQuestion,
    Respondent,
    SubmitResult,
    TextQuestion,
)

ALWAYS = -1


# =====================================================================
# Collaborators
# =====================================================================


class MockQuestionSource(QuestionSource):
    """Question source over an in-memory list."""

    def __init__(self, questions: list[BaseQuestion] | None = None):
        self.questions = list(questions or [])
        # ("global", category, None) or ("product", category, product_id)
        self.calls: list[tuple[str, str, str | None]] = []
        self.global_failures: dict[str, int] = {}
        self.failing_products: set[str] = set()
        self.gate: asyncio.Event | None = None
        # Holds only the product-specific call for the given product ids
        self.product_gates: dict[str, asyncio.Event] = {}

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()

    async def get_questions_by_category_and_product(self, category, product_id=None):
        self.calls.append(("product", category, product_id))
        await self._wait()
        if product_id in self.product_gates:
            await self.product_gates[product_id].wait()
        if product_id in self.failing_products:
            raise ConnectionError(f"product fetch failed for {product_id}")
        return [
            q for q in self.questions
            if q.category == category and q.product_id == product_id
        ]

    async def get_questions_by_category(self, category):
        self.calls.append(("global", category, None))
        await self._wait()
        remaining = self.global_failures.get(category, 0)
        if remaining != 0:
            if remaining > 0:
                self.global_failures[category] = remaining - 1
            raise ConnectionError(f"global fetch failed for {category}")
        return [q for q in self.questions if q.category == category and q.is_global]

    def count(self, kind: str, category: str, product_id: str | None = None) -> int:
        return self.calls.count((kind, category, product_id))


class MockFeedbackStore(FeedbackStore):
    """Feedback store that keeps payloads in a list."""

    def __init__(self):
        self.payloads: list[FeedbackPayload] = []
        self.submit_calls = 0
        self.submit_error: Exception | None = None
        self.reject = False
        self.already_submitted = False
        self.check_error: Exception | None = None
        self.check_calls: list[tuple[str, str]] = []
        self.gate: asyncio.Event | None = None

    async def submit(self, payload):
        self.submit_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.submit_error is not None:
            raise self.submit_error
        if self.reject:
            return SubmitResult(success=False)
        self.payloads.append(payload)
        return SubmitResult(success=True, session_reference=uuid.uuid4().hex)

    async def has_already_submitted(self, edition_id, respondent_id):
        self.check_calls.append((edition_id, respondent_id))
        if self.check_error is not None:
            raise self.check_error
        return self.already_submitted


class MockIdentity(IdentityProvider):
    def __init__(self):
        self.sign_outs = 0

    async def sign_out(self):
        self.sign_outs += 1


# =====================================================================
# Factories
# =====================================================================


def rating(qid, category="product", product_id=None, *, required=True, order=0):
    return RatingQuestion(
        id=qid, category=category, product_id=product_id,
        question_text=f"Rate {qid}", is_required=required, order_index=order,
    )


def text(qid, category="product", product_id=None, *, required=False, order=0):
    return TextQuestion(
        id=qid, category=category, product_id=product_id,
        question_text=f"Tell us about {qid}", is_required=required, order_index=order,
    )


def boolean(qid, category="delivery", product_id=None, *, required=True, order=0):
    return BooleanQuestion(
        id=qid, category=category, product_id=product_id,
        question_text=f"Yes or no: {qid}", is_required=required, order_index=order,
    )


def choice(qid, category="product", product_id=None, *, required=True, order=0,
           values=("sim", "talvez", "nao"), multi=False):
    return ChoiceQuestion(
        id=qid, category=category, product_id=product_id,
        question_text=f"Pick for {qid}", is_required=required, order_index=order,
        options=[
            QuestionOption(value=v, label=v.title(), order_index=i)
            for i, v in enumerate(values)
        ],
        config={"multi_select": multi},
    )


def make_edition(n_products: int = 2, edition_id: str = "ed-1") -> Edition:
    return Edition(
        edition_id=edition_id,
        edition_name="Sabores do Brasil",
        products=[
            Product(id=f"p{i + 1}", name=f"Produto {i + 1}", brand="Marca")
            for i in range(n_products)
        ],
    )


def authorized(email: str = "ana@example.com") -> Respondent:
    return Respondent(status="authorized", email=email, may_proceed=True)
