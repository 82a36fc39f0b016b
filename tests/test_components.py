"""Tests for SectionModel, AnswerStore, ValidationEngine and SubmissionBuilder."""

import pytest

from feedback_engine.answers import AnswerStore
from feedback_engine.models import SectionStatus, SubmissionState
from feedback_engine.sections import SectionModel
from feedback_engine.submission import SubmissionBuilder, SubmissionGuard
from feedback_engine.validation import ValidationEngine, is_empty_answer

from helpers.mocks import boolean, choice, make_edition, rating, text


# =====================================================================
# SectionModel
# =====================================================================


class TestSectionModel:

    def test_derivation_order(self):
        model = SectionModel.from_edition(make_edition(3))
        assert [s.id for s in model] == [
            "product-0", "product-1", "product-2", "experimentai", "delivery",
        ], "Products first in edition order, then experimentai, then delivery"

    def test_no_products_still_has_general_sections(self):
        model = SectionModel.from_edition(make_edition(0))
        assert [s.id for s in model] == ["experimentai", "delivery"]
        assert not model.is_last_product("experimentai")

    def test_labels_and_categories(self):
        model = SectionModel.from_edition(make_edition(1))
        assert model.get("product-0").label == "Produto 1"
        assert model.get("product-0").category == "product"
        assert model.get("experimentai").label == "Sobre a Experimentaí"
        assert model.get("delivery").label == "Sobre a Entrega"
        assert model.get("delivery").product_id is None

    def test_neighbours(self):
        model = SectionModel.from_edition(make_edition(2))
        assert model.next_after("product-1").id == "experimentai"
        assert model.next_after("delivery") is None
        assert model.previous_before("product-0") is None
        assert model.is_last_product("product-1")
        assert model.is_terminal("delivery")

    def test_unknown_section(self):
        model = SectionModel.from_edition(make_edition(1))
        with pytest.raises(KeyError):
            model.get("product-9")

    def test_all_start_pending(self):
        model = SectionModel.from_edition(make_edition(2))
        assert model.count(SectionStatus.PENDING) == 4
        assert not model.all_completed()


# =====================================================================
# AnswerStore
# =====================================================================


class TestAnswerStore:

    def test_overwrite_not_append(self):
        store = AnswerStore()
        store.update("s", "q", 3)
        store.update("s", "q", 5)
        assert store.section_answers("s") == {"q": 5}

    def test_sections_isolated(self):
        store = AnswerStore()
        store.update("a", "q", 1)
        assert store.get("b", "q") is None
        assert not store.has_answer("b", "q")

    def test_touched_flags(self):
        store = AnswerStore()
        store.touch("s", "q1")
        store.touch_all("s", ["q2", "q3"])
        assert store.touched("s") == frozenset({"q1", "q2", "q3"})
        assert not store.is_touched("other", "q1")

    def test_section_answers_is_a_copy(self):
        store = AnswerStore()
        store.update("s", "q", 1)
        store.section_answers("s")["q"] = 99
        assert store.get("s", "q") == 1


# =====================================================================
# ValidationEngine
# =====================================================================


class TestValidationEngine:

    @pytest.mark.parametrize("value,empty", [
        (None, True), ("", True), ("   ", True), ([], True),
        (0, False), (False, False), ("x", False), (["a"], False),
    ])
    def test_is_empty_answer(self, value, empty):
        assert is_empty_answer(value) is empty

    def test_only_required_questions_fail(self):
        engine = ValidationEngine()
        questions = [rating("r"), text("t"), boolean("b")]
        errors = engine.validate(questions, {"b": False})
        assert errors == {"r": "Este campo é obrigatório"}, (
            "Optional text and answered boolean should not fail"
        )

    def test_whitespace_text_fails_when_required(self):
        engine = ValidationEngine()
        q = text("t", required=True)
        assert "t" in engine.validate([q], {"t": "  "})

    def test_errors_hidden_until_touched(self):
        engine = ValidationEngine()
        questions = [rating("r")]
        assert engine.has_error(questions, {}, "r") is not None
        assert engine.should_display_error(questions, {}, "r", touched=False) is None
        assert engine.should_display_error(questions, {}, "r", touched=True) is not None

    def test_zero_questions_never_complete(self):
        assert not ValidationEngine().is_section_complete([], {})

    def test_complete_when_required_answered(self):
        engine = ValidationEngine()
        assert engine.is_section_complete([rating("r"), text("t")], {"r": 4})


# =====================================================================
# SubmissionBuilder / SubmissionGuard
# =====================================================================


class TestSubmissionBuilder:

    def _model(self):
        model = SectionModel.from_edition(make_edition(1))
        model.get("product-0").questions = [rating("r"), choice("c", required=False)]
        model.get("experimentai").questions = []
        model.get("delivery").questions = [boolean("b")]
        return model

    def test_payload_shape(self):
        model = self._model()
        answers = AnswerStore()
        answers.update("product-0", "r", 5)
        answers.update("delivery", "b", True)

        payload = SubmissionBuilder().build(
            make_edition(1), model, answers, respondent_email="ana@example.com",
        )
        assert payload.edition_id == "ed-1"
        assert payload.completion_badge == "Testador Expert da Experimentaí"
        assert len(payload.product_feedbacks) == 1
        records = payload.product_feedbacks[0].answers
        assert [(r.question_id, r.answer) for r in records] == [("r", 5), ("c", None)], (
            "Every loaded question gets a record, unanswered ones with None"
        )
        assert records[0].question_type == "rating"
        assert payload.experimentai_feedback.answers == []
        assert payload.delivery_feedback.answers[0].answer is True

    def test_build_is_pure(self):
        model = self._model()
        answers = AnswerStore()
        builder = SubmissionBuilder("Badge")
        assert builder.build(make_edition(1), model, answers) == builder.build(
            make_edition(1), model, answers,
        )


class TestSubmissionGuard:

    def test_single_acquire(self):
        guard = SubmissionGuard()
        assert guard.try_acquire()
        assert not guard.try_acquire(), "Second acquire must be refused"
        assert guard.state == SubmissionState.SUBMITTING

    def test_release_allows_retry(self):
        guard = SubmissionGuard()
        guard.try_acquire()
        guard.release()
        assert guard.state == SubmissionState.IDLE
        assert guard.try_acquire()

    def test_complete_is_terminal(self):
        guard = SubmissionGuard()
        guard.try_acquire()
        guard.complete()
        guard.release()
        assert guard.state == SubmissionState.SUBMITTED, "release() must not undo success"
        assert not guard.try_acquire()

    def test_complete_requires_submitting(self):
        with pytest.raises(ValueError):
            SubmissionGuard().complete()
