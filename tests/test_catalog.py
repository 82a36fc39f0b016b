"""QuestionCatalog tests against the bundled YAML and small temp files."""

import pytest
from pydantic import ValidationError

from feedback_engine.catalog import QuestionCatalog, load_yaml
from feedback_engine.config import DEFAULT_CATALOG_PATH
from feedback_engine.models import ChoiceQuestion, EmojiRatingQuestion


@pytest.fixture(scope="module")
def catalog():
    return QuestionCatalog().load()


class TestBundledCatalog:

    def test_every_category_present(self, catalog):
        for category in ("product", "experimentai", "delivery"):
            assert catalog.questions_for(category), f"No questions for {category}"

    def test_questions_sorted(self, catalog):
        for category in ("product", "experimentai", "delivery"):
            orders = [q.order_index for q in catalog.questions_for(category)]
            assert orders == sorted(orders), f"{category} not in display order"

    def test_known_questions(self, catalog):
        assert isinstance(catalog.get_question("product_experience"), EmojiRatingQuestion)
        would_buy = catalog.get_question("product_would_buy")
        assert isinstance(would_buy, ChoiceQuestion)
        assert would_buy.option_values == ["sim", "talvez", "nao"]
        theme = catalog.get_question("box_theme_rating")
        assert theme.display_text("Verão") == 'Curadoria do tema "Verão"'

    def test_unknown_question(self, catalog):
        with pytest.raises(KeyError):
            catalog.get_question("nope")

    @pytest.mark.asyncio
    async def test_source_interface(self, catalog):
        delivery = await catalog.get_questions_by_category("delivery")
        assert [q.id for q in delivery][:2] == ["delivery_time_rating", "packaging_rating"]
        scoped = await catalog.get_questions_by_category_and_product("product", "any")
        assert all(q.is_global for q in scoped), "Bundled catalog has only global questions"

    def test_raw_yaml_keys(self):
        raw = load_yaml(DEFAULT_CATALOG_PATH)
        assert set(raw) == {"product", "experimentai", "delivery"}


class TestCustomCatalog:

    def _write(self, tmp_path, body):
        path = tmp_path / "catalog.yaml"
        path.write_text(body, encoding="utf-8")
        return path

    @pytest.mark.asyncio
    async def test_product_scoped_questions(self, tmp_path):
        path = self._write(tmp_path, """
product:
  - {id: g, question_type: rating, question_text: G, order_index: 2}
  - {id: s, question_type: text, question_text: S, product_id: p1, order_index: 1}
""")
        catalog = QuestionCatalog(path).load()
        assert [q.id for q in await catalog.get_questions_by_category("product")] == ["g"]
        scoped = await catalog.get_questions_by_category_and_product("product", "p1")
        assert [q.id for q in scoped] == ["s", "g"]
        other = await catalog.get_questions_by_category_and_product("product", "p2")
        assert [q.id for q in other] == ["g"]

    def test_unknown_category_rejected(self, tmp_path):
        path = self._write(tmp_path, "marketing: []\n")
        with pytest.raises(ValueError, match="Unknown categories"):
            QuestionCatalog(path).load()

    def test_duplicate_id_rejected(self, tmp_path):
        path = self._write(tmp_path, """
delivery:
  - {id: x, question_type: text, question_text: A}
  - {id: x, question_type: text, question_text: B}
""")
        with pytest.raises(ValueError, match="Duplicate"):
            QuestionCatalog(path).load()

    def test_invalid_question_rejected(self, tmp_path):
        path = self._write(tmp_path, """
delivery:
  - {id: c, question_type: multiple_choice, question_text: C, options: []}
""")
        with pytest.raises(ValidationError):
            QuestionCatalog(path).load()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            QuestionCatalog(tmp_path / "missing.yaml").load()
