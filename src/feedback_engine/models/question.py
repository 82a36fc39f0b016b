"""Question type models for the feedback survey.

Each question type maps to a specific input widget and answer shape:

    - rating:          numeric scale (stars/hearts) between config.min and config.max
    - emoji_rating:    pick one emoji from config.emojis; answer is the emoji value
    - multiple_choice: pick one option (or several when config.multi_select)
    - text:            free text
    - boolean:         yes / no

The discriminated ``Question`` union uses ``question_type`` as its
discriminator.  ``question_mapper`` maps type strings to their classes and
``question_from_dict`` builds the right variant from a raw dict (YAML or DB
row).
"""

from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, model_validator

from feedback_engine.constants import EDITION_THEME_MARKER

Category = Literal["product", "experimentai", "delivery"]


def is_cleared(value: Any) -> bool:
    """True for the values a renderer sends when an answer is removed."""
    return value is None or value == "" or value == []


# --- Options and per-type configuration ---

class QuestionOption(BaseModel):
    """A selectable option for choice questions."""

    value: str
    label: str
    icon: Optional[str] = None
    order_index: int = 0


class EmojiChoice(BaseModel):
    """One step on an emoji scale."""

    value: int
    emoji: str
    label: Optional[str] = None


class RatingConfig(BaseModel):
    min: int = 1
    max: int = 5
    icon: Literal["star", "heart"] = "star"


class EmojiRatingConfig(BaseModel):
    emojis: List[EmojiChoice] = []


class ChoiceConfig(BaseModel):
    multi_select: bool = False


class TextConfig(BaseModel):
    placeholder: str = "Digite sua resposta..."
    rows: int = 2


class BooleanConfig(BaseModel):
    true_label: str = "Sim"
    false_label: str = "Não"


# --- Base question type ---

class BaseQuestion(BaseModel):
    """Fields shared by all question types."""

    id: str
    category: Category
    product_id: Optional[str] = None
    question_text: str
    is_required: bool = False
    order_index: int = 0
    options: List[QuestionOption] = []

    @property
    def is_global(self) -> bool:
        """True if the question applies to every section of its category."""
        return self.product_id is None

    def display_text(self, edition_name: str | None = None) -> str:
        """Question text with the edition name appended to the theme prompt."""
        if edition_name and EDITION_THEME_MARKER in self.question_text:
            return self.question_text.replace(
                EDITION_THEME_MARKER, f'{EDITION_THEME_MARKER} "{edition_name}"'
            )
        return self.question_text

    def check_answer(self, value: Any) -> None:
        """Raise ``ValueError`` if ``value`` has the wrong shape for this type.

        Cleared values (None, "" and []) are always accepted.
        """
        if is_cleared(value):
            return
        self._check_shape(value)

    def _check_shape(self, value: Any) -> None:
        """Per-type answer check; every concrete question type overrides it."""
        raise NotImplementedError(
            f"{type(self).__name__} does not define an answer shape"
        )


# --- Concrete question types ---

class RatingQuestion(BaseQuestion):
    """Numeric scale rating (stars or hearts)."""

    question_type: Literal["rating"] = "rating"
    config: RatingConfig = Field(default_factory=RatingConfig)

    @model_validator(mode="after")
    def _chk(self):
        if self.config.min >= self.config.max:
            raise ValueError("rating config.min must be < config.max")
        return self

    def _check_shape(self, value: Any) -> None:
        # bool is an int subclass; a True rating is a renderer bug
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Rating answer for '{self.id}' must be an integer")
        if not self.config.min <= value <= self.config.max:
            raise ValueError(
                f"Rating answer for '{self.id}' must be between "
                f"{self.config.min} and {self.config.max}, got {value}"
            )


class EmojiRatingQuestion(BaseQuestion):
    """Emoji scale rating; the answer is the chosen emoji's value."""

    question_type: Literal["emoji_rating"] = "emoji_rating"
    config: EmojiRatingConfig = Field(default_factory=EmojiRatingConfig)

    @model_validator(mode="after")
    def _chk(self):
        values = [e.value for e in self.config.emojis]
        if len(values) < 2 or min(values) >= max(values):
            raise ValueError("emoji_rating needs at least two emojis with min < max")
        return self

    def _check_shape(self, value: Any) -> None:
        if value not in {e.value for e in self.config.emojis}:
            raise ValueError(f"Unknown emoji value for '{self.id}': {value!r}")


class ChoiceQuestion(BaseQuestion):
    """Single or multi-select choice over ``options``."""

    question_type: Literal["multiple_choice"] = "multiple_choice"
    config: ChoiceConfig = Field(default_factory=ChoiceConfig)

    @model_validator(mode="after")
    def _chk(self):
        if not self.options:
            raise ValueError("multiple_choice questions need at least one option")
        # Keep options in display order regardless of source order
        self.options = sorted(self.options, key=lambda o: o.order_index)
        return self

    @property
    def option_values(self) -> list[str]:
        return [o.value for o in self.options]

    def _check_shape(self, value: Any) -> None:
        allowed = set(self.option_values)
        if self.config.multi_select:
            if not isinstance(value, list):
                raise ValueError(f"Multi-select answer for '{self.id}' must be a list")
            unknown = [v for v in value if v not in allowed]
            if unknown:
                raise ValueError(f"Unknown options for '{self.id}': {unknown}")
        elif value not in allowed:
            raise ValueError(f"Unknown option for '{self.id}': {value!r}")


class TextQuestion(BaseQuestion):
    """Free text input."""

    question_type: Literal["text"] = "text"
    config: TextConfig = Field(default_factory=TextConfig)

    def _check_shape(self, value: Any) -> None:
        if not isinstance(value, str):
            raise ValueError(f"Text answer for '{self.id}' must be a string")


class BooleanQuestion(BaseQuestion):
    """Yes / no question."""

    question_type: Literal["boolean"] = "boolean"
    config: BooleanConfig = Field(default_factory=BooleanConfig)

    def _check_shape(self, value: Any) -> None:
        if not isinstance(value, bool):
            raise ValueError(f"Boolean answer for '{self.id}' must be true or false")


# --- Discriminated union of all question types ---

Question = Annotated[
    Union[
        RatingQuestion,
        EmojiRatingQuestion,
        ChoiceQuestion,
        TextQuestion,
        BooleanQuestion,
    ],
    Field(discriminator="question_type"),
]

# Maps question_type string → Pydantic class.
question_mapper = {
    "rating": RatingQuestion,
    "emoji_rating": EmojiRatingQuestion,
    "multiple_choice": ChoiceQuestion,
    "text": TextQuestion,
    "boolean": BooleanQuestion,
}

_question_adapter: TypeAdapter = TypeAdapter(Question)


def question_from_dict(raw: dict[str, Any]) -> BaseQuestion:
    """Validate a raw dict into the matching question class.

    Raises ``pydantic.ValidationError`` for unknown types or broken
    invariants (e.g. a choice question without options).
    """
    return _question_adapter.validate_python(raw)
