"""Question catalog tables: categories, questions and their options.

Questions with ``product_id IS NULL`` are global to their category; the
rest apply to a single product.  Inactive rows (``is_active = false``) are
kept for history but never served.
"""

import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from feedback_db.models.base import Base
from feedback_db.models.enums import QuestionType


class QuestionCategory(Base):
    """One of ``product``, ``experimentai`` or ``delivery``."""

    __tablename__ = "question_categories"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true"),
    )

    questions: Mapped[list["SurveyQuestion"]] = relationship(back_populates="category")

    def __repr__(self) -> str:
        return f"<QuestionCategory(name={self.name!r})>"


class SurveyQuestion(Base):
    """A single survey question."""

    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("question_categories.id", ondelete="CASCADE"),
        nullable=False,
    )
    # NULL = global to the category
    product_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(String(20), nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Type-specific settings, e.g. {"min": 1, "max": 5, "icon": "star"}
    config: Mapped[dict] = mapped_column(
        JSONB, nullable=False, server_default=text("'{}'::jsonb"),
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true"),
    )

    category: Mapped[QuestionCategory] = relationship(back_populates="questions")
    options: Mapped[list["SurveyQuestionOption"]] = relationship(
        back_populates="question",
        order_by="SurveyQuestionOption.order_index",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            "question_type IN ("
            + ", ".join(f"'{t.value}'" for t in QuestionType)
            + ")",
            name="ck_question_type",
        ),
        # Lookup path for both fetches: category (+ product) of active rows
        Index(
            "ix_questions_category_product",
            "category_id",
            "product_id",
            postgresql_where=text("is_active"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<SurveyQuestion(id={self.id!s}, type={self.question_type!r}, "
            f"product={self.product_id!r})>"
        )


class SurveyQuestionOption(Base):
    """A selectable option of a multiple-choice question."""

    __tablename__ = "question_options"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    option_value: Mapped[str] = mapped_column(Text, nullable=False)
    option_label: Mapped[str] = mapped_column(Text, nullable=False)
    option_icon: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true"),
    )

    question: Mapped[SurveyQuestion] = relationship(back_populates="options")
