"""Create the question catalog and feedback submission tables.

Revision ID: 20261018_feedback
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

revision = "20261018_feedback"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "question_categories",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(40), nullable=False, unique=True),
        sa.Column("display_name", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("order_index", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
    )

    op.create_table(
        "questions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "category_id",
            UUID(as_uuid=True),
            sa.ForeignKey("question_categories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("product_id", sa.Text, nullable=True),
        sa.Column("question_text", sa.Text, nullable=False),
        sa.Column("question_type", sa.String(20), nullable=False),
        sa.Column("is_required", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("order_index", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("config", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.CheckConstraint(
            "question_type IN ('rating', 'emoji_rating', 'multiple_choice', 'text', 'boolean')",
            name="ck_question_type",
        ),
    )
    op.create_index(
        "ix_questions_category_product",
        "questions",
        ["category_id", "product_id"],
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "question_options",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "question_id",
            UUID(as_uuid=True),
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("option_value", sa.Text, nullable=False),
        sa.Column("option_label", sa.Text, nullable=False),
        sa.Column("option_icon", sa.Text, nullable=True),
        sa.Column("order_index", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
    )
    op.create_index("ix_question_options_question_id", "question_options", ["question_id"])

    op.create_table(
        "feedback_submissions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("edition_id", sa.Text, nullable=False),
        sa.Column("respondent_id", sa.Text, nullable=False),
        sa.Column("completion_badge", sa.Text, nullable=True),
        sa.Column("payload", JSONB, nullable=False),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.UniqueConstraint("edition_id", "respondent_id", name="uq_edition_respondent"),
    )
    op.create_index("ix_feedback_submissions_edition_id", "feedback_submissions", ["edition_id"])


def downgrade() -> None:
    op.drop_table("feedback_submissions")
    op.drop_table("question_options")
    op.drop_table("questions")
    op.drop_table("question_categories")
