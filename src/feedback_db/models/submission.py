"""FeedbackSubmission ORM model — one row per completed feedback.

The full payload is stored as JSONB so a submission can be read back
without joining the question catalog (which may change later).
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from feedback_db.models.base import Base


class FeedbackSubmission(Base):
    """A respondent's submitted feedback for one edition."""

    __tablename__ = "feedback_submissions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    edition_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    # Respondent email, used as the respondent id
    respondent_id: Mapped[str] = mapped_column(Text, nullable=False)
    completion_badge: Mapped[str | None] = mapped_column(Text, nullable=True)
    # FeedbackPayload.model_dump(mode="json")
    payload: Mapped[dict] = mapped_column(JSONB, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        # At most one submission per respondent and edition
        UniqueConstraint("edition_id", "respondent_id", name="uq_edition_respondent"),
    )

    def __repr__(self) -> str:
        return (
            f"<FeedbackSubmission(id={self.id!s}, edition={self.edition_id!r}, "
            f"respondent={self.respondent_id!r})>"
        )
