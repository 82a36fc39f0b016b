"""Session and view models — the contract between the orchestrator and renderers.

Renderers never see the orchestrator's internal session object.  They get
read-only projections:

  - SectionInfo:   one line per section (id, label, status) for navigation UIs
  - SectionView:   everything needed to render the active section
  - Progress:      completed / total sections plus the header copy
  - AdvanceResult: outcome of an ``advance()`` call
"""

import enum
from typing import Any, Literal, Optional

from pydantic import BaseModel

from feedback_engine.constants import (
    MOTIVATION_DONE,
    MOTIVATION_STAGES,
    MOTIVATION_START,
)
from feedback_engine.models.edition import Product
from feedback_engine.models.question import Question


class SectionStatus(str, enum.Enum):
    """Lifecycle states for a section.

    Transitions (owned by the orchestrator):
        pending -> in_progress   (section activated)
        in_progress -> completed (advance() with a valid section)
    A completed section stays completed when revisited with go_back().
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class SubmissionState(str, enum.Enum):
    """Session-level track for the terminal action.

    Transitions:
        idle -> submitting      (guard acquired, persistence call in flight)
        submitting -> submitted (persistence call succeeded; terminal)
        submitting -> idle      (persistence call failed; may retry)
    """

    IDLE = "idle"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


SectionKind = Literal["product", "experimentai", "delivery"]


class SectionInfo(BaseModel):
    """Public summary of one section."""

    id: str
    kind: SectionKind
    label: str
    status: SectionStatus
    product_id: Optional[str] = None


class Progress(BaseModel):
    """Completed sections over total, with the motivational header copy."""

    completed: int
    total: int
    percentage: float

    @classmethod
    def from_counts(cls, completed: int, total: int) -> "Progress":
        # Single division from the integer counts so repeated reads never drift
        percentage = (completed * 100 / total) if total > 0 else 0.0
        return cls(completed=completed, total=total, percentage=percentage)

    @property
    def emoji(self) -> str:
        return self._motivation()[0]

    @property
    def message(self) -> str:
        return self._motivation()[1]

    def _motivation(self) -> tuple[str, str]:
        if self.percentage == 0:
            return MOTIVATION_START
        for bound, emoji, message in MOTIVATION_STAGES:
            if self.percentage < bound:
                return emoji, message
        return MOTIVATION_DONE


class SectionView(BaseModel):
    """Everything a renderer needs for the active section.

    ``errors`` only carries *displayable* errors (touched fields); use the
    orchestrator's ``validate()`` for the full error map.
    """

    section_id: str
    kind: SectionKind
    label: str
    index: int
    total: int
    status: SectionStatus
    product: Optional[Product] = None
    edition_name: str
    questions: list[Question] = []
    answers: dict[str, Any] = {}
    errors: dict[str, str] = {}
    # True while the section's questions are being fetched
    loading: bool = False
    # Set when the fetch failed; the renderer offers retry_section()
    load_error: Optional[str] = None
    is_first: bool = False
    is_last: bool = False


class AdvanceResult(BaseModel):
    """Outcome of ``FeedbackOrchestrator.advance()``.

    - advanced=True:  the section was completed (and the cursor moved unless
      it was the terminal section)
    - advanced=False: nothing changed; ``errors`` explains why
    - ready_to_submit: every section is completed and submit() may be called
    """

    advanced: bool
    ready_to_submit: bool = False
    errors: dict[str, str] = {}
    view: Optional[SectionView] = None
