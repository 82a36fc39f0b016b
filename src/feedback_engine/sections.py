"""SectionModel — derives and tracks the ordered sections of a session.

Derivation rule: one section per product in edition order (``product-0`` ..
``product-{N-1}``), then ``experimentai``, then ``delivery``.  The list is
fixed once derived: no section is skipped, duplicated or reordered.

Section status is read by everyone but changed only by the orchestrator
(via ``_set_status``).
"""

from __future__ import annotations

from dataclasses import dataclass

from feedback_engine.constants import (
    CATEGORY_DELIVERY,
    CATEGORY_EXPERIMENTAI,
    CATEGORY_PRODUCT,
    DELIVERY_SECTION_ID,
    EXPERIMENTAI_SECTION_ID,
    GENERAL_SECTION_LABELS,
    PRODUCT_SECTION_PREFIX,
)
from feedback_engine.models.edition import Edition, Product
from feedback_engine.models.question import BaseQuestion
from feedback_engine.models.session import SectionInfo, SectionKind, SectionStatus


@dataclass
class Section:
    """One sub-survey.  ``questions`` is None until first loaded."""

    id: str
    kind: SectionKind
    label: str
    product: Product | None = None
    status: SectionStatus = SectionStatus.PENDING
    questions: list[BaseQuestion] | None = None
    # Message of the last failed fetch, cleared on a successful load
    load_error: str | None = None
    loading: bool = False

    @property
    def category(self) -> str:
        if self.kind == "product":
            return CATEGORY_PRODUCT
        return CATEGORY_EXPERIMENTAI if self.kind == "experimentai" else CATEGORY_DELIVERY

    @property
    def product_id(self) -> str | None:
        return self.product.id if self.product else None

    @property
    def is_loaded(self) -> bool:
        return self.questions is not None

    def to_info(self) -> SectionInfo:
        return SectionInfo(
            id=self.id,
            kind=self.kind,
            label=self.label,
            status=self.status,
            product_id=self.product_id,
        )


class SectionModel:
    """Ordered, immutable-in-shape list of sections for one edition."""

    def __init__(self, sections: list[Section]) -> None:
        ids = [s.id for s in sections]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate section ids: {ids}")
        self._sections = tuple(sections)
        self._index = {s.id: i for i, s in enumerate(self._sections)}

    @classmethod
    def from_edition(cls, edition: Edition) -> "SectionModel":
        sections = [
            Section(
                id=f"{PRODUCT_SECTION_PREFIX}{i}",
                kind="product",
                label=product.name,
                product=product,
            )
            for i, product in enumerate(edition.products)
        ]
        sections.append(Section(
            id=EXPERIMENTAI_SECTION_ID,
            kind="experimentai",
            label=GENERAL_SECTION_LABELS[EXPERIMENTAI_SECTION_ID],
        ))
        sections.append(Section(
            id=DELIVERY_SECTION_ID,
            kind="delivery",
            label=GENERAL_SECTION_LABELS[DELIVERY_SECTION_ID],
        ))
        return cls(sections)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def sections(self) -> tuple[Section, ...]:
        return self._sections

    @property
    def first(self) -> Section:
        return self._sections[0]

    @property
    def last(self) -> Section:
        return self._sections[-1]

    def __len__(self) -> int:
        return len(self._sections)

    def __iter__(self):
        return iter(self._sections)

    def get(self, section_id: str) -> Section:
        """Return the section with ``section_id``; KeyError if not found."""
        try:
            return self._sections[self._index[section_id]]
        except KeyError:
            raise KeyError(f"Section not found: {section_id}") from None

    def index_of(self, section_id: str) -> int:
        self.get(section_id)
        return self._index[section_id]

    def next_after(self, section_id: str) -> Section | None:
        """The section following ``section_id``, or None for the terminal one."""
        i = self.index_of(section_id)
        return self._sections[i + 1] if i + 1 < len(self._sections) else None

    def previous_before(self, section_id: str) -> Section | None:
        i = self.index_of(section_id)
        return self._sections[i - 1] if i > 0 else None

    def is_terminal(self, section_id: str) -> bool:
        return self.index_of(section_id) == len(self._sections) - 1

    def product_sections(self) -> list[Section]:
        return [s for s in self._sections if s.kind == "product"]

    def is_last_product(self, section_id: str) -> bool:
        products = self.product_sections()
        return bool(products) and products[-1].id == section_id

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def count(self, status: SectionStatus) -> int:
        return sum(1 for s in self._sections if s.status == status)

    def all_completed(self) -> bool:
        return all(s.status == SectionStatus.COMPLETED for s in self._sections)

    def _set_status(self, section_id: str, status: SectionStatus) -> None:
        """Orchestrator-only status transition."""
        self.get(section_id).status = status
