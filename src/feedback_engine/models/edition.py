"""Inbound models supplied by external collaborators.

The edition/catalog collaborator resolves the box being reviewed; the
identity collaborator resolves who is answering.  Both are fetched before a
session starts and treated as immutable input.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict


class Product(BaseModel):
    """One product shipped in an edition."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    brand: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None


class Edition(BaseModel):
    """The box edition under review, with its fixed product list."""

    model_config = ConfigDict(frozen=True)

    edition_id: str
    edition_name: str
    products: List[Product] = []


class Respondent(BaseModel):
    """Resolved identity of the person answering.

    ``status`` is the collaborator's verdict; the core only looks at
    ``email`` (used as the respondent id) and ``may_proceed``.
    """

    model_config = ConfigDict(frozen=True)

    status: Literal["authorized", "unauthorized", "anonymous"]
    email: Optional[str] = None
    may_proceed: bool = False

    @property
    def respondent_id(self) -> str | None:
        return self.email
