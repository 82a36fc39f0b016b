"""SQLAlchemy declarative base shared by all feedback tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
