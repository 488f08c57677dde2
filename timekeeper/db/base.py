"""Declarative base shared by every ORM model."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    # Models use classic ``attr: T = Column(...)`` declarations
    __allow_unmapped__ = True
