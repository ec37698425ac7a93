"""SQLAlchemy declarative base shared by every model."""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base for SQLAlchemy models."""

    pass


__all__ = ["Base"]
