"""SQLAlchemy declarative base."""

from app.backend.src.db.base import Base

__all__ = ["Base"]
