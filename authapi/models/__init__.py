"""SQLAlchemy ORM models."""

from authapi.models.base import Base, TimestampMixin
from authapi.models.user import Role, User

__all__ = ["Base", "Role", "TimestampMixin", "User"]
