"""ORM model for application users (auth and RBAC)."""

import enum

from sqlalchemy import Boolean, CheckConstraint, Column, Enum, Index, Integer, String, func

from authapi.models.base import Base, TimestampMixin

USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 50
EMAIL_MAX_LEN = 100


class Role(str, enum.Enum):
    """Closed set of roles; authorization is a membership test on this enum."""

    USER = "USER"
    ADMIN = "ADMIN"


class User(TimestampMixin, Base):
    """
    User account for JWT authentication and role-based access control.

    Username and email are unique case-insensitively; lookups compare lower().
    password_hash holds a bcrypt string and is never exposed by the API.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            f"length(username) >= {USERNAME_MIN_LEN} AND length(username) <= {USERNAME_MAX_LEN}",
            name="chk_users_username_length",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(USERNAME_MAX_LEN), nullable=False, unique=True, index=True)
    email = Column(String(EMAIL_MAX_LEN), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(
            Role,
            name="user_role",
            native_enum=False,
            create_constraint=True,
            length=20,
            validate_strings=True,
        ),
        nullable=False,
        default=Role.USER,
        index=True,
    )
    enabled = Column(Boolean, nullable=False, default=True, index=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"


# Case-insensitive uniqueness backs the lower() lookups in the user store.
Index("uq_users_username_lower", func.lower(User.username), unique=True)
Index("uq_users_email_lower", func.lower(User.email), unique=True)
