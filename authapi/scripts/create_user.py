"""
Create a user (e.g. first admin). Run from project root:
  python -m authapi.scripts.create_user USERNAME EMAIL PASSWORD [USER|ADMIN] [--disabled]
Example:
  python -m authapi.scripts.create_user admin admin@example.com 'Adm1n!Secret' ADMIN
"""
import argparse
import logging
import sys
from datetime import UTC, datetime

from pydantic import ValidationError

from authapi.core.config import get_settings
from authapi.core.exceptions import AuthApiError
from authapi.core.security import HasherConfig, PasswordHasher
from authapi.models import Role, User
from authapi.models.user import EMAIL_MAX_LEN, USERNAME_MAX_LEN, USERNAME_MIN_LEN
from authapi.schemas.auth import RegisterRequest
from authapi.services.auth import is_password_secure
from authapi.services.user_store import UserStoreFactory, session_user_store

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def create_user(
    username: str,
    email: str,
    password: str,
    role: Role,
    enabled: bool,
    hasher: PasswordHasher,
    user_store_factory: UserStoreFactory = session_user_store,
) -> User:
    """Persist a user with the same uniqueness rules as registration."""
    with user_store_factory() as store:
        if store.exists_by_username(username):
            raise ValueError(f"User '{username}' already exists.")
        if store.exists_by_email(email):
            raise ValueError(f"Email '{email}' is already registered.")
        now = datetime.now(UTC)
        user = User(
            username=username,
            email=email,
            password_hash=hasher.hash(password),
            role=role,
            enabled=enabled,
            created_at=now,
            updated_at=now,
        )
        return store.save(user)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an Auth API user.")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("email", help=f"Email address (max {EMAIL_MAX_LEN} chars)")
    parser.add_argument("password", help="Password (must satisfy the password policy)")
    parser.add_argument(
        "role",
        nargs="?",
        default=Role.USER.value,
        type=str.upper,
        choices=[r.value for r in Role],
    )
    parser.add_argument("--disabled", action="store_true", help="Create the account disabled")
    args = parser.parse_args(argv)

    try:
        # Same field rules as the register endpoint.
        details = RegisterRequest(
            username=args.username.strip(),
            email=args.email.strip(),
            password=args.password,
            confirm_password=args.password,
        )
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"]) or "input"
            print(f"Invalid {field}: {error['msg']}", file=sys.stderr)
        return 1

    if not is_password_secure(args.password):
        print(
            "Password must be at least 8 characters with uppercase, lowercase, digit, "
            "and special character.",
            file=sys.stderr,
        )
        return 1

    hasher = PasswordHasher(HasherConfig.from_settings(get_settings()))
    try:
        user = create_user(
            details.username,
            details.email,
            details.password,
            Role(args.role),
            not args.disabled,
            hasher,
        )
    except (ValueError, AuthApiError) as e:
        print(str(e), file=sys.stderr)
        return 1
    logger.info("Created user '%s' (id=%s) with role '%s'.", user.username, user.id, args.role)
    return 0


if __name__ == "__main__":
    sys.exit(main())
