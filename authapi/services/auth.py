"""Registration, login and password-change workflows."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Optional

from authapi.core.exceptions import (
    AccountDisabledError,
    DuplicateEmailError,
    DuplicateUsernameError,
    InvalidCredentialsError,
    PasswordMismatchError,
    WeakPasswordError,
)
from authapi.core.security import PasswordHasher, TokenService
from authapi.models import Role, User
from authapi.services.user_store import UserStore

logger = logging.getLogger(__name__)

PASSWORD_MIN_LEN = 8
PASSWORD_SYMBOLS = frozenset("!@#$%^&*()_+-=[]{}|;:,.<>?")


def is_password_secure(password: Optional[str]) -> bool:
    """
    Password strength policy applied before registration and password change.

    Requires at least 8 characters with an uppercase letter, a lowercase
    letter, a digit and a symbol from PASSWORD_SYMBOLS.
    """
    if password is None or len(password) < PASSWORD_MIN_LEN:
        return False
    has_upper = any(ch.isupper() for ch in password)
    has_lower = any(ch.islower() for ch in password)
    has_digit = any(ch.isdigit() for ch in password)
    has_symbol = any(ch in PASSWORD_SYMBOLS for ch in password)
    return has_upper and has_lower and has_digit and has_symbol


@dataclass(frozen=True)
class AuthResult:
    """Token issued for a user by register or login."""

    token: str
    user: User


class AuthService:
    """Composes the user store, password hasher and token service."""

    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        tokens: TokenService,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens

    def _issue(self, user: User) -> str:
        return self.tokens.issue(user.username, {"role": Role(user.role).value})

    def register(
        self,
        username: str,
        email: str,
        password: str,
        confirm_password: str,
    ) -> AuthResult:
        """
        Create a USER account and return a token for it.

        All checks run before anything is persisted, so a failed registration
        leaves no partial record.
        """
        if not is_password_secure(password):
            raise WeakPasswordError()
        if password != confirm_password:
            raise PasswordMismatchError()
        if self.store.exists_by_username(username):
            raise DuplicateUsernameError(username)
        if self.store.exists_by_email(email):
            raise DuplicateEmailError(email)

        now = datetime.now(UTC)
        user = User(
            username=username,
            email=email,
            password_hash=self.hasher.hash(password),
            role=Role.USER,
            enabled=True,
            created_at=now,
            updated_at=now,
        )
        user = self.store.save(user)
        logger.info("Registered user id=%s username=%s", user.id, user.username)
        return AuthResult(token=self._issue(user), user=user)

    def login(self, identifier: str, password: str) -> AuthResult:
        """Authenticate by username or email."""
        user = self.store.find_by_identifier(identifier)
        if user is None:
            # Unknown users cost one bcrypt check, like a wrong password.
            self.hasher.verify(password, self.hasher.dummy_hash)
            logger.warning("Failed login for identifier=%s", identifier)
            raise InvalidCredentialsError()
        if not self.hasher.verify(password, user.password_hash):
            logger.warning("Failed login for identifier=%s", identifier)
            raise InvalidCredentialsError()
        # Disabled state is only revealed to callers holding the right password.
        if not user.enabled:
            logger.warning("Login refused for disabled user id=%s", user.id)
            raise AccountDisabledError()
        logger.info("User id=%s logged in", user.id)
        return AuthResult(token=self._issue(user), user=user)

    def change_password(self, username: str, old_password: str, new_password: str) -> None:
        """Replace the password. The new one must pass the policy before the old one is checked."""
        if not is_password_secure(new_password):
            raise WeakPasswordError()
        user = self.store.find_by_username(username)
        if user is None or not self.hasher.verify(old_password, user.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")

        user.password_hash = self.hasher.hash(new_password)
        user.updated_at = datetime.now(UTC)
        self.store.save(user)
        logger.info("Password changed for user id=%s", user.id)
