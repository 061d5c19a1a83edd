"""Password hashing and JWT issuance/verification for authentication."""

import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from functools import cached_property
from typing import Any

import bcrypt
import jwt
from pydantic import BaseModel, ConfigDict, Field, SecretStr

from authapi.core.config import Settings
from authapi.core.exceptions import ExpiredTokenError, MalformedTokenError

DEFAULT_BCRYPT_ROUNDS = 12
DEFAULT_TOKEN_LIFETIME = timedelta(hours=24)

# bcrypt only looks at the first 72 bytes of the password.
BCRYPT_MAX_BYTES = 72

REQUIRED_CLAIMS = ("sub", "iat", "exp")


class HasherConfig(BaseModel):
    """Work factor for PasswordHasher. Lower it in tests to keep them fast."""

    model_config = ConfigDict(frozen=True)

    rounds: int = Field(default=DEFAULT_BCRYPT_ROUNDS, ge=4, le=31)

    @classmethod
    def from_settings(cls, settings: Settings) -> "HasherConfig":
        return cls(rounds=settings.BCRYPT_ROUNDS)


class TokenConfig(BaseModel):
    """Signing key, algorithm and lifetime for TokenService."""

    model_config = ConfigDict(frozen=True)

    secret: SecretStr
    algorithm: str = "HS256"
    lifetime: timedelta = DEFAULT_TOKEN_LIFETIME

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenConfig":
        return cls(
            secret=settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            lifetime=timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
        )


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _password_bytes(plain_password: str | None) -> bytes:
    if plain_password is None:
        raise ValueError("password must not be None")
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Salted one-way hashing with bcrypt; cost and salt live in the hash string."""

    def __init__(self, config: HasherConfig | None = None) -> None:
        self.config = config or HasherConfig()

    def hash(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. Each call uses a fresh salt."""
        salt = bcrypt.gensalt(rounds=self.config.rounds)
        return bcrypt.hashpw(_password_bytes(plain_password), salt).decode("utf-8")

    def verify(self, plain_password: str, hashed: str) -> bool:
        """Verify a plain password against a stored hash. Malformed hashes never match."""
        pw_bytes = _password_bytes(plain_password)
        try:
            return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False

    @cached_property
    def dummy_hash(self) -> str:
        """Hash at the configured cost, compared against when no user matches."""
        return self.hash(uuid.uuid4().hex)


class TokenService:
    """
    Stateless JWT issuer and validator.

    A token is valid while its signature verifies and the clock is before its
    `exp` claim. There is no revocation; validity changes only with time.
    """

    def __init__(
        self,
        config: TokenConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self._now = clock or _utcnow

    def _key(self) -> str:
        return self.config.secret.get_secret_value()

    def issue(self, subject: str, extra_claims: dict[str, Any] | None = None) -> str:
        """Create a signed token for subject with iat=now and exp=now+lifetime."""
        now = self._now()
        payload: dict[str, Any] = dict(extra_claims or {})
        payload.update(
            {
                "sub": str(subject),
                "iat": now,
                "exp": now + self.config.lifetime,
                "jti": uuid.uuid4().hex,
            }
        )
        return jwt.encode(payload, self._key(), algorithm=self.config.algorithm)

    def decode(self, token: str) -> dict[str, Any]:
        """
        Verify the signature and expiry of token and return its claims.

        Raises MalformedTokenError for anything unparseable, badly signed or
        missing required claims, and ExpiredTokenError once exp has passed.
        """
        try:
            payload = jwt.decode(
                token,
                self._key(),
                algorithms=[self.config.algorithm],
                # Expiry is checked below against the injected clock.
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": list(REQUIRED_CLAIMS),
                },
            )
        except jwt.PyJWTError as e:
            raise MalformedTokenError(str(e)) from e

        try:
            expires_at = float(payload["exp"])
        except (TypeError, ValueError) as e:
            raise MalformedTokenError("Invalid exp claim") from e
        if self._now().timestamp() >= expires_at:
            raise ExpiredTokenError("Token has expired")
        return payload

    def extract_subject(self, token: str) -> str:
        """Return the sub claim of a verified token."""
        subject = self.decode(token).get("sub")
        if not isinstance(subject, str) or not subject:
            raise MalformedTokenError("Invalid sub claim")
        return subject

    def validate(self, token: str, expected_subject: str) -> bool:
        """True only for a well-signed, unexpired token whose subject is expected_subject."""
        try:
            return self.extract_subject(token) == expected_subject
        except (MalformedTokenError, ExpiredTokenError):
            return False
