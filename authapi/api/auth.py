"""Registration, login and password-policy endpoints plus auth dependencies."""

import json
from collections.abc import Callable, Generator
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from authapi.core.exceptions import AccessDeniedError, NotAuthenticatedError
from authapi.core.security import PasswordHasher, TokenService
from authapi.models import Role
from authapi.schemas.auth import AuthResponse, CurrentUser, LoginRequest, RegisterRequest, UserInfo
from authapi.schemas.common import ApiResponse
from authapi.services.auth import AuthResult, AuthService, is_password_secure
from authapi.services.user_store import UserStore

router = APIRouter()

# Advertises the bearer scheme in OpenAPI; the auth gate does the verification.
bearer_scheme = HTTPBearer(auto_error=False)

PASSWORD_POLICY_OK = "Password meets security requirements"
PASSWORD_POLICY_FAILED = (
    "Password must be at least 8 characters with uppercase, lowercase, digit, and special character"
)


def get_user_store(request: Request) -> Generator[UserStore, None, None]:
    """Dependency that yields a UserStore for the lifetime of the request."""
    with request.app.state.user_store_factory() as store:
        yield store


def get_auth_service(
    request: Request,
    store: Annotated[UserStore, Depends(get_user_store)],
) -> AuthService:
    hasher: PasswordHasher = request.app.state.password_hasher
    tokens: TokenService = request.app.state.token_service
    return AuthService(store, hasher, tokens)


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> CurrentUser:
    """Dependency: return the identity attached by the auth gate. Raises 401 if absent."""
    identity = getattr(request.state, "identity", None)
    if credentials is None or identity is None:
        raise NotAuthenticatedError()
    return identity


def require_roles(*roles: Role) -> Callable[[CurrentUser], CurrentUser]:
    """Dependency factory: require the identity to hold one of roles. Raises 403 otherwise."""
    allowed = frozenset(roles)

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if not current_user.roles & allowed:
            raise AccessDeniedError(
                f"Access denied: requires role {' or '.join(sorted(r.value for r in allowed))}"
            )
        return current_user

    return dependency


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(token=result.token, user=UserInfo.model_validate(result.user))


@router.post(
    "/register",
    response_model=ApiResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: RegisterRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[AuthResponse]:
    """
    Create a USER account and return a bearer token for it.
    Returns 409 if the username or email is taken, 400 on weak or mismatched passwords.
    """
    result = service.register(
        username=body.username,
        email=body.email,
        password=body.password,
        confirm_password=body.confirm_password,
    )
    return ApiResponse.ok("User registered successfully", _auth_response(result))


@router.post("/login", response_model=ApiResponse[AuthResponse])
def login(
    body: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[AuthResponse]:
    """
    Authenticate with username (or email) and password; returns a JWT.
    Include the token in the Authorization header as: Bearer <token>
    """
    result = service.login(body.username, body.password)
    return ApiResponse.ok("Login successful", _auth_response(result))


@router.post("/validate-password", response_model=ApiResponse[bool])
async def validate_password(request: Request) -> ApiResponse[bool]:
    """Check a raw password (text body or JSON string) against the password policy."""
    raw = (await request.body()).decode("utf-8", errors="replace")
    password = raw
    if raw.startswith('"'):
        try:
            decoded = json.loads(raw)
        except ValueError:
            decoded = None
        if isinstance(decoded, str):
            password = decoded
    secure = is_password_secure(password)
    return ApiResponse.ok(PASSWORD_POLICY_OK if secure else PASSWORD_POLICY_FAILED, secure)


@router.get("/health", response_model=ApiResponse[str])
def auth_health() -> ApiResponse[str]:
    return ApiResponse.ok("Authentication service is running", "OK")
