"""
Auth gate: per-request bearer token resolution.

Runs before routing. On success it attaches a CurrentUser to
request.state.identity; on any failure the request continues unauthenticated
and the route's role dependency decides whether to reject it.
"""

import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.security.utils import get_authorization_scheme_param
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from authapi.core.exceptions import StorageUnavailableError, TokenError
from authapi.core.security import TokenService
from authapi.schemas.auth import CurrentUser
from authapi.schemas.common import ApiResponse
from authapi.services.user_store import UserStoreFactory

logger = logging.getLogger(__name__)

PUBLIC_PATHS = frozenset({"/", "/docs", "/redoc", "/openapi.json", "/favicon.ico"})
PUBLIC_API_PATHS = (
    "/auth/login",
    "/auth/register",
    "/auth/validate-password",
    "/auth/health",
    "/health",
)
PUBLIC_PATH_PREFIXES = ("/docs/",)
PUBLIC_API_PREFIXES = ("/public/",)


def is_public_path(path: str, api_prefix: str) -> bool:
    """True for endpoints that never need an identity."""
    if path in PUBLIC_PATHS or path.startswith(PUBLIC_PATH_PREFIXES):
        return True
    if not path.startswith(api_prefix):
        return False
    sub = path[len(api_prefix):]
    if sub != "/" and sub.endswith("/"):
        sub = sub.rstrip("/")
    return sub in PUBLIC_API_PATHS or sub.startswith(PUBLIC_API_PREFIXES)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an 'Authorization: Bearer <token>' header value."""
    scheme, token = get_authorization_scheme_param(authorization)
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def resolve_identity(
    token: str,
    tokens: TokenService,
    user_store_factory: UserStoreFactory,
) -> Optional[CurrentUser]:
    """
    Map a bearer token to a live, enabled user.

    Returns None for bad or expired tokens, unknown users and disabled
    accounts. StorageUnavailableError propagates.
    """
    try:
        subject = tokens.extract_subject(token)
    except TokenError as e:
        logger.debug("Rejected bearer token: %s: %s", type(e).__name__, e)
        return None

    with user_store_factory() as store:
        user = store.find_by_username(subject)
        if user is None:
            logger.debug("Token subject %s has no user record", subject)
            return None
        if not user.enabled:
            logger.debug("Token subject %s is disabled", subject)
            return None
        if not tokens.validate(token, user.username):
            return None
        return CurrentUser.model_validate(user)


class AuthGateMiddleware(BaseHTTPMiddleware):
    """Populates request.state.identity from the bearer token, never rejects."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.identity = None
        state = request.app.state

        if not is_public_path(request.url.path, state.settings.API_PREFIX):
            token = extract_bearer_token(request.headers.get("Authorization"))
            if token is not None:
                try:
                    request.state.identity = await run_in_threadpool(
                        resolve_identity, token, state.token_service, state.user_store_factory
                    )
                except StorageUnavailableError as e:
                    # Must not look like an authentication failure.
                    logger.error("Auth gate could not reach user storage: %s", e)
                    body = ApiResponse.error(e.message)
                    return JSONResponse(
                        status_code=e.status_code,
                        content=body.model_dump(mode="json"),
                    )

        return await call_next(request)
