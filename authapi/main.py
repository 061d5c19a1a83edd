"""FastAPI application entrypoint. No business logic; only wiring, middleware and error mapping."""

from dotenv import load_dotenv

load_dotenv()

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from authapi.api import router as api_router
from authapi.core.config import Settings, get_settings
from authapi.core.exceptions import AuthApiError
from authapi.core.security import HasherConfig, PasswordHasher, TokenConfig, TokenService
from authapi.middleware import AuthGateMiddleware
from authapi.schemas.common import ApiResponse
from authapi.services.user_store import UserStoreFactory, session_user_store

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _envelope(
    status_code: int,
    message: str,
    data: Any = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    body = ApiResponse.error(message, data)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"), headers=headers)


def _field_name(loc: tuple) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


async def handle_auth_api_error(request: Request, exc: AuthApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    else:
        logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _envelope(exc.status_code, exc.message, exc.details or None, headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, str] = {}
    for error in exc.errors():
        errors.setdefault(_field_name(tuple(error.get("loc", ()))), error.get("msg", "Invalid value"))
    logger.warning("Validation failed on %s: %s", request.url.path, errors)
    return _envelope(400, "Validation failed", errors)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return _envelope(500, "An unexpected error occurred. Please try again later.")


def create_app(
    settings: Optional[Settings] = None,
    user_store_factory: Optional[UserStoreFactory] = None,
) -> FastAPI:
    """
    Build the application.

    settings defaults to the environment; user_store_factory defaults to a
    SQLAlchemy-backed store per request. Tests pass an in-memory factory.
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL, format=LOG_FORMAT)

    app = FastAPI(
        title="Auth API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.password_hasher = PasswordHasher(HasherConfig.from_settings(settings))
    app.state.token_service = TokenService(TokenConfig.from_settings(settings))
    app.state.user_store_factory = user_store_factory or session_user_store

    # Middleware added later wraps earlier ones: CORS is outermost, the gate
    # runs next, then routing.
    app.add_middleware(AuthGateMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AuthApiError, handle_auth_api_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Auth API"}

    return app


app = create_app()
