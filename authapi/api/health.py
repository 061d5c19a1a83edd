"""Health check endpoint with user store connectivity check."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from authapi.api.auth import get_user_store
from authapi.schemas.health import HealthResponse
from authapi.services.user_store import UserStore

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    request: Request,
    store: Annotated[UserStore, Depends(get_user_store)],
) -> HealthResponse:
    """
    Return service health status and database connectivity.
    Used by load balancers and monitoring.
    """
    db_status = "connected" if store.ping() else "disconnected"

    return HealthResponse(
        status="ok",
        environment=request.app.state.settings.APP_ENV,
        database=db_status,
    )
