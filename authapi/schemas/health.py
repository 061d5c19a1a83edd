"""Health check response for load balancers and monitoring."""

from typing import Literal

from pydantic import BaseModel, Field

from authapi.core.config import AppEnv


class HealthResponse(BaseModel):
    status: Literal["ok"] = Field(default="ok", description="Process is up and serving requests")
    environment: AppEnv = Field(description="APP_ENV the service runs with")
    database: Literal["connected", "disconnected"] = Field(
        description="Whether the user store answered a ping",
    )
