# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoint."""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from amistapp import __version__
from amistapp.api.dependencies import get_app_settings
from amistapp.core.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


class ComponentHealth(BaseModel):
    """Individual component health status."""

    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    database: ComponentHealth


async def check_database(request: Request) -> ComponentHealth:
    """Check the credential store answers queries."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        return ComponentHealth(status="unavailable")

    start = time.time()
    healthy = await store.ping()
    latency = (time.time() - start) * 1000
    return ComponentHealth(
        status="healthy" if healthy else "unhealthy",
        latency_ms=round(latency, 2),
    )


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> HealthResponse:
    """Report service and database health."""
    database = await check_database(request)
    return HealthResponse(
        status="healthy" if database.status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=settings.environment,
        database=database,
    )
