"""
Health check endpoint.

A basic liveness check for the local shell. It never contacts the
storage endpoint; use the file listing for that.
"""

import logging
from typing import Any

from fastapi import APIRouter, status
from pydantic import BaseModel

from ... import __version__
from ..dependencies import CredentialStoreDep, SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    details: dict[str, Any] = {}


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the shell is running. Does not contact storage.",
)
async def health_check(
    settings: SettingsDep,
    store: CredentialStoreDep,
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        details={
            "mock_mode": settings.storage_mock_mode,
            "configured": store.has_stored_config(),
        }
    )
