"""
Connection settings endpoints.

Backs the configuration form: show what is stored, save new settings,
and clear them. The secret key is write-only; it is never returned.
"""

import logging

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from ...core.storage.models import StorageConfig
from ..dependencies import CredentialStoreDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class ConfigRequest(BaseModel):
    """Connection settings as entered in the form."""
    endpoint: str = Field(
        min_length=1,
        description="host[:port] of the MinIO server; a scheme prefix is tolerated",
    )
    access_key: str = Field(min_length=1, description="Access key ID")
    secret_key: str = Field(min_length=1, description="Secret access key")
    bucket: str = Field(min_length=1, description="Bucket to browse")
    use_ssl: bool = Field(default=True, description="Connect over HTTPS")


class ConfigStatusResponse(BaseModel):
    """What is currently stored, without the secret."""
    configured: bool = Field(description="Whether usable settings are stored")
    endpoint: str | None = Field(None, description="Endpoint without scheme")
    bucket: str | None = Field(None, description="Bucket name")
    use_ssl: bool | None = Field(None, description="HTTPS enabled")
    access_key_hint: str | None = Field(
        None, description="First characters of the access key"
    )


def _mask(access_key: str) -> str:
    return f"{access_key[:4]}…" if len(access_key) > 4 else "…"


def _status_for(config: StorageConfig | None) -> ConfigStatusResponse:
    if config is None:
        return ConfigStatusResponse(configured=False)
    return ConfigStatusResponse(
        configured=True,
        endpoint=config.host,
        bucket=config.bucket,
        use_ssl=config.use_ssl,
        access_key_hint=_mask(config.access_key),
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=ConfigStatusResponse,
    summary="Show stored connection settings",
)
async def get_config(store: CredentialStoreDep) -> ConfigStatusResponse:
    return _status_for(store.load_config())


@router.put(
    "",
    response_model=ConfigStatusResponse,
    summary="Save connection settings",
    description="Replaces any stored settings. Values are obfuscated, not encrypted.",
)
async def save_config(
    request: ConfigRequest,
    store: CredentialStoreDep,
) -> ConfigStatusResponse:
    config = StorageConfig(
        endpoint=request.endpoint.strip(),
        access_key=request.access_key,
        secret_key=request.secret_key,
        bucket=request.bucket.strip(),
        use_ssl=request.use_ssl,
    )
    store.save_config(config)
    return _status_for(config)


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear connection settings",
)
async def clear_config(store: CredentialStoreDep) -> Response:
    store.clear_config()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
