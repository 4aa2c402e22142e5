"""
FastAPI dependency injection.

Dependencies provide the credential store, the storage client and the
active connection settings to route handlers. Tests replace them via
app.dependency_overrides.
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, status

from ..config.settings import Settings, get_settings
from ..core.storage.models import StorageConfig
from ..infrastructure.credentials.store import (
    CredentialStore,
    FileKeyValueStore,
    InMemoryKeyValueStore,
)
from ..infrastructure.storage.client import (
    MinioStorageClient,
    StorageClient,
    create_storage_client,
)

logger = logging.getLogger(__name__)

# Global mock instances (shared across requests in mock mode)
_mock_storage_client = None
_mock_credential_store = None


# ---------------------------------------------------------------------------
# Credential Store
# ---------------------------------------------------------------------------

def get_credential_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> CredentialStore:
    """
    Provide the credential store.

    In mock mode the slot lives in memory and is shared across requests,
    so a saved config survives until the process exits.
    """
    global _mock_credential_store

    if settings.storage_mock_mode:
        if _mock_credential_store is None:
            _mock_credential_store = CredentialStore(InMemoryKeyValueStore())
            logger.info("Created shared in-memory credential store")
        return _mock_credential_store

    return CredentialStore(FileKeyValueStore(settings.credential_store_path))


def get_active_config(
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> StorageConfig:
    """
    Load the saved connection settings.

    Raises 409 when nothing usable is stored; the caller should show the
    configuration form.
    """
    config = store.load_config()
    if config is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="No storage configuration saved. Configure the connection first.",
        )
    return config


# ---------------------------------------------------------------------------
# Storage Client
# ---------------------------------------------------------------------------

async def get_storage_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AsyncGenerator[StorageClient, None]:
    """
    Provide a storage client for the duration of one request.

    The real client owns an httpx connection pool, so it is closed once
    the request finishes. The mock client is shared so that uploaded
    files persist between requests.
    """
    global _mock_storage_client

    if settings.storage_mock_mode:
        if _mock_storage_client is None:
            _mock_storage_client = create_storage_client(mock_mode=True)
            logger.info("Created shared mock storage client for session")
        yield _mock_storage_client
        return

    async with MinioStorageClient(timeout=settings.request_timeout_seconds) as client:
        logger.debug("Created MinIO storage client")
        yield client


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

CredentialStoreDep = Annotated[CredentialStore, Depends(get_credential_store)]
ActiveConfigDep = Annotated[StorageConfig, Depends(get_active_config)]
StorageClientDep = Annotated[StorageClient, Depends(get_storage_client)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
