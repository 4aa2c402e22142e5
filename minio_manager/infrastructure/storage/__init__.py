"""
Object storage integration for MinIO and other S3-compatible services.

Includes mock mode for local development without a storage server.
"""

from .client import (
    MinioStorageClient,
    MockStorageClient,
    StorageClient,
    StorageError,
    TransportError,
    create_storage_client,
)

__all__ = [
    "MinioStorageClient",
    "MockStorageClient",
    "StorageClient",
    "StorageError",
    "TransportError",
    "create_storage_client",
]
