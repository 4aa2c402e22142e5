"""
Object storage client for MinIO and other S3-compatible services.

Requests are signed with our own SigV4 implementation and sent with
httpx, straight from this process to the storage endpoint. The
connection settings are passed into every call rather than bound to
the client, so one client can serve whatever config the user has saved.

Mock mode keeps objects in memory, enabling the local shell to run
without provisioning real object storage.
"""

import hashlib
import logging
import mimetypes
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional, Protocol
from urllib.parse import quote

import httpx

from ...core.storage.listing import ListingParseError, parse_list_objects
from ...core.storage.models import ObjectEntry, StorageConfig
from ...core.storage.signing import UNSIGNED_PAYLOAD, sign_request

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


class TransportError(StorageError):
    """
    Raised on network failure or a non-success HTTP status.

    `status_code` is None when no response was received. `reason` holds
    the status text the storage service answered with.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class StorageClient(Protocol):
    """
    Protocol for the four file operations the file manager needs.

    Tests and mock mode provide an in-memory implementation; production
    uses MinioStorageClient.
    """

    async def list_files(self, config: StorageConfig) -> list[ObjectEntry]:
        """List objects in the configured bucket (first page only)."""
        ...

    async def upload_file(
        self,
        config: StorageConfig,
        name: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> None:
        """Store `data` under `name`, replacing any existing object."""
        ...

    async def download_file(self, config: StorageConfig, name: str) -> bytes:
        """Fetch the whole object into memory."""
        ...

    async def delete_file(self, config: StorageConfig, name: str) -> None:
        """Remove an object."""
        ...


def object_path(config: StorageConfig, name: str) -> str:
    """Canonical path of an object: /{bucket}/{url-encoded name}."""
    return f"/{config.bucket}/{quote(name, safe='/')}"


def guess_content_type(name: str) -> str:
    content_type, _ = mimetypes.guess_type(name)
    return content_type or DEFAULT_CONTENT_TYPE


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MinioStorageClient:
    """
    S3-compatible storage client using hand-signed httpx requests.

    Every request carries Host, x-amz-date, x-amz-content-sha256 and
    Authorization headers. No retries: a failed request surfaces
    immediately as a TransportError.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """
        Args:
            http_client: Client to send requests with. When omitted one is
                created and closed by `aclose`.
            timeout: Request timeout in seconds for an owned client
            clock: Source of the signing instant, UTC now by default
        """
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout,
            transport=httpx.AsyncHTTPTransport(retries=0),
        )
        self._clock = clock or _utc_now

    async def __aenter__(self) -> "MinioStorageClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def _send(
        self,
        config: StorageConfig,
        method: str,
        path: str,
        action: str,
        query: Optional[Mapping[str, str]] = None,
        content: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """Sign and send one request, raising TransportError unless 2xx."""
        signed = sign_request(config, method, path, self._clock(), query=query)

        request_headers = {
            "Host": config.host,
            "x-amz-date": signed.amz_date,
            "x-amz-content-sha256": UNSIGNED_PAYLOAD,
            "Authorization": signed.authorization,
        }
        if headers:
            request_headers.update(headers)

        url = f"{config.base_url}{path}"

        try:
            response = await self._http.request(
                method,
                url,
                params=dict(query) if query else None,
                content=content,
                headers=request_headers,
            )
        except (httpx.RequestError, httpx.InvalidURL, UnicodeEncodeError) as e:
            # InvalidURL and UnicodeEncodeError come from a saved endpoint or
            # key that cannot go on the wire (bad port, non-ASCII header value)
            logger.error(
                f"Failed to {action}",
                extra={"method": method, "path": path, "error": str(e)},
            )
            raise TransportError(f"Failed to {action}: {e}") from e

        if not response.is_success:
            reason = response.reason_phrase
            logger.error(
                f"Failed to {action}",
                extra={
                    "method": method,
                    "path": path,
                    "status": response.status_code,
                    "reason": reason,
                },
            )
            raise TransportError(
                f"Failed to {action}: {reason}",
                status_code=response.status_code,
                reason=reason,
            )

        return response

    async def list_files(self, config: StorageConfig) -> list[ObjectEntry]:
        """
        List objects in the bucket.

        Reads a single ListObjectsV2 page. If the service reports more
        pages, they are dropped and a warning is logged.
        """
        response = await self._send(
            config,
            "GET",
            f"/{config.bucket}",
            action="list files",
            query={"list-type": "2"},
        )

        try:
            page = parse_list_objects(response.content)
        except ListingParseError as e:
            logger.error(
                "Failed to parse listing",
                extra={"bucket": config.bucket, "error": str(e)},
            )
            raise StorageError(f"Failed to list files: {e}") from e

        if page.is_truncated:
            logger.warning(
                "Listing truncated; only the first page is shown",
                extra={"bucket": config.bucket, "count": len(page.entries)},
            )

        logger.debug(
            "Listed files",
            extra={"bucket": config.bucket, "count": len(page.entries)},
        )

        return page.entries

    async def upload_file(
        self,
        config: StorageConfig,
        name: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> None:
        """
        Upload an object with a single PUT.

        Content type defaults to a guess from the file extension, then
        application/octet-stream. Existing objects are overwritten.
        """
        await self._send(
            config,
            "PUT",
            object_path(config, name),
            action="upload file",
            content=data,
            headers={"Content-Type": content_type or guess_content_type(name)},
        )

        logger.info(
            "Uploaded file",
            extra={"bucket": config.bucket, "object_name": name, "size_bytes": len(data)},
        )

    async def download_file(self, config: StorageConfig, name: str) -> bytes:
        response = await self._send(
            config, "GET", object_path(config, name), action="download file"
        )
        return response.content

    async def delete_file(self, config: StorageConfig, name: str) -> None:
        """Delete an object. Any 2xx answer, including 204, is success."""
        await self._send(
            config, "DELETE", object_path(config, name), action="delete file"
        )

        logger.info(
            "Deleted file",
            extra={"bucket": config.bucket, "object_name": name},
        )


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development.

    Objects are kept per bucket in insertion order. Missing objects
    answer like the real service would, with a 404 TransportError.
    """

    def __init__(self) -> None:
        # {bucket: {name: (data, content_type, last_modified)}}
        self._buckets: dict[str, dict[str, tuple[bytes, str, datetime]]] = {}
        logger.info("Initialized mock storage client (in-memory)")

    def _bucket(self, config: StorageConfig) -> dict[str, tuple[bytes, str, datetime]]:
        return self._buckets.setdefault(config.bucket, {})

    async def list_files(self, config: StorageConfig) -> list[ObjectEntry]:
        return [
            ObjectEntry(
                name=name,
                size=len(data),
                last_modified=last_modified,
                etag=hashlib.md5(data).hexdigest(),
            )
            for name, (data, _, last_modified) in self._bucket(config).items()
        ]

    async def upload_file(
        self,
        config: StorageConfig,
        name: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> None:
        bucket = self._bucket(config)
        # re-insert so an overwrite moves to the end like a fresh upload
        bucket.pop(name, None)
        bucket[name] = (data, content_type or guess_content_type(name), _utc_now())

        logger.debug(
            "Stored file in mock storage",
            extra={"bucket": config.bucket, "object_name": name, "size_bytes": len(data)},
        )

    async def download_file(self, config: StorageConfig, name: str) -> bytes:
        bucket = self._bucket(config)
        if name not in bucket:
            raise TransportError(
                "Failed to download file: Not Found",
                status_code=404,
                reason="Not Found",
            )
        return bucket[name][0]

    async def delete_file(self, config: StorageConfig, name: str) -> None:
        # S3 answers 204 whether or not the key existed
        self._bucket(config).pop(name, None)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    mock_mode: bool = False,
    timeout: float = 30.0,
    http_client: Optional[httpx.AsyncClient] = None,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        mock_mode: If True, return the in-memory mock client
        timeout: Request timeout in seconds for the real client
        http_client: Optional pre-built httpx client for the real client

    Returns:
        StorageClient implementation (MinIO or Mock)
    """
    if mock_mode:
        return MockStorageClient()

    return MinioStorageClient(http_client=http_client, timeout=timeout)
