"""
File management endpoints.

Backs the file list and the uploader: list the bucket, upload one or
more files, download and delete single files. Every call goes straight
to the configured storage endpoint with a freshly signed request.

Multi-file uploads run one file at a time in the order given and stop
at the first failure. Files uploaded before the failure stay uploaded.
"""

import logging
from datetime import datetime
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, File, HTTPException, Response, UploadFile, status
from pydantic import BaseModel, Field

from ...core.storage.formatting import format_file_size
from ...infrastructure.storage.client import StorageError, TransportError
from ..dependencies import ActiveConfigDep, SettingsDep, StorageClientDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class FileItem(BaseModel):
    """Single object in the bucket listing."""
    name: str = Field(description="Object key")
    size: int = Field(description="Size in bytes")
    size_formatted: str = Field(description="Size with binary units, e.g. 1.5 KB")
    last_modified: datetime = Field(description="Last modification time")
    etag: str | None = Field(None, description="ETag without quotes")


class FileListResponse(BaseModel):
    bucket: str = Field(description="Bucket that was listed")
    count: int = Field(description="Number of files returned")
    files: list[FileItem] = Field(description="Files in storage order")


class UploadResponse(BaseModel):
    """Result of a (possibly multi-file) upload."""
    uploaded: list[str] = Field(description="Names uploaded, in order")
    count: int = Field(description="Number of files uploaded")
    message: str = Field(description="Status message")


class DeleteResponse(BaseModel):
    name: str = Field(description="Deleted object key")
    message: str = Field(description="Status message")


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def storage_http_error(error: StorageError, detail: str | None = None) -> HTTPException:
    """
    Translate a storage failure into an HTTP error for the shell.

    A 404 from storage stays a 404; everything else is a bad gateway.
    The storage error text is passed through unchanged.
    """
    if isinstance(error, TransportError) and error.status_code == status.HTTP_404_NOT_FOUND:
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_502_BAD_GATEWAY
    return HTTPException(status_code=code, detail=detail or str(error))


def content_disposition(name: str) -> str:
    basename = name.rsplit("/", 1)[-1] or name
    return f"attachment; filename*=UTF-8''{quote(basename, safe='')}"


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=FileListResponse,
    summary="List files",
    description="Lists the first page (up to 1000 objects) of the configured bucket.",
)
async def list_files(
    config: ActiveConfigDep,
    storage: StorageClientDep,
) -> FileListResponse:
    try:
        entries = await storage.list_files(config)
    except StorageError as e:
        raise storage_http_error(e)

    files = [
        FileItem(
            name=entry.name,
            size=entry.size,
            size_formatted=format_file_size(entry.size),
            last_modified=entry.last_modified,
            etag=entry.etag,
        )
        for entry in entries
    ]

    return FileListResponse(bucket=config.bucket, count=len(files), files=files)


@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload files",
    description="Uploads files one at a time; stops at the first failure.",
)
async def upload_files(
    files: Annotated[list[UploadFile], File(description="One or more files to upload")],
    config: ActiveConfigDep,
    storage: StorageClientDep,
    settings: SettingsDep,
) -> UploadResponse:
    """
    Upload files in the order given.

    Size limits are checked for every file before anything is sent, so
    an oversized file never leaves a partial upload behind. Storage
    failures, on the other hand, stop the loop where they happen and
    earlier files are not rolled back.
    """
    payloads: list[tuple[str, bytes, str | None]] = []
    for upload in files:
        name = upload.filename or ""
        if not name:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Every uploaded file needs a filename",
            )

        data = await upload.read()
        if len(data) > settings.max_upload_size_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"{name} is too large. Maximum size: {settings.max_upload_size_mb}MB",
            )
        payloads.append((name, data, upload.content_type))

    uploaded: list[str] = []
    for index, (name, data, content_type) in enumerate(payloads, start=1):
        logger.info(
            "Uploading file",
            extra={
                "object_name": name,
                "position": f"{index}/{len(payloads)}",
                "size_bytes": len(data),
            },
        )
        try:
            await storage.upload_file(config, name, data, content_type)
        except StorageError as e:
            detail = str(e)
            if uploaded:
                detail = f"{detail} (already uploaded: {', '.join(uploaded)})"
            raise storage_http_error(e, detail=detail)
        uploaded.append(name)

    count = len(uploaded)
    return UploadResponse(
        uploaded=uploaded,
        count=count,
        message=f"Successfully uploaded {count} file{'s' if count != 1 else ''}",
    )


@router.get(
    "/{name:path}",
    summary="Download a file",
    response_class=Response,
)
async def download_file(
    name: str,
    config: ActiveConfigDep,
    storage: StorageClientDep,
) -> Response:
    try:
        data = await storage.download_file(config, name)
    except StorageError as e:
        raise storage_http_error(e)

    return Response(
        content=data,
        media_type="application/octet-stream",
        headers={"Content-Disposition": content_disposition(name)},
    )


@router.delete(
    "/{name:path}",
    response_model=DeleteResponse,
    summary="Delete a file",
)
async def delete_file(
    name: str,
    config: ActiveConfigDep,
    storage: StorageClientDep,
) -> DeleteResponse:
    try:
        await storage.delete_file(config, name)
    except StorageError as e:
        raise storage_http_error(e)

    return DeleteResponse(name=name, message=f"Successfully deleted {name}")
