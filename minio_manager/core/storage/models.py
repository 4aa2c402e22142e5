"""
Domain models for object storage access.

These models describe a storage connection and the objects found in a
bucket. They have no dependencies on HTTP clients or persistence; the
credential store and the storage client translate to and from them.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

_SCHEME_PATTERN = re.compile(r"^https?://", re.IGNORECASE)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def strip_scheme(endpoint: str) -> str:
    """Remove a leading http:// or https:// from an endpoint."""
    return _SCHEME_PATTERN.sub("", endpoint)


@dataclass(frozen=True)
class StorageConfig:
    """
    Connection settings for one MinIO/S3 bucket.

    The endpoint is kept exactly as entered. Use `host` wherever the bare
    host[:port] is needed (the signed Host header) and `base_url` to build
    request URLs; both strip any scheme the user typed.
    """
    endpoint: str
    access_key: str
    secret_key: str
    bucket: str
    use_ssl: bool = True

    @property
    def host(self) -> str:
        return strip_scheme(self.endpoint)

    @property
    def base_url(self) -> str:
        protocol = "https" if self.use_ssl else "http"
        return f"{protocol}://{self.host}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the field names used by the persisted blob."""
        return {
            "endpoint": self.endpoint,
            "accessKey": self.access_key,
            "secretKey": self.secret_key,
            "bucket": self.bucket,
            "useSSL": self.use_ssl,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "StorageConfig":
        """
        Build a config from its serialized form.

        Raises ValueError if the record is not a mapping or any field is
        missing or of the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError("Config record must be an object")

        fields = {}
        for key in ("endpoint", "accessKey", "secretKey", "bucket"):
            value = data.get(key)
            if not isinstance(value, str):
                raise ValueError(f"Config field '{key}' must be a string")
            fields[key] = value

        use_ssl = data.get("useSSL", True)
        if not isinstance(use_ssl, bool):
            raise ValueError("Config field 'useSSL' must be a boolean")

        return cls(
            endpoint=fields["endpoint"],
            access_key=fields["accessKey"],
            secret_key=fields["secretKey"],
            bucket=fields["bucket"],
            use_ssl=use_ssl,
        )


@dataclass(frozen=True)
class ObjectEntry:
    """A single object as reported by a bucket listing."""
    name: str
    size: int
    last_modified: datetime
    etag: Optional[str] = None


@dataclass(frozen=True)
class SignedRequest:
    """
    Authorization material for exactly one HTTP request.

    `amz_date` is the compact timestamp (YYYYMMDDThhmmssZ) that must be
    sent as the x-amz-date header alongside `authorization`.
    """
    authorization: str
    amz_date: str
