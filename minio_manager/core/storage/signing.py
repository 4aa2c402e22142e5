"""
AWS Signature Version 4 request signing.

Every request to the storage endpoint is signed independently; there is
no session token. The storage service rebuilds the canonical request from
what it receives and compares signatures, so the layout produced here
(header order, casing, the payload placeholder) must match byte for byte.

Only the three headers the client always sends are signed:
host, x-amz-content-sha256 and x-amz-date.
"""

import hashlib
import hmac
import re
from datetime import datetime, timezone
from typing import Mapping, Optional, Union
from urllib.parse import quote

from .models import SignedRequest, StorageConfig

ALGORITHM = "AWS4-HMAC-SHA256"
REGION = "us-east-1"  # MinIO accepts any nominal region
SERVICE = "s3"
TERMINATOR = "aws4_request"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"
SIGNED_HEADERS = "host;x-amz-content-sha256;x-amz-date"

_SUBSECOND_PATTERN = re.compile(r"\.\d+")


def normalize_timestamp(timestamp: Union[str, datetime]) -> str:
    """
    Convert an ISO-8601 instant to the compact YYYYMMDDThhmmssZ form.

    Accepts either a string such as "2024-01-15T10:30:45.123Z" or a
    datetime. Strings may carry "Z" or a numeric offset such as "+02:00";
    either way the result is the same instant in UTC. Naive values are
    taken to be UTC.

    Raises ValueError if a string is not an ISO-8601 date and time.
    """
    if isinstance(timestamp, str):
        text = _SUBSECOND_PATTERN.sub("", timestamp.strip())
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        timestamp = datetime.fromisoformat(text)

    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def credential_scope(date_stamp: str) -> str:
    return f"{date_stamp}/{REGION}/{SERVICE}/{TERMINATOR}"


def canonical_query_string(query: Optional[Mapping[str, str]]) -> str:
    """Sorted, RFC 3986 encoded query parameters (empty when there are none)."""
    if not query:
        return ""
    pairs = sorted(
        (quote(str(key), safe="-_.~"), quote(str(value), safe="-_.~"))
        for key, value in query.items()
    )
    return "&".join(f"{key}={value}" for key, value in pairs)


def build_canonical_request(
    method: str,
    canonical_path: str,
    host: str,
    amz_date: str,
    payload_hash: str = UNSIGNED_PAYLOAD,
    query: Optional[Mapping[str, str]] = None,
) -> str:
    canonical_headers = (
        f"host:{host}\n"
        f"x-amz-content-sha256:{payload_hash}\n"
        f"x-amz-date:{amz_date}\n"
    )
    return "\n".join([
        method,
        canonical_path,
        canonical_query_string(query),
        canonical_headers,
        SIGNED_HEADERS,
        payload_hash,
    ])


def _hmac_sha256(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(secret_key: str, date_stamp: str) -> bytes:
    """Chain HMAC-SHA256 over date, region, service and the terminator."""
    k_date = _hmac_sha256(f"AWS4{secret_key}".encode("utf-8"), date_stamp)
    k_region = _hmac_sha256(k_date, REGION)
    k_service = _hmac_sha256(k_region, SERVICE)
    return _hmac_sha256(k_service, TERMINATOR)


def sign_request(
    config: StorageConfig,
    method: str,
    canonical_path: str,
    timestamp: Union[str, datetime],
    payload_hash: str = UNSIGNED_PAYLOAD,
    query: Optional[Mapping[str, str]] = None,
) -> SignedRequest:
    """
    Produce the Authorization header value for one request.

    Pure function: the same config, method, path, query and timestamp
    always yield the same signature. Credentials are not validated here;
    bad ones are rejected by the storage service with 401/403.

    Args:
        config: Connection settings; `config.host` is the signed Host value
        method: HTTP method, e.g. "GET"
        canonical_path: URL-encoded path, e.g. "/bucket/my%20file.txt"
        timestamp: Request instant (ISO string or datetime)
        payload_hash: Hex SHA-256 of the body, or UNSIGNED-PAYLOAD
        query: Query parameters sent with the request, if any

    Returns:
        SignedRequest with the authorization value and the x-amz-date value
    """
    amz_date = normalize_timestamp(timestamp)
    date_stamp = amz_date[:8]
    scope = credential_scope(date_stamp)

    canonical_request = build_canonical_request(
        method, canonical_path, config.host, amz_date, payload_hash, query
    )
    canonical_request_hash = hashlib.sha256(canonical_request.encode("utf-8")).hexdigest()

    string_to_sign = "\n".join([ALGORITHM, amz_date, scope, canonical_request_hash])

    signing_key = derive_signing_key(config.secret_key, date_stamp)
    signature = hmac.new(
        signing_key, string_to_sign.encode("utf-8"), hashlib.sha256
    ).hexdigest()

    authorization = (
        f"{ALGORITHM} Credential={config.access_key}/{scope}, "
        f"SignedHeaders={SIGNED_HEADERS}, Signature={signature}"
    )

    return SignedRequest(authorization=authorization, amz_date=amz_date)
