"""
Object storage domain logic.

Contains the connection/object models, SigV4 signing, the listing
parser and size formatting.
"""

from .formatting import format_file_size
from .listing import ListingPage, ListingParseError, parse_list_objects
from .models import ObjectEntry, SignedRequest, StorageConfig, strip_scheme
from .signing import UNSIGNED_PAYLOAD, sign_request

__all__ = [
    "ListingPage",
    "ListingParseError",
    "ObjectEntry",
    "SignedRequest",
    "StorageConfig",
    "UNSIGNED_PAYLOAD",
    "format_file_size",
    "parse_list_objects",
    "sign_request",
    "strip_scheme",
]
