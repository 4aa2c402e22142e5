"""
Parser for ListObjectsV2 XML responses.

Only the first page is read. S3 answers with at most 1000 keys per page
and flags the rest with <IsTruncated>true</IsTruncated>; continuation
tokens are not followed, so callers see the first page only.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from .models import EPOCH, ObjectEntry


class ListingParseError(ValueError):
    """Raised when a listing body is not well-formed XML."""
    pass


@dataclass
class ListingPage:
    """Entries from one listing response plus its truncation flag."""
    entries: list[ObjectEntry] = field(default_factory=list)
    is_truncated: bool = False


def _local_name(tag: str) -> str:
    # "{http://s3.amazonaws.com/doc/2006-03-01/}Contents" -> "Contents"
    return tag.rsplit("}", 1)[-1]


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    for child in element:
        if _local_name(child.tag) == name:
            return child.text or ""
    return None


def _parse_size(text: Optional[str]) -> int:
    try:
        return max(int((text or "0").strip()), 0)
    except ValueError:
        return 0


def _parse_last_modified(text: Optional[str]) -> datetime:
    if not text:
        return EPOCH
    try:
        return datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
    except ValueError:
        return EPOCH


def _parse_etag(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    return text.replace('"', "")


def parse_list_objects(body: Union[str, bytes]) -> ListingPage:
    """
    Extract every <Contents> element of a listing body, in document order.

    Missing fields fall back to an empty name, zero size, the Unix epoch
    and no ETag. Namespaced and non-namespaced documents are both accepted.

    Raises:
        ListingParseError: If the body is not parseable XML
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise ListingParseError(f"Invalid listing response: {e}") from e

    page = ListingPage()

    for element in root.iter():
        name = _local_name(element.tag)
        if name == "IsTruncated":
            page.is_truncated = (element.text or "").strip().lower() == "true"
        elif name == "Contents":
            page.entries.append(ObjectEntry(
                name=_child_text(element, "Key") or "",
                size=_parse_size(_child_text(element, "Size")),
                last_modified=_parse_last_modified(_child_text(element, "LastModified")),
                etag=_parse_etag(_child_text(element, "ETag")),
            ))

    return page
