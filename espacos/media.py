"""
espacos.media
─────────────
Storage path helpers + the transient preview registry.

A preview is a `blob:<uuid>` reference to bytes kept in memory while the
user is still in the wizard.  The wizard revokes the previews its draft
references once the space has been saved.
"""
from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

BLOB_SCHEME = "blob:"

_UNSAFE_RE = re.compile(r"[^a-z0-9.]", re.IGNORECASE)


def sanitize_name(filename: str) -> str:
    return _UNSAFE_RE.sub("_", filename)


def object_path(actor_id: str, filename: str, now_ms: Optional[int] = None) -> str:
    """`<actor_id>/<epoch_ms>-<sanitized name>`, one folder per uploader."""
    stamp = int(time.time() * 1000) if now_ms is None else now_ms
    return f"{actor_id}/{stamp}-{sanitize_name(filename)}"


def path_from_url(url: str, bucket: str) -> Optional[str]:
    """Recover the object path from a public URL (None when it isn't ours)."""
    m = re.search(rf"/{re.escape(bucket)}/(.+)$", url or "")
    return m.group(1) if m else None


def is_transient(url: str) -> bool:
    return isinstance(url, str) and url.startswith(BLOB_SCHEME)


class PreviewRegistry:
    """In-memory `blob:` references → (bytes, content type)."""

    def __init__(self) -> None:
        self._items: Dict[str, Tuple[bytes, str]] = {}

    def create(self, data: bytes, content_type: str = "application/octet-stream") -> str:
        url = f"{BLOB_SCHEME}{uuid.uuid4().hex}"
        self._items[url] = (data, content_type)
        return url

    def get(self, url: str) -> Optional[Tuple[bytes, str]]:
        return self._items.get(url)

    def revoke(self, url: str) -> bool:
        if self._items.pop(url, None) is None:
            return False
        logger.debug("revoked preview %s", url)
        return True

    def __contains__(self, url: object) -> bool:
        return url in self._items

    def __len__(self) -> int:
        return len(self._items)


__all__ = [
    "BLOB_SCHEME", "sanitize_name", "object_path", "path_from_url",
    "is_transient", "PreviewRegistry",
]
