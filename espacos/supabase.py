"""
espacos.supabase
Pure data-access helpers over supabase-py.  Contains **no business logic**.

• make_client()   – fresh client (one per browser session in the app)
• SpacesGateway   – insert / update / delete / select rows of `spaces`
• MediaStorage    – upload / remove objects in the media bucket

Every exception raised by postgrest / storage3 is re-raised as
`GatewayError` with the backend's message, so callers never import the
client libraries' exception types.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from espacos.config import Settings, get_settings
from espacos.errors import GatewayError

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────────────────────
# 1.  Supabase client (one per browser session)
# ────────────────────────────────────────────────────────────────────────────
def make_client(settings: Settings | None = None) -> Client:
    """
    Fresh client.  The client carries the signed-in user's session, so
    the Streamlit app keeps one per browser session, never per process.
    """
    settings = settings or get_settings()
    if not settings.supabase_url or not settings.supabase_key:
        raise RuntimeError("SUPABASE_URL / SUPABASE_KEY env vars must be set")
    return create_client(settings.supabase_url, settings.supabase_key)


def _message(exc: Exception) -> str:
    # postgrest APIError keeps the server text in .message
    return getattr(exc, "message", None) or str(exc)


# ────────────────────────────────────────────────────────────────────────────
# 2.  Table gateway
# ────────────────────────────────────────────────────────────────────────────
class SpacesGateway:
    """CRUD over the `spaces` table."""

    def __init__(self, client: Client, table: str = "spaces"):
        self._client = client
        self.table = table

    def _q(self):
        return self._client.table(self.table)

    def insert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        try:
            rows = self._q().insert(record).execute().data or []
        except Exception as exc:
            logger.error("insert into %s failed: %s", self.table, exc)
            raise GatewayError(_message(exc)) from exc
        return rows[0] if rows else dict(record)

    def update(self, space_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        try:
            rows = self._q().update(patch).eq("id", space_id).execute().data or []
        except Exception as exc:
            logger.error("update %s/%s failed: %s", self.table, space_id, exc)
            raise GatewayError(_message(exc)) from exc
        if not rows:
            raise GatewayError(f"space {space_id} not found")
        return rows[0]

    def delete(self, space_id: str) -> None:
        try:
            self._q().delete().eq("id", space_id).execute()
        except Exception as exc:
            logger.error("delete %s/%s failed: %s", self.table, space_id, exc)
            raise GatewayError(_message(exc)) from exc

    def select_by_id(self, space_id: str) -> Optional[Dict[str, Any]]:
        try:
            rows = (
                self._q()
                .select("*")
                .eq("id", space_id)
                .limit(1)
                .execute()
                .data
                or []
            )
        except Exception as exc:
            raise GatewayError(_message(exc)) from exc
        return rows[0] if rows else None

    def select_all(self, order_by: str = "created_at", descending: bool = True) -> List[Dict[str, Any]]:
        try:
            return (
                self._q()
                .select("*")
                .order(order_by, desc=descending)
                .execute()
                .data
                or []
            )
        except Exception as exc:
            raise GatewayError(_message(exc)) from exc


# ────────────────────────────────────────────────────────────────────────────
# 3.  Object storage
# ────────────────────────────────────────────────────────────────────────────
class MediaStorage:
    """One bucket in Supabase Storage."""

    def __init__(self, client: Client, bucket: str = "spaces"):
        self._client = client
        self.bucket = bucket

    def _b(self):
        return self._client.storage.from_(self.bucket)

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Upload and return the object's public URL."""
        try:
            # storage3 client: option values must be *strings*
            self._b().upload(
                path,
                data,
                {"content-type": content_type, "cache-control": "3600", "upsert": "false"},
            )
            url = self._b().get_public_url(path)
        except Exception as exc:
            logger.error("upload %s/%s failed: %s", self.bucket, path, exc)
            raise GatewayError(_message(exc)) from exc
        if not url:
            raise GatewayError("could not resolve public URL")
        return url.rstrip("?")

    def remove(self, path: str) -> None:
        try:
            self._b().remove([path])
        except Exception as exc:
            raise GatewayError(_message(exc)) from exc


def default_gateways(client: Client,
                     settings: Settings | None = None) -> tuple[SpacesGateway, MediaStorage]:
    settings = settings or get_settings()
    return (SpacesGateway(client, settings.spaces_table),
            MediaStorage(client, settings.media_bucket))


__all__ = ["make_client", "SpacesGateway", "MediaStorage", "default_gateways"]
