"""
espacos.spaces
--------------
Catalogue helpers behind the list and detail views.

Exposes:
- list_spaces: every row, newest first
- search_spaces: case-insensitive filter on name / description / address
- get_space: one row as a `Space`, or None
- delete_space: authorized delete
- maps_url / rating_label: display helpers
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional
from urllib.parse import quote_plus

from espacos.auth import require_manager
from espacos.schema import Actor, Space, to_record

logger = logging.getLogger(__name__)


def list_spaces(gateway) -> List[Space]:
    return [to_record(r) for r in gateway.select_all(order_by="created_at", descending=True)]


def search_spaces(spaces: Iterable[Space], query: str) -> List[Space]:
    q = (query or "").strip().lower()
    if not q:
        return list(spaces)
    return [
        s for s in spaces
        if q in s.name.lower() or q in s.description.lower() or q in s.address.lower()
    ]


def get_space(gateway, space_id: str) -> Optional[Space]:
    row = gateway.select_by_id(space_id)
    return to_record(row) if row is not None else None


def delete_space(gateway, space_id: str, actor: Optional[Actor]) -> None:
    """Delete a space; GatewayError propagates to the view."""
    actor = require_manager(actor)
    gateway.delete(space_id)
    logger.info("space %s deleted by %s", space_id, actor.id)


def maps_url(address: str) -> str:
    return "https://www.google.com/maps/search/?api=1&query=" + quote_plus(" ".join(address.split()))


def rating_label(rating: float | None, empty: str = "N/A") -> str:
    return f"{rating:.1f}" if rating else empty


__all__ = ["list_spaces", "search_spaces", "get_space", "delete_space", "maps_url", "rating_label"]
