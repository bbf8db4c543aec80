"""
espacos.auth
────────────
Identity helpers.  Signing in is Supabase Auth's job; this module only
turns the current session into an `Actor`.

`Actor.can_manage` comes from the user's `app_metadata.role`, which only
the service role can write, so the flag is decided server-side.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from supabase import Client

from espacos.config import get_settings
from espacos.errors import AuthenticationError, GatewayError, PermissionDenied
from espacos.schema import Actor

logger = logging.getLogger(__name__)


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def actor_from_user(user: Any, manager_roles: Optional[Iterable[str]] = None) -> Optional[Actor]:
    """Build an Actor from a gotrue `User` (or an equivalent dict)."""
    if user is None or not _get(user, "id"):
        return None
    roles = set(manager_roles if manager_roles is not None else get_settings().manager_roles)
    meta = _get(user, "app_metadata") or {}
    role = meta.get("role") if isinstance(meta, dict) else None
    return Actor(
        id=str(_get(user, "id")),
        email=_get(user, "email"),
        role=role,
        can_manage=role in roles,
    )


def resolve_actor(client: Client) -> Optional[Actor]:
    """Actor for the client's current session, or None when signed out."""
    try:
        resp = client.auth.get_user()
    except Exception as exc:
        logger.warning("auth.get_user failed: %s", exc)
        return None
    return actor_from_user(_get(resp, "user") if resp is not None else None)


def sign_in(client: Client, email: str, password: str) -> Actor:
    try:
        resp = client.auth.sign_in_with_password({"email": email, "password": password})
    except Exception as exc:
        raise AuthenticationError(getattr(exc, "message", None) or str(exc)) from exc
    actor = actor_from_user(_get(resp, "user"))
    if actor is None:
        raise AuthenticationError("sign-in returned no user")
    logger.info("signed in %s (role=%s)", actor.email, actor.role)
    return actor


def sign_out(client: Client) -> None:
    try:
        client.auth.sign_out()
    except Exception as exc:
        raise GatewayError(str(exc)) from exc


def require_manager(actor: Optional[Actor]) -> Actor:
    """Return `actor` if it may register / edit / delete spaces."""
    if actor is None:
        raise AuthenticationError("Authentication error. Please log in again.")
    if not actor.can_manage:
        raise PermissionDenied("your account cannot manage spaces")
    return actor


__all__ = ["actor_from_user", "resolve_actor", "sign_in", "sign_out", "require_manager"]
