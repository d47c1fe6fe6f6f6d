# flavatix_backend/app/services/auth.py
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Header
from supabase import Client, create_client

from flavatix_backend.app.config import SUPABASE_ANON_KEY, SUPABASE_URL
from .errors import Forbidden, Unauthorized

log = logging.getLogger("flavatix.auth")

# -----------------------------------------------------------------------------
# Token verification is delegated: the hosted auth service when configured,
# otherwise (local development) the bearer token is taken as the user id.
# -----------------------------------------------------------------------------

def auth_configured() -> bool:
    return bool(SUPABASE_URL and SUPABASE_ANON_KEY)

@lru_cache(maxsize=1)
def _auth_client() -> Client:
    return create_client(SUPABASE_URL, SUPABASE_ANON_KEY)

def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()

def resolve_user_id(token: str) -> str:
    if not auth_configured():
        return token
    try:
        resp = _auth_client().auth.get_user(token)
    except Exception as e:
        log.info(f"[auth] token rejected: {e}")
        raise Unauthorized("Invalid or expired token") from e
    user = getattr(resp, "user", None)
    if user is None or not getattr(user, "id", None):
        raise Unauthorized("Invalid or expired token")
    return str(user.id)

def current_user(authorization: Optional[str] = Header(default=None)) -> str:
    """FastAPI dependency: authenticated user id, 401 otherwise."""
    token = _bearer_token(authorization)
    if not token:
        raise Unauthorized("Unauthorized")
    return resolve_user_id(token)

def optional_user(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    token = _bearer_token(authorization)
    if not token:
        return None
    try:
        return resolve_user_id(token)
    except Unauthorized:
        return None

def ensure_same_user(body_user_id: Optional[str], caller: str) -> str:
    """A body-supplied user_id must name the caller."""
    if body_user_id and body_user_id != caller:
        raise Forbidden("user_id does not match the authenticated user")
    return caller
