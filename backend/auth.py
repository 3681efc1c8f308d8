from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status
from supabase import Client, create_client

from config import settings
from radar.errors import AuthError

_client_lock = threading.Lock()
_auth_client: Optional[Client] = None


@dataclass
class CurrentUser:
    id: str
    email: Optional[str] = None


def get_auth_client() -> Client:
    global _auth_client
    if _auth_client is None:
        with _client_lock:
            if _auth_client is None:
                if not settings.supabase_url or not settings.supabase_key:
                    raise HTTPException(
                        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        detail="Supabase auth is not configured",
                    )
                _auth_client = create_client(settings.supabase_url, settings.supabase_key)
    return _auth_client


def bearer_token(request: Request) -> str:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Unauthorized")
    return token.strip()


def resolve_user(client: Any, token: str) -> CurrentUser:
    """Look up the Supabase user behind an access token."""
    try:
        response = client.auth.get_user(token)
    except Exception as exc:
        raise AuthError("Unauthorized") from exc

    user = getattr(response, "user", None)
    if user is None or not getattr(user, "id", None):
        raise AuthError("Unauthorized")
    return CurrentUser(id=str(user.id), email=getattr(user, "email", None))


def get_current_user(
    request: Request,
    client: Client = Depends(get_auth_client),
) -> CurrentUser:
    return resolve_user(client, bearer_token(request))
