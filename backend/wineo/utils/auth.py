from __future__ import annotations

from functools import wraps

from flask import g, request

from wineo.errors import Forbidden
from wineo.models import User
from wineo.services import auth_service


def require_auth(view):
    """Resolve the bearer token to a live user and expose it as ``g.current_user``."""

    @wraps(view)
    def _wrapped(*args, **kwargs):
        g.current_user = auth_service.authenticate(request.headers.get("Authorization", ""))
        return view(*args, **kwargs)

    return _wrapped


def current_user() -> User:
    return g.current_user


def ensure_owner_or_admin(user: User, owner_id: str) -> None:
    if user.is_admin or user.id == owner_id:
        return
    raise Forbidden("Only the owner can modify this listing")
