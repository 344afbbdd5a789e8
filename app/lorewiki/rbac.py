from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from typing import Any

from flask import g, jsonify

from app.lorewiki.models import User


@dataclass(frozen=True)
class Principal:
    """Authenticated actor as resolved by the auth layer. Trusted as-is."""

    id: int | str
    is_admin: bool = False
    username: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(id=user.id, is_admin=bool(user.is_admin), username=user.username)


def can_mutate(owner_id: object, principal: Principal | None) -> bool:
    """
    Owner-or-admin gate for update, restore and delete.

    Ids are compared by value, so an owner stored as ``7`` matches a
    principal carrying ``"7"``.
    """
    if principal is None:
        return False
    if principal.is_admin:
        return True
    if owner_id is None or principal.id is None:
        return False
    return str(owner_id).strip() == str(principal.id).strip()


def require_login(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        principal: Principal | None = getattr(g, "principal", None)
        if principal is None:
            return jsonify({"ok": False, "error": "authentication required", "kind": "unauthenticated"}), 401
        return fn(*args, **kwargs)

    return wrapped
