"""
Error taxonomy shared by the article store and the HTTP layer.

Each error carries a stable ``kind`` (what callers switch on) and the HTTP
status the transport maps it to. Messages are safe to show to end users.
"""

from __future__ import annotations


class WikiError(Exception):
    kind = "internal"
    status = 500
    default_message = "internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"ok": False, "error": self.message, "kind": self.kind}


class InvalidArgument(WikiError):
    kind = "invalid_argument"
    status = 400
    default_message = "invalid argument"


class Conflict(WikiError):
    kind = "conflict"
    status = 409
    default_message = "conflict"


class NotFound(WikiError):
    kind = "not_found"
    status = 404
    default_message = "not found"


class Forbidden(WikiError):
    kind = "forbidden"
    status = 403
    default_message = "forbidden"


class Internal(WikiError):
    kind = "internal"
    status = 500
    default_message = "internal storage error"
