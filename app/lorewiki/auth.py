from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, g, jsonify, request, session
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from app.lorewiki.audit import record_event
from app.lorewiki.constants import MIN_PASSWORD_LENGTH
from app.lorewiki.db import db_session
from app.lorewiki.models import User
from app.lorewiki.rbac import Principal, require_login
from app.lorewiki.utils import clean_str, utcnow

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds


def _check_rate_limit(ip: str) -> bool:
    now = utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > cutoff]
    return len(_login_attempts[ip]) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(utcnow())


def _payload() -> dict:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def load_current_user() -> None:
    """
    Loads g.current_user / g.principal from the signed session cookie.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.current_user = None
    g.principal = None
    if request.path.startswith(("/static/", "/health", "/healthz")):
        return

    user_id = session.get("user_id")
    if not user_id:
        return

    try:
        s = db_session()
        user = s.get(User, int(user_id))
    except Exception as e:
        current_app.logger.error("load_current_user DB error (clearing session): %s", e)
        session.pop("user_id", None)
        return
    if not user or not user.is_active:
        session.pop("user_id", None)
        return
    g.current_user = user
    g.principal = Principal.from_user(user)


@bp.post("/register")
def register():
    data = _payload()
    username = clean_str(data.get("username"))
    email = clean_str(data.get("email")).lower()
    password = data.get("password") if isinstance(data.get("password"), str) else ""

    if not username or not email or not password:
        return jsonify({"ok": False, "error": "username, email, password required", "kind": "invalid_argument"}), 400
    if len(password) < MIN_PASSWORD_LENGTH:
        return (
            jsonify(
                {
                    "ok": False,
                    "error": f"password must be at least {MIN_PASSWORD_LENGTH} chars",
                    "kind": "invalid_argument",
                }
            ),
            400,
        )

    s = db_session()
    user = User(username=username, email=email, password_hash=generate_password_hash(password))
    try:
        s.add(user)
        s.flush()
        record_event(s, actor_id=user.id, action="auth.register", entity_type="User", entity_id=str(user.id))
        s.commit()
    except IntegrityError:
        s.rollback()
        return jsonify({"ok": False, "error": "username or email already exists", "kind": "conflict"}), 409

    current_app.logger.info("Registered user id=%s username=%s", user.id, user.username)
    return jsonify({"ok": True, "user": user.public_dict()}), 201


@bp.post("/login")
def login():
    data = _payload()
    email = clean_str(data.get("email")).lower()
    password = data.get("password") if isinstance(data.get("password"), str) else ""
    ip = request.remote_addr or "unknown"

    if not email or not password:
        return jsonify({"ok": False, "error": "email and password required", "kind": "invalid_argument"}), 400

    if _check_rate_limit(ip):
        return jsonify({"ok": False, "error": "too many login attempts", "kind": "rate_limited"}), 429

    _record_attempt(ip)

    s = db_session()
    user = s.query(User).filter(User.email == email).one_or_none()
    if not user or not user.is_active or not check_password_hash(user.password_hash, password):
        record_event(
            s,
            actor_id=None,
            action="auth.login_failed",
            entity_type="User",
            entity_id=email,
            reason="Invalid credentials",
        )
        s.commit()
        return jsonify({"ok": False, "error": "invalid credentials", "kind": "unauthenticated"}), 401

    session["user_id"] = user.id
    _login_attempts[ip].clear()
    record_event(s, actor_id=user.id, action="auth.login", entity_type="User", entity_id=str(user.id))
    s.commit()
    return jsonify({"ok": True, "user": user.public_dict()})


@bp.post("/logout")
def logout():
    user = getattr(g, "current_user", None)
    if user:
        s = db_session()
        record_event(s, actor_id=user.id, action="auth.logout", entity_type="User", entity_id=str(user.id))
        s.commit()
    session.pop("user_id", None)
    return jsonify({"ok": True})


@bp.get("/me")
@require_login
def me():
    return jsonify({"ok": True, "user": g.current_user.public_dict()})
