from flask import Blueprint, current_app
from sqlalchemy import text

from app.lorewiki import auth

bp = Blueprint("routes", __name__)


@bp.get("/health")
@bp.get("/api/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True, "message": "backend is running"}


@bp.get("/healthz")
def healthz():
    """
    Fast liveness check. No DB access, minimal overhead.
    """
    return "ok", 200


@bp.get("/health/db")
@bp.get("/api/db-test")
def health_db():
    engine = current_app.extensions["sqlalchemy_engine"]
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception:
        current_app.logger.exception("Database health check failed")
        return {"ok": False, "error": "database unavailable"}, 503
    return {"ok": True}


# Older clients call /api/me; same view as /api/auth/me.
bp.add_url_rule("/api/me", endpoint="me", view_func=auth.me, methods=["GET"])
