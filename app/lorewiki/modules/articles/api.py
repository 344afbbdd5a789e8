from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from app.lorewiki.db import article_store
from app.lorewiki.rbac import require_login

bp = Blueprint("articles", __name__)


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@bp.get("/articles")
def list_articles():
    items = article_store().list(
        category=request.args.get("category"),
        sort=request.args.get("sort"),
    )
    return jsonify({"ok": True, "items": items})


@bp.get("/articles/<slug>")
def get_article(slug: str):
    return jsonify({"ok": True, "article": article_store().get_by_slug(slug)})


@bp.get("/articles/<slug>/revisions")
def list_revisions(slug: str):
    return jsonify({"ok": True, "items": article_store().list_revisions(slug)})


@bp.get("/revisions/<int:revision_id>")
def get_revision(revision_id: int):
    return jsonify({"ok": True, "revision": article_store().get_revision(revision_id)})


@bp.post("/articles")
@require_login
def create_article():
    data = _payload()
    article = article_store().create(
        g.principal,
        data.get("title"),
        data.get("category"),
        data.get("content"),
    )
    return jsonify({"ok": True, "article": article}), 201


@bp.put("/articles/<int:article_id>")
@require_login
def update_article(article_id: int):
    data = _payload()
    article_store().update(g.principal, article_id, data.get("content"), data.get("summary"))
    return jsonify({"ok": True})


@bp.post("/articles/<slug>/restore/<int:revision_id>")
@require_login
def restore_revision(slug: str, revision_id: int):
    article_store().restore(g.principal, slug, revision_id)
    return jsonify({"ok": True})


@bp.delete("/articles/<int:article_id>")
@require_login
def delete_article(article_id: int):
    article_store().delete(g.principal, article_id)
    return jsonify({"ok": True})
