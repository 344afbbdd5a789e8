"""HTTP vertical slice for the articles module."""
import pytest
from werkzeug.security import generate_password_hash

from app.lorewiki import create_app
from app.lorewiki.db import session_scope
from app.lorewiki.models import AuditEvent, Base, User


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        s.add_all(
            [
                User(username="alice", email="alice@example.com", password_hash=generate_password_hash("pw")),
                User(username="bob", email="bob@example.com", password_hash=generate_password_hash("pw")),
                User(
                    username="root",
                    email="root@example.com",
                    password_hash=generate_password_hash("pw"),
                    is_admin=True,
                ),
            ]
        )
    return app


def _client_for(app, email):
    c = app.test_client()
    r = c.post("/api/auth/login", json={"email": email, "password": "pw"})
    assert r.status_code == 200
    return c


@pytest.fixture()
def alice(app):
    return _client_for(app, "alice@example.com")


@pytest.fixture()
def bob(app):
    return _client_for(app, "bob@example.com")


@pytest.fixture()
def admin(app):
    return _client_for(app, "root@example.com")


def _create(client, title="Elder Dragon!", content="v1", category="character"):
    return client.post("/api/articles", json={"title": title, "content": content, "category": category})


def test_create_and_read(alice, app):
    r = _create(alice)
    assert r.status_code == 201
    article = r.json["article"]
    assert article["slug"] == "elder-dragon"
    assert article["category"] == "character"

    anon = app.test_client()
    r = anon.get("/api/articles/elder-dragon")
    assert r.status_code == 200
    assert r.json["article"]["content"] == "v1"
    assert r.json["article"]["current_revision_id"] is not None


def test_duplicate_slug_conflict(alice, bob):
    assert _create(alice).status_code == 201
    r = _create(bob, title="Elder Dragon")
    assert r.status_code == 409
    assert r.json == {"ok": False, "error": "slug already exists", "kind": "conflict"}


def test_create_validation(alice):
    r = alice.post("/api/articles", json={"title": "", "content": "x"})
    assert r.status_code == 400
    assert r.json["kind"] == "invalid_argument"

    r = alice.post("/api/articles", json={"title": "!!!", "content": "x"})
    assert r.status_code == 400
    assert r.json["error"] == "invalid title"


def test_anonymous_mutations_need_login(app, alice):
    article_id = _create(alice).json["article"]["id"]
    anon = app.test_client()
    assert anon.post("/api/articles", json={"title": "T", "content": "c"}).status_code == 401
    assert anon.put(f"/api/articles/{article_id}", json={"content": "x"}).status_code == 401
    assert anon.post("/api/articles/elder-dragon/restore/1").status_code == 401
    assert anon.delete(f"/api/articles/{article_id}").status_code == 401


def test_edit_restore_history(alice, app):
    article_id = _create(alice).json["article"]["id"]

    r = alice.put(f"/api/articles/{article_id}", json={"content": "v2", "summary": "fix typo"})
    assert r.status_code == 200
    assert r.json == {"ok": True}

    items = app.test_client().get("/api/articles/elder-dragon/revisions").json["items"]
    assert len(items) == 2
    assert items[0]["summary"] == "fix typo"
    assert items[0]["editor"] == "alice"
    first_id = items[1]["id"]

    r = alice.post(f"/api/articles/elder-dragon/restore/{first_id}")
    assert r.status_code == 200

    items = app.test_client().get("/api/articles/elder-dragon/revisions").json["items"]
    assert len(items) == 3
    assert items[0]["summary"] == f"Restore from revision {first_id}"
    assert alice.get("/api/articles/elder-dragon").json["article"]["content"] == "v1"

    r = app.test_client().get(f"/api/revisions/{first_id}")
    assert r.status_code == 200
    assert r.json["revision"]["content"] == "v1"
    assert r.json["revision"]["summary"] == "Initial creation"


def test_non_owner_forbidden(alice, bob):
    article_id = _create(alice).json["article"]["id"]
    r = bob.put(f"/api/articles/{article_id}", json={"content": "mine"})
    assert r.status_code == 403
    assert r.json["kind"] == "forbidden"
    assert bob.post("/api/articles/elder-dragon/restore/1").status_code == 403
    assert bob.delete(f"/api/articles/{article_id}").status_code == 403
    assert bob.get("/api/articles/elder-dragon").json["article"]["content"] == "v1"


def test_not_found_responses(alice):
    assert alice.get("/api/articles/missing").status_code == 404
    assert alice.get("/api/articles/missing/revisions").status_code == 404
    assert alice.get("/api/revisions/999").status_code == 404
    assert alice.put("/api/articles/999", json={"content": "x"}).status_code == 404
    assert alice.post("/api/articles/missing/restore/1").status_code == 404
    assert alice.delete("/api/articles/999").status_code == 404


def test_admin_deletes_others_article(alice, admin, app):
    article_id = _create(alice).json["article"]["id"]
    r = admin.delete(f"/api/articles/{article_id}")
    assert r.status_code == 200
    assert alice.get("/api/articles/elder-dragon").status_code == 404
    assert alice.get("/api/articles/elder-dragon/revisions").status_code == 404

    with session_scope(app) as s:
        actions = [e.action for e in s.query(AuditEvent).order_by(AuditEvent.id.asc()).all()]
    assert "article.create" in actions
    assert "article.delete" in actions


def test_list_articles(alice, app):
    _create(alice, title="Zephyr", category="character")
    _create(alice, title="Amulet", category="item")
    anon = app.test_client()

    r = anon.get("/api/articles?sort=title")
    assert [a["slug"] for a in r.json["items"]] == ["amulet", "zephyr"]

    r = anon.get("/api/articles?category=item")
    assert [a["slug"] for a in r.json["items"]] == ["amulet"]

    r = anon.get("/api/articles")
    assert [a["slug"] for a in r.json["items"]] == ["amulet", "zephyr"]
