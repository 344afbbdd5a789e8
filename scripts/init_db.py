import os
import sys
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.lorewiki.models import Base, User  # noqa: E402


@contextmanager
def _session_scope(database_url: str, *, create_tables: bool):
    engine = create_engine(database_url, future=True, pool_pre_ping=True)
    if create_tables:
        Base.metadata.create_all(bind=engine)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
        engine.dispose()


def seed_admin(*, database_url: str | None = None, create_tables: bool = False) -> User:
    """
    Ensure an administrator account exists. Idempotent: an existing account
    keeps its password and is only promoted to admin.
    """
    admin_username = (os.environ.get("ADMIN_USERNAME") or "admin").strip()
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@lorewiki.local").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me-now"

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///lorewiki.db").strip()

    with _session_scope(db_url, create_tables=create_tables) as s:
        user = s.query(User).filter(User.email == admin_email).one_or_none()
        if not user:
            user = User(
                username=admin_username,
                email=admin_email,
                password_hash=generate_password_hash(admin_password),
                is_active=True,
                is_admin=True,
            )
            s.add(user)
        user.is_admin = True
        s.flush()

    print("Initialized database (seed_admin).")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")
    return user


def main() -> None:
    # Local/dev convenience: create tables directly. Use `alembic upgrade head` for real deployments.
    create_tables = "--create-tables" in sys.argv[1:]
    seed_admin(database_url=None, create_tables=create_tables)


if __name__ == "__main__":
    main()
