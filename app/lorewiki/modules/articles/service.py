from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select, update

from app.lorewiki.constants import CATEGORIES, DEFAULT_CATEGORY, DEFAULT_SUMMARY_MAX_LENGTH
from app.lorewiki.modules.articles.models import Article, ArticleRevision
from app.lorewiki.utils import utcnow

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


_SLUG_DROP = re.compile(r"[^a-z0-9\s-]")
_SLUG_SPACE = re.compile(r"\s+")
_SLUG_DASHES = re.compile(r"-+")


def slugify(title: object) -> str:
    """
    Turn a title into a URL-safe key: lowercase ``[a-z0-9-]``, whitespace runs
    become one hyphen, hyphen runs collapse, no leading/trailing hyphen.

    Returns "" for blank or punctuation-only titles; callers must reject that.
    """
    if not isinstance(title, str):
        return ""
    out = title.strip().lower()
    out = _SLUG_DROP.sub("", out)
    out = _SLUG_SPACE.sub("-", out)
    out = _SLUG_DASHES.sub("-", out)
    return out.strip("-")


def normalize_category(value: object) -> str:
    if not isinstance(value, str):
        return DEFAULT_CATEGORY
    c = value.strip().lower()
    return c if c in CATEGORIES else DEFAULT_CATEGORY


def clamp_summary(summary: object, max_length: int = DEFAULT_SUMMARY_MAX_LENGTH) -> str | None:
    """Trim and cap a revision summary; blank or non-string input means no summary."""
    if not isinstance(summary, str):
        return None
    summary = summary.strip()
    if not summary:
        return None
    return summary[:max_length]


def _lock_article(s: "Session", criterion) -> None:
    # A no-op write is the first statement of the transaction: it takes the
    # row lock on Postgres and the database write lock on SQLite, where
    # SELECT ... FOR UPDATE is ignored. Everything read afterwards is read
    # under that lock.
    s.execute(
        update(Article)
        .where(criterion)
        .values(updated_at=Article.updated_at)
        .execution_options(synchronize_session=False)
    )


def get_article_by_id(s: "Session", article_id: int, *, for_update: bool = False) -> Article | None:
    stmt = select(Article).where(Article.id == article_id)
    if for_update:
        _lock_article(s, Article.id == article_id)
        stmt = stmt.with_for_update()
    return s.execute(stmt).scalar_one_or_none()


def get_article_by_slug(s: "Session", slug: str, *, for_update: bool = False) -> Article | None:
    stmt = select(Article).where(Article.slug == slug)
    if for_update:
        _lock_article(s, Article.slug == slug)
        stmt = stmt.with_for_update()
    return s.execute(stmt).scalar_one_or_none()


def slug_exists(s: "Session", slug: str) -> bool:
    return s.execute(select(Article.id).where(Article.slug == slug)).first() is not None


def get_revision_of(s: "Session", article: Article, revision_id: int) -> ArticleRevision | None:
    """Revision lookup constrained to one article; foreign revisions are treated as absent."""
    return s.execute(
        select(ArticleRevision).where(
            ArticleRevision.id == revision_id,
            ArticleRevision.article_id == article.id,
        )
    ).scalar_one_or_none()


def _next_timestamp(previous: datetime | None) -> datetime:
    # updated_at / created_at must strictly increase per article even when two
    # writes land on the same clock tick.
    now = utcnow()
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


def append_revision(
    s: "Session",
    article: Article,
    *,
    editor_id: int | str,
    content: str,
    summary: str | None,
) -> ArticleRevision:
    """Insert a new log entry and flush so its id is assigned."""
    rev = ArticleRevision(
        article_id=article.id,
        editor_id=editor_id,
        content=content,
        summary=summary,
        created_at=_next_timestamp(latest_revision_at(s, article)),
    )
    s.add(rev)
    s.flush()
    return rev


def repoint(article: Article, revision: ArticleRevision) -> None:
    if revision.article_id != article.id:
        raise ValueError(f"Revision {revision.id} does not belong to article {article.id}.")
    article.current_revision_id = revision.id
    article.updated_at = _next_timestamp(article.updated_at)


def latest_revision_at(s: "Session", article: Article) -> datetime | None:
    return s.execute(
        select(ArticleRevision.created_at)
        .where(ArticleRevision.article_id == article.id)
        .order_by(ArticleRevision.created_at.desc(), ArticleRevision.id.desc())
        .limit(1)
    ).scalar_one_or_none()
