"""
Versioned article store.

An article is a movable pointer (``articles.current_revision_id``) into an
append-only log of full-content snapshots (``article_revisions``):

- create inserts the article, its first revision and the pointer together
- edit and restore each append exactly one revision and move the pointer to it
- restore copies old content into a *new* revision; old rows are never re-linked
- delete removes the article and its whole log at once

Every mutation runs in its own transaction; any failure rolls it back before
the error reaches the caller. Concurrent writers on one article serialize on
the article row, which each mutation locks with a no-op UPDATE before reading
anything; the last commit wins and stale edits are not detected.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from collections.abc import Generator

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.lorewiki.audit import record_event
from app.lorewiki.constants import (
    DEFAULT_SUMMARY_MAX_LENGTH,
    INITIAL_REVISION_SUMMARY,
    RESTORE_SUMMARY_TEMPLATE,
    SORT_TITLE,
    TITLE_MAX_LENGTH,
)
from app.lorewiki.errors import Conflict, Forbidden, Internal, InvalidArgument, NotFound
from app.lorewiki.models import User
from app.lorewiki.modules.articles.models import Article, ArticleRevision
from app.lorewiki.modules.articles.service import (
    append_revision,
    clamp_summary,
    get_article_by_id,
    get_article_by_slug,
    get_revision_of,
    normalize_category,
    repoint,
    slug_exists,
    slugify,
)
from app.lorewiki.rbac import Principal, can_mutate
from app.lorewiki.utils import iso

logger = logging.getLogger(__name__)


class ArticleStore:
    def __init__(self, session_factory: sessionmaker, *, summary_max_length: int = DEFAULT_SUMMARY_MAX_LENGTH) -> None:
        self._session_factory = session_factory
        self.summary_max_length = summary_max_length

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """
        One unit of work: commit on success, roll back on any exception
        (including cancellation), always release the session.
        """
        s: Session = self._session_factory()
        try:
            yield s
            s.commit()
        except IntegrityError:
            s.rollback()
            raise
        except SQLAlchemyError as e:
            s.rollback()
            logger.exception("Article store transaction failed")
            raise Internal() from e
        except BaseException:
            s.rollback()
            raise
        finally:
            s.close()

    @contextmanager
    def _reader(self) -> Generator[Session, None, None]:
        s: Session = self._session_factory()
        try:
            yield s
        except SQLAlchemyError as e:
            logger.exception("Article store read failed")
            raise Internal() from e
        finally:
            s.close()

    # ------------------------------------------------------------------
    # reads (no authorization)
    # ------------------------------------------------------------------

    def get_by_slug(self, slug: str) -> dict:
        with self._reader() as s:
            row = s.execute(
                select(Article, ArticleRevision.content)
                .outerjoin(
                    ArticleRevision,
                    (ArticleRevision.id == Article.current_revision_id)
                    & (ArticleRevision.article_id == Article.id),
                )
                .where(Article.slug == slug)
            ).first()
            if row is None:
                raise NotFound("article not found")
            article, content = row
            out = article.public_dict()
            out["content"] = content or ""
            out["current_revision_id"] = article.current_revision_id
            return out

    def list(self, category: str | None = None, sort: str | None = None) -> list[dict]:
        stmt = select(Article)
        if category is not None and str(category).strip():
            stmt = stmt.where(Article.category == normalize_category(category))
        if (sort or "").strip().lower() == SORT_TITLE:
            stmt = stmt.order_by(Article.title.asc(), Article.id.asc())
        else:
            stmt = stmt.order_by(Article.updated_at.desc(), Article.id.desc())
        with self._reader() as s:
            return [a.public_dict() for a in s.execute(stmt).scalars().all()]

    def list_revisions(self, slug: str) -> list[dict]:
        with self._reader() as s:
            article = get_article_by_slug(s, slug)
            if article is None:
                raise NotFound("article not found")
            rows = s.execute(
                select(ArticleRevision, User.username)
                .outerjoin(User, User.id == ArticleRevision.editor_id)
                .where(ArticleRevision.article_id == article.id)
                .order_by(ArticleRevision.created_at.desc(), ArticleRevision.id.desc())
            ).all()
            return [
                {
                    "id": rev.id,
                    "created_at": iso(rev.created_at),
                    "summary": rev.summary,
                    "editor": editor,
                    "is_current": rev.id == article.current_revision_id,
                }
                for rev, editor in rows
            ]

    def get_revision(self, revision_id: int) -> dict:
        with self._reader() as s:
            row = s.execute(
                select(ArticleRevision, User.username)
                .outerjoin(User, User.id == ArticleRevision.editor_id)
                .where(ArticleRevision.id == revision_id)
            ).first()
            if row is None:
                raise NotFound("revision not found")
            rev, editor = row
            return {
                "id": rev.id,
                "article_id": rev.article_id,
                "created_at": iso(rev.created_at),
                "summary": rev.summary,
                "editor": editor,
                "content": rev.content or "",
            }

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------

    def create(self, principal: Principal, title: object, category: object, content: object) -> dict:
        if not isinstance(title, str) or not title.strip() or not isinstance(content, str) or not content:
            raise InvalidArgument("title and content required")
        if len(title.strip()) > TITLE_MAX_LENGTH:
            raise InvalidArgument(f"title must be at most {TITLE_MAX_LENGTH} characters")
        slug = slugify(title)
        if not slug:
            raise InvalidArgument("invalid title")
        final_category = normalize_category(category)

        try:
            with self.transaction() as s:
                if slug_exists(s, slug):
                    raise Conflict("slug already exists")
                article = Article(
                    slug=slug,
                    title=title.strip(),
                    category=final_category,
                    created_by=principal.id,
                    current_revision_id=None,
                )
                s.add(article)
                s.flush()

                rev = append_revision(
                    s,
                    article,
                    editor_id=principal.id,
                    content=content,
                    summary=clamp_summary(INITIAL_REVISION_SUMMARY, self.summary_max_length),
                )
                repoint(article, rev)

                record_event(
                    s,
                    actor_id=principal.id,
                    action="article.create",
                    entity_type="Article",
                    entity_id=str(article.id),
                    metadata={"slug": slug, "revision_id": rev.id, "category": final_category},
                )
                s.flush()
                out = article.public_dict()
        except IntegrityError as e:
            if "slug" not in str(e.orig).lower():
                logger.exception("Article create violated a constraint (slug=%s)", slug)
                raise Internal() from e
            # Lost a race with a concurrent create of the same slug.
            logger.info("Create rejected by unique constraint (slug=%s)", slug)
            raise Conflict("slug already exists") from e

        logger.info("Article created id=%s slug=%s by=%s", out["id"], slug, principal.id)
        return out

    def update(self, principal: Principal, article_id: int, content: object, summary: object = None) -> None:
        # Lookup, then gate, then payload: strangers get Forbidden whatever they send.
        with self._mutation() as s:
            article = get_article_by_id(s, article_id, for_update=True)
            if article is None:
                raise NotFound("article not found")
            self._authorize(article, principal, "update")
            if not isinstance(content, str) or not content:
                raise InvalidArgument("content required")

            rev = append_revision(
                s,
                article,
                editor_id=principal.id,
                content=content,
                summary=clamp_summary(summary, self.summary_max_length),
            )
            repoint(article, rev)
            record_event(
                s,
                actor_id=principal.id,
                action="article.edit",
                entity_type="Article",
                entity_id=str(article.id),
                reason=rev.summary,
                metadata={"slug": article.slug, "revision_id": rev.id},
            )
            revision_id = rev.id

        logger.info("Article edited id=%s revision=%s by=%s", article_id, revision_id, principal.id)

    def restore(self, principal: Principal, slug: str, revision_id: int) -> None:
        with self._mutation() as s:
            article = get_article_by_slug(s, slug, for_update=True)
            if article is None:
                raise NotFound("article not found")
            self._authorize(article, principal, "restore")

            target = get_revision_of(s, article, revision_id)
            if target is None:
                raise NotFound("revision not found")

            rev = append_revision(
                s,
                article,
                editor_id=principal.id,
                content=target.content,
                summary=clamp_summary(
                    RESTORE_SUMMARY_TEMPLATE.format(revision_id=target.id),
                    self.summary_max_length,
                ),
            )
            repoint(article, rev)
            record_event(
                s,
                actor_id=principal.id,
                action="article.restore",
                entity_type="Article",
                entity_id=str(article.id),
                metadata={"slug": article.slug, "restored_from": target.id, "revision_id": rev.id},
            )
            new_id = rev.id

        logger.info("Article restored slug=%s from=%s new_revision=%s by=%s", slug, revision_id, new_id, principal.id)

    def delete(self, principal: Principal, article_id: int) -> None:
        with self._mutation() as s:
            article = get_article_by_id(s, article_id, for_update=True)
            if article is None:
                raise NotFound("article not found")
            self._authorize(article, principal, "delete")

            slug = article.slug
            # Break the article -> revision reference before dropping the log.
            article.current_revision_id = None
            s.flush()
            removed = s.execute(
                delete(ArticleRevision)
                .where(ArticleRevision.article_id == article.id)
                .execution_options(synchronize_session=False)
            ).rowcount
            s.delete(article)
            record_event(
                s,
                actor_id=principal.id,
                action="article.delete",
                entity_type="Article",
                entity_id=str(article_id),
                metadata={"slug": slug, "revisions_removed": removed},
            )

        logger.info("Article deleted id=%s slug=%s by=%s", article_id, slug, principal.id)

    # ------------------------------------------------------------------

    @contextmanager
    def _mutation(self) -> Generator[Session, None, None]:
        try:
            with self.transaction() as s:
                yield s
        except IntegrityError as e:
            logger.exception("Article mutation violated a constraint")
            raise Internal() from e

    def _authorize(self, article: Article, principal: Principal, action: str) -> None:
        if not can_mutate(article.created_by, principal):
            logger.warning(
                "Forbidden: %s on article id=%s (owner=%s) by principal=%s",
                action,
                article.id,
                article.created_by,
                principal.id if principal else None,
            )
            raise Forbidden("forbidden")
