"""
Article service: business logic for news articles.

Design notes
------------
- Every listing (category feed, author feed, search) shares one
  pagination path: a COUNT over the filter, then a page of rows ordered
  newest first.  ``id`` breaks ties between rows created in the same
  instant so pages never overlap.
- Author summaries are eager loaded with ``joinedload``; comment ids and
  replies with ``selectinload``.  Relationships are ``lazy="raise"``, so a
  missing load option fails loudly instead of issuing a hidden query.
- ``populate_existing`` is set on re-reads so objects already in the
  session's identity map pick up the freshly loaded relationships.
- Ownership checks compare the stored ``author_id`` with the
  :class:`~app.auth.Identity` resolved from the bearer token.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import math

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from app.auth import Identity
from app.config import settings
from app.errors import Forbidden, NotFound
from app.models import Article, Comment, utcnow
from app.schemas import ArticleCreate, ArticleUpdate, PaginatedResponse
from app.services import comment_service
from app.services.user_service import author_summary

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_NEWEST_FIRST = (desc(Article.created_at), desc(Article.id))


def _like_pattern(keyword: str) -> str:
    """Substring pattern for LIKE with the keyword's own wildcards escaped."""
    escaped = keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _article_to_dict(article: Article, author_email: bool = False, comments: list | None = None) -> dict:
    """
    Serialise an Article ORM instance to a plain dict.

    Without *comments* the list view form is produced, which reads the
    eager-loaded ``article.comments`` and lists their ids.
    """
    return {
        "id": article.id,
        "title": article.title,
        "content": article.content,
        "thumbnail": article.thumbnail,
        "category": article.category,
        "views": article.views,
        "author": author_summary(article.author, with_email=author_email),
        "comments": comments if comments is not None else [c.id for c in article.comments],
        "createdAt": article.created_at.isoformat() if article.created_at else None,
        "updatedAt": article.updated_at.isoformat() if article.updated_at else None,
    }


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

def _with_author_and_comment_ids(q):
    return q.options(
        joinedload(Article.author),
        selectinload(Article.comments),
    ).execution_options(populate_existing=True)


async def _get_article(db: AsyncSession, article_id: int) -> Article:
    q = _with_author_and_comment_ids(select(Article).where(Article.id == article_id))
    article = (await db.execute(q)).unique().scalar_one_or_none()
    if article is None:
        raise NotFound("News not found.")
    return article


async def _paginate(
    db: AsyncSession,
    criteria: list,
    page: int,
    page_size: int,
    author_email: bool = False,
) -> PaginatedResponse:
    count_q = select(func.count()).select_from(Article).where(*criteria)
    total: int = (await db.execute(count_q)).scalar_one()

    rows_q = _with_author_and_comment_ids(
        select(Article)
        .where(*criteria)
        .order_by(*_NEWEST_FIRST)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    articles = (await db.execute(rows_q)).unique().scalars().all()

    return PaginatedResponse(
        items=[_article_to_dict(a, author_email=author_email) for a in articles],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size),
    )


# ---------------------------------------------------------------------------
# Public service functions: reads
# ---------------------------------------------------------------------------

async def list_articles(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 10,
    category: str | None = None,
) -> PaginatedResponse:
    """Newest-first page of articles, optionally restricted to one category."""
    criteria = [Article.category == category] if category else []
    return await _paginate(db, criteria, page, page_size)


async def list_user_articles(
    db: AsyncSession, user_id: int, page: int = 1, page_size: int = 10
) -> PaginatedResponse:
    return await _paginate(db, [Article.author_id == user_id], page, page_size, author_email=True)


async def search_articles(
    db: AsyncSession, keyword: str = "", page: int = 1, page_size: int = 10
) -> PaginatedResponse:
    """
    Case-insensitive substring search on the title.

    An empty keyword applies no filter.  ``%`` and ``_`` in the keyword are
    matched literally.
    """
    criteria = []
    if keyword:
        criteria.append(Article.title.ilike(_like_pattern(keyword), escape="\\"))
    return await _paginate(db, criteria, page, page_size)


async def get_featured(db: AsyncSession, limit: int | None = None) -> list[dict]:
    """Most viewed articles; among equal view counts the newer id wins."""
    q = _with_author_and_comment_ids(
        select(Article)
        .order_by(desc(Article.views), desc(Article.id))
        .limit(limit or settings.FEATURED_LIMIT)
    )
    articles = (await db.execute(q)).unique().scalars().all()
    return [_article_to_dict(a) for a in articles]


async def get_categories(db: AsyncSession) -> list[str]:
    q = select(Article.category).distinct().order_by(Article.category)
    return list((await db.execute(q)).scalars().all())


async def get_article(db: AsyncSession, article_id: int) -> dict:
    """
    Return the detail dict for *article_id*.

    ``comments`` holds the top-level comments only, newest first, each
    with its author and one level of replies (oldest first).  Replies to
    replies exist but are not expanded here.
    """
    q = (
        select(Article)
        .where(Article.id == article_id)
        .options(joinedload(Article.author))
        .execution_options(populate_existing=True)
    )
    article = (await db.execute(q)).unique().scalar_one_or_none()
    if article is None:
        raise NotFound("News not found.")

    comments_q = (
        select(Comment)
        .where(Comment.news_id == article_id, Comment.reply_to_id.is_(None))
        .options(
            selectinload(Comment.author),
            selectinload(Comment.replies).selectinload(Comment.author),
        )
        .order_by(desc(Comment.created_at), desc(Comment.id))
        .execution_options(populate_existing=True)
    )
    comments = (await db.execute(comments_q)).scalars().all()

    return _article_to_dict(
        article,
        author_email=True,
        comments=[comment_service.comment_to_dict(c, with_replies=True) for c in comments],
    )


# ---------------------------------------------------------------------------
# Public service functions: writes
# ---------------------------------------------------------------------------

async def create_article(db: AsyncSession, identity: Identity, data: ArticleCreate) -> dict:
    article = Article(
        title=data.title,
        content=data.content,
        thumbnail=data.thumbnail,
        category=data.category,
        author_id=identity.id,
        views=0,
    )
    db.add(article)
    await db.flush()
    return _article_to_dict(await _get_article(db, article.id))


async def update_article(
    db: AsyncSession, identity: Identity, article_id: int, data: ArticleUpdate
) -> dict:
    """
    Apply the allow-listed fields of *data* to the article.

    Fields left out of the request, or sent as null, keep their value.
    Only the author may update.
    """
    article = await _get_article(db, article_id)
    if article.author_id != identity.id:
        raise Forbidden("You are not allowed to update this news.")

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(article, field, value)
    if changes:
        article.updated_at = utcnow()

    await db.flush()
    return _article_to_dict(article)


async def increase_view(db: AsyncSession, article_id: int) -> int:
    """Atomically add one view and return the new count."""
    stmt = (
        update(Article)
        .where(Article.id == article_id)
        .values(views=Article.views + 1)
        .returning(Article.views)
    )
    views = (await db.execute(stmt)).scalar_one_or_none()
    if views is None:
        raise NotFound("News not found")
    return views


async def delete_article(db: AsyncSession, identity: Identity, article_id: int) -> None:
    """
    Delete the article and every comment under it, including replies
    posted to those comments from other articles.
    """
    author_id = (
        await db.execute(select(Article.author_id).where(Article.id == article_id))
    ).scalar_one_or_none()
    if author_id is None:
        raise NotFound("News not found.")
    if author_id != identity.id:
        raise Forbidden("You are not allowed to delete this news.")

    result = await db.execute(select(Comment.id).where(Comment.news_id == article_id))
    await comment_service.delete_threads(db, result.scalars().all())

    await db.execute(delete(Article).where(Article.id == article_id))
