"""
Comment service: threaded comments on news articles.

A comment belongs to one article (``news_id``) and may reply to any
existing comment (``reply_to_id``); the parent is not required to sit
under the same article.  Only the author may edit or delete a comment.

Deleting a comment removes its whole reply subtree, so no comment is ever
left pointing at a parent that no longer exists.
"""
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth import Identity
from app.errors import BadRequest, Forbidden, NotFound
from app.models import Article, Comment, utcnow
from app.schemas import CommentCreate, CommentUpdate
from app.services.user_service import author_summary


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def comment_to_dict(comment: Comment, with_replies: bool = False) -> dict:
    data = {
        "id": comment.id,
        "content": comment.content,
        "author": author_summary(comment.author),
        "news": comment.news_id,
        "replyTo": comment.reply_to_id,
        "createdAt": comment.created_at.isoformat() if comment.created_at else None,
        "updatedAt": comment.updated_at.isoformat() if comment.updated_at else None,
    }
    if with_replies:
        data["replies"] = [comment_to_dict(r) for r in comment.replies]
    return data


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

async def _get_comment(db: AsyncSession, comment_id: int) -> Comment:
    q = (
        select(Comment)
        .where(Comment.id == comment_id)
        .options(selectinload(Comment.author))
        .execution_options(populate_existing=True)
    )
    comment = (await db.execute(q)).scalar_one_or_none()
    if comment is None:
        raise NotFound("Comment not found.")
    return comment


async def collect_thread_ids(db: AsyncSession, root_ids) -> set[int]:
    """Return *root_ids* plus the ids of every reply beneath them, at any depth."""
    seen: set[int] = set()
    frontier = set(root_ids)
    while frontier:
        seen |= frontier
        result = await db.execute(select(Comment.id).where(Comment.reply_to_id.in_(sorted(frontier))))
        frontier = set(result.scalars().all()) - seen
    return seen


async def delete_threads(db: AsyncSession, root_ids) -> int:
    """Delete the comments in *root_ids* together with their reply subtrees."""
    ids = await collect_thread_ids(db, root_ids)
    if ids:
        await db.execute(delete(Comment).where(Comment.id.in_(sorted(ids))))
    return len(ids)


def _ensure_author(comment: Comment, identity: Identity, action: str) -> None:
    if comment.author_id != identity.id:
        raise Forbidden(f"You are not allowed to {action} this comment.")


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_comment(
    db: AsyncSession,
    identity: Identity,
    news_id: int,
    data: CommentCreate,
) -> dict:
    """
    Attach a new comment by *identity* to the article *news_id*.

    The insert and the link to the article are one row in one transaction,
    so a failure leaves neither behind.
    """
    news = (await db.execute(select(Article.id).where(Article.id == news_id))).scalar_one_or_none()
    if news is None:
        raise NotFound("News not found.")

    if data.reply_to is not None:
        parent = (
            await db.execute(select(Comment.id).where(Comment.id == data.reply_to))
        ).scalar_one_or_none()
        if parent is None:
            raise BadRequest("Parent comment not found.")

    comment = Comment(
        content=data.content,
        author_id=identity.id,
        news_id=news_id,
        reply_to_id=data.reply_to,
    )
    db.add(comment)
    await db.flush()

    return comment_to_dict(await _get_comment(db, comment.id))


async def update_comment(
    db: AsyncSession, identity: Identity, comment_id: int, data: CommentUpdate
) -> dict:
    comment = await _get_comment(db, comment_id)
    _ensure_author(comment, identity, "update")

    comment.content = data.content
    comment.updated_at = utcnow()
    await db.flush()
    return comment_to_dict(comment)


async def delete_comment(db: AsyncSession, identity: Identity, comment_id: int) -> None:
    comment = await _get_comment(db, comment_id)
    _ensure_author(comment, identity, "delete")

    await delete_threads(db, [comment.id])
    await db.flush()
