"""
User service: profile reads and owner-only profile updates.

Accounts are created by the account service that shares this database;
this module never reads or writes ``password_hash``.
"""
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Identity
from app.errors import Conflict, Forbidden, NotFound
from app.models import Article, User
from app.schemas import UserUpdate


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def author_summary(user: User | None, with_email: bool = False) -> dict | None:
    """Populated form of an author reference embedded in news and comments."""
    if user is None:
        return None
    data = {"id": user.id, "username": user.username, "avatar": user.avatar}
    if with_email:
        data["email"] = user.email
    return data


def _profile_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "avatar": user.avatar,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_profile(db: AsyncSession, user_id: int) -> dict:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("User not found.")

    count_q = select(func.count()).select_from(Article).where(Article.author_id == user_id)
    data = _profile_to_dict(user)
    data["newsCount"] = (await db.execute(count_q)).scalar_one()
    return data


async def update_profile(
    db: AsyncSession, identity: Identity, user_id: int, data: UserUpdate
) -> dict:
    """
    Apply the allow-listed profile fields in *data* to *user_id*.

    Only the user themself may do this.  Username and email uniqueness is
    enforced by the database; a collision surfaces as ``Conflict``.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("User not found.")
    if user.id != identity.id:
        raise Forbidden("You are not allowed to update this profile.")

    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, field, value)

    try:
        await db.flush()
    except IntegrityError:
        raise Conflict("A user with this username or email already exists")
    return _profile_to_dict(user)
