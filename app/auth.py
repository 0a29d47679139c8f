"""
Bearer-token authentication.

``TokenCodec`` owns the signing secret; one instance is built from
settings in ``app.main`` and stored on ``app.state.token_codec``.

``get_current_user`` is the FastAPI dependency that turns an
``Authorization: Bearer <token>`` header into an :class:`Identity`.  The
identity is then passed explicitly to every service call that creates or
mutates an owned resource, so the user who creates a resource is the same
user checked for ownership later.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.errors import Unauthenticated
from app.models import User

logger = logging.getLogger(__name__)

# auto_error=False so a missing header surfaces as our own 401 envelope.
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller. Never carries the password hash."""

    id: int
    username: str
    email: str
    avatar: str | None = None


class InvalidToken(Exception):
    pass


class TokenCodec:
    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60) -> None:
        if not secret_key:
            raise ValueError("A signing secret is required")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    def encode(self, user_id: int, expires_delta: timedelta | None = None) -> str:
        expire = datetime.now(timezone.utc) + (
            expires_delta if expires_delta is not None else timedelta(minutes=self._expire_minutes)
        )
        claims = {"sub": str(user_id), "exp": expire}
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def decode(self, token: str) -> int:
        """Return the user id carried by *token*; raise InvalidToken otherwise."""
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as exc:
            raise InvalidToken(str(exc)) from exc

        subject = payload.get("sub")
        try:
            return int(subject)
        except (TypeError, ValueError) as exc:
            raise InvalidToken("token subject is not a user id") from exc


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    codec: TokenCodec = Depends(get_token_codec),
    db: AsyncSession = Depends(get_db),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Not authorized, no token")

    # A deleted account and a forged token must look the same to the caller.
    try:
        user_id = codec.decode(credentials.credentials)
    except InvalidToken as exc:
        logger.warning("Rejected bearer token: %s", exc)
        raise Unauthenticated("Not authorized, invalid token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning("Rejected bearer token: user %s no longer exists", user_id)
        raise Unauthenticated("Not authorized, invalid token")

    return Identity(id=user.id, username=user.username, email=user.email, avatar=user.avatar)
