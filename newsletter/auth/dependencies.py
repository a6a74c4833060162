"""Authentication dependencies for FastAPI endpoints."""

from uuid import UUID

from fastapi import Cookie, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.auth.jwt import decode_token
from newsletter.database import get_db
from newsletter.errors import AdminRequired, Unauthorized
from newsletter.models.user import User, UserRole


class NotLoggedIn(Unauthorized):
    message = "Authentication required"


async def get_current_user(
    access_token: str | None = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the user behind the session cookie.

    Raises:
        NotLoggedIn: 401 if the cookie is missing, invalid, expired, or the
            user no longer exists
    """
    if not access_token:
        raise NotLoggedIn()

    payload = decode_token(access_token)
    if not payload or payload.get("type") != "access":
        raise NotLoggedIn("Invalid or expired session")

    try:
        user_id = UUID(payload.get("sub", ""))
    except ValueError:
        raise NotLoggedIn("Invalid or expired session")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotLoggedIn("User not found")

    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """
    Require the authenticated user to have the admin role.

    Raises:
        AdminRequired: 405 if the user is a collaborator
    """
    if user.role != UserRole.ADMIN:
        raise AdminRequired()
    return user
