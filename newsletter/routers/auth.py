"""Authentication router: login, logout, and password change."""

from fastapi import APIRouter, Depends, Form, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.auth.dependencies import get_current_user
from newsletter.auth.jwt import ACCESS_TOKEN_COOKIE, create_access_token
from newsletter.config import settings
from newsletter.database import get_db
from newsletter.middleware.rate_limit import limiter
from newsletter.models.user import User
from newsletter.schemas.auth import LoginResponse, MessageResponse
from newsletter.services.accounts import AccountService

router = APIRouter(tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
)
@limiter.limit(settings.login_rate_limit)
async def login(
    request: Request,
    response: Response,
    username: str = Form(...),
    password: str = Form(...),
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """Authenticate and set the session token as an HttpOnly cookie."""
    user = await AccountService(db).validate_credentials(username, password)

    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=create_access_token(str(user.id), user.role.value),
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        max_age=settings.access_token_expire_minutes * 60,
    )

    return LoginResponse(
        user_id=str(user.id),
        username=user.username,
        role=user.role.value,
    )


@router.post(
    "/admin/logout",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
)
async def logout(
    response: Response,
    user: User = Depends(get_current_user),
) -> MessageResponse:
    response.delete_cookie(
        key=ACCESS_TOKEN_COOKIE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )
    return MessageResponse(message="You have successfully logged out")


@router.post(
    "/admin/password",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
)
async def change_password(
    current_password: str = Form(...),
    new_password: str = Form(...),
    new_password_check: str = Form(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> MessageResponse:
    """
    Change the password of the logged-in user.

    Available to admins and collaborators alike.
    """
    await AccountService(db).change_password(
        user,
        current_password,
        new_password,
        new_password_check,
    )
    return MessageResponse(message="Your password has been changed")
