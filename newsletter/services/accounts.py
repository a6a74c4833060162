"""Credential checks and password changes for admin and collaborator accounts."""

import asyncio
import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.auth.password import (
    DUMMY_PASSWORD_HASH,
    hash_password,
    is_acceptable_password,
    verify_password,
)
from newsletter.errors import Unauthorized, ValidationFailed
from newsletter.models.user import User
from newsletter.services.collaborators import WeakPasswordError

logger = logging.getLogger(__name__)


class InvalidCredentialsError(Unauthorized):
    code = "INVALID_CREDENTIALS"
    message = "Invalid username or password"


class PasswordMismatchError(ValidationFailed):
    code = "PASSWORD_MISMATCH"
    message = "You entered two different new passwords"


class AccountService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def validate_credentials(self, username: str, password: str) -> User:
        """
        Return the user matching ``username`` and ``password``.

        Unknown usernames are checked against a dummy hash so both failure
        paths take the same time.

        Raises:
            InvalidCredentialsError: unknown username or wrong password
        """
        result = await self.db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()

        password_hash = user.password_hash if user else DUMMY_PASSWORD_HASH
        verified = await asyncio.to_thread(verify_password, password, password_hash)
        if user is None or not verified:
            logger.info("Rejected login attempt for %r", username)
            raise InvalidCredentialsError()
        return user

    async def change_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
        new_password_check: str,
    ) -> None:
        if new_password != new_password_check:
            raise PasswordMismatchError()
        if not is_acceptable_password(new_password):
            raise WeakPasswordError()

        verified = await asyncio.to_thread(verify_password, current_password, user.password_hash)
        if not verified:
            raise InvalidCredentialsError("The current password is incorrect")

        password_hash = await asyncio.to_thread(hash_password, new_password)
        await self.db.execute(
            update(User).where(User.id == user.id).values(password_hash=password_hash)
        )
        await self.db.commit()
        logger.info("Password changed for user %s", user.id)
