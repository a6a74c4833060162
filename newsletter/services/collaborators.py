"""Collaborator invitations and self-registration."""

import asyncio
import logging

from fastapi import status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.auth.password import (
    MAX_PASSWORD_LENGTH,
    MIN_PASSWORD_LENGTH,
    hash_password,
    is_acceptable_password,
)
from newsletter.domain import InvitationToken, NewCollaborator, ValidationCode
from newsletter.email_client import EmailClient, EmailDispatchError
from newsletter.errors import AppError, Unauthorized, UnexpectedError, ValidationFailed
from newsletter.models.invitation import InvitationRecord
from newsletter.models.user import User, UserRole
from newsletter.rendering import TemplateRenderer

logger = logging.getLogger(__name__)

INVITATION_SUBJECT = "You have been invited to collaborate"


class InvalidCollaboratorError(ValidationFailed):
    code = "INVALID_COLLABORATOR"


class InvalidInvitationError(ValidationFailed):
    code = "INVALID_INVITATION"
    message = "Invalid invitation token or validation code"


class WeakPasswordError(ValidationFailed):
    code = "INVALID_PASSWORD"
    message = (
        f"Password must be between {MIN_PASSWORD_LENGTH} "
        f"and {MAX_PASSWORD_LENGTH} characters"
    )


class UnknownInvitationError(Unauthorized):
    message = "Unknown or already used invitation"


class UsernameTakenError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    message = "Username already exists"


class InvitationStoreError(UnexpectedError):
    pass


class InvitationEmailError(UnexpectedError):
    pass


def invitation_link(base_url: str, token: InvitationToken) -> str:
    return f"{base_url}/collaborator?invitation_token={token}"


class CollaboratorService:
    """
    Two-token invitation flow for collaborators.

    The emailed token opens the registration form, the validation code shown
    to the inviting admin has to be handed over separately. Registration
    consumes both in one transaction.
    """

    def __init__(self, db: AsyncSession, email_client: EmailClient, renderer: TemplateRenderer):
        self.db = db
        self.email_client = email_client
        self.renderer = renderer

    async def invite(self, new_collaborator: NewCollaborator, base_url: str) -> ValidationCode:
        """
        Store an invitation and email its link to ``new_collaborator``.

        Returns the validation code, which is never part of the email.
        """
        token = InvitationToken.generate()
        code = ValidationCode.generate()

        self.db.add(InvitationRecord(invitation_token=token.value, validation_code=code.value))
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise InvitationStoreError("Failed to store the invitation") from exc

        message = self.renderer.render_collaborator_invitation(invitation_link(base_url, token))
        try:
            await self.email_client.send_email(
                new_collaborator.email,
                INVITATION_SUBJECT,
                message.html,
                message.text,
            )
        except EmailDispatchError as exc:
            raise InvitationEmailError("Failed to send the invitation email") from exc

        logger.info("Collaborator invitation sent")
        return code

    async def has_invitation(self, token: InvitationToken) -> bool:
        result = await self.db.execute(
            select(InvitationRecord.invitation_token).where(
                InvitationRecord.invitation_token == token.value
            )
        )
        return result.scalar_one_or_none() is not None

    async def register(
        self,
        token: InvitationToken,
        code: ValidationCode,
        username: str,
        password: str,
    ) -> User:
        """
        Consume an invitation and create the collaborator account.

        Raises:
            WeakPasswordError: password length outside the accepted range
            UnknownInvitationError: token and code do not match a live invitation
            UsernameTakenError: username already exists, invitation left intact
        """
        if not is_acceptable_password(password):
            raise WeakPasswordError()

        result = await self.db.execute(
            delete(InvitationRecord)
            .where(InvitationRecord.invitation_token == token.value)
            .where(InvitationRecord.validation_code == code.value)
            .returning(InvitationRecord.invitation_token)
        )
        if result.first() is None:
            await self.db.rollback()
            raise UnknownInvitationError()

        password_hash = await asyncio.to_thread(hash_password, password)
        user = User(username=username, password_hash=password_hash, role=UserRole.COLLABORATOR)
        self.db.add(user)

        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise UsernameTakenError() from exc

        logger.info("Collaborator %s registered", user.id)
        return user
