"""Public collaborator router: invitation landing and registration."""

from fastapi import APIRouter, Depends, Form, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.database import get_db
from newsletter.dependencies import get_email_client, get_renderer
from newsletter.domain import DomainValidationError, InvitationToken, ValidationCode
from newsletter.email_client import EmailClient
from newsletter.rendering import TemplateRenderer
from newsletter.schemas.collaborators import InvitationStatusResponse, RegistrationResponse
from newsletter.services.collaborators import (
    CollaboratorService,
    InvalidInvitationError,
    UnknownInvitationError,
)

router = APIRouter(prefix="/collaborator", tags=["Collaborators"])


def _collaborator_service(
    db: AsyncSession = Depends(get_db),
    email_client: EmailClient = Depends(get_email_client),
    renderer: TemplateRenderer = Depends(get_renderer),
) -> CollaboratorService:
    return CollaboratorService(db, email_client, renderer)


@router.get(
    "",
    response_model=InvitationStatusResponse,
    status_code=status.HTTP_200_OK,
)
async def get_invitation(
    invitation_token: str = Query(...),
    service: CollaboratorService = Depends(_collaborator_service),
) -> InvitationStatusResponse:
    """Check the token from an invitation email before showing registration."""
    try:
        token = InvitationToken.parse(invitation_token)
    except DomainValidationError as exc:
        raise InvalidInvitationError("Invalid invitation token") from exc

    if not await service.has_invitation(token):
        raise UnknownInvitationError()

    return InvitationStatusResponse(invitation_token=token.value, valid=True)


@router.post(
    "/register",
    response_model=RegistrationResponse,
    status_code=status.HTTP_200_OK,
)
async def register(
    invitation_token: str = Form(...),
    validation_code: str = Form(...),
    username: str = Form(..., min_length=1),
    password: str = Form(...),
    service: CollaboratorService = Depends(_collaborator_service),
) -> RegistrationResponse:
    """
    Create a collaborator account from an invitation.

    Both the emailed token and the validation code are required; a used
    invitation cannot be redeemed again.
    """
    try:
        token = InvitationToken.parse(invitation_token)
        code = ValidationCode.parse(validation_code)
    except DomainValidationError as exc:
        raise InvalidInvitationError() from exc

    user = await service.register(token, code, username, password)
    return RegistrationResponse(
        user_id=str(user.id),
        username=user.username,
        role=user.role.value,
    )
