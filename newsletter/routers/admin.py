"""Admin router: newsletter publication and collaborator invitations."""

from fastapi import APIRouter, Depends, Form, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.auth.dependencies import require_admin
from newsletter.config import settings
from newsletter.database import get_db
from newsletter.dependencies import get_email_client, get_renderer
from newsletter.domain import DomainValidationError, NewCollaborator
from newsletter.email_client import EmailClient
from newsletter.models.user import User
from newsletter.rendering import TemplateRenderer
from newsletter.schemas.collaborators import InvitationResponse
from newsletter.services.collaborators import CollaboratorService, InvalidCollaboratorError
from newsletter.services.idempotency import IdempotencyService
from newsletter.services.newsletters import NewsletterPublisher
from newsletter.services.subscriptions import SubscriptionService

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/newsletters",
    status_code=status.HTTP_303_SEE_OTHER,
    response_class=Response,
)
async def publish_newsletter(
    title: str = Form(...),
    html_content: str = Form(...),
    text_content: str = Form(...),
    idempotency_key: str = Form(...),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    email_client: EmailClient = Depends(get_email_client),
    renderer: TemplateRenderer = Depends(get_renderer),
) -> Response:
    """
    Send a newsletter issue to all confirmed subscribers.

    Requires admin role. Retrying with the same idempotency key replays the
    first response without sending anything again.
    """
    publisher = NewsletterPublisher(
        IdempotencyService(db),
        SubscriptionService(db, email_client, renderer),
        email_client,
    )
    return await publisher.publish(
        admin.id,
        title,
        html_content,
        text_content,
        idempotency_key,
    )


@router.post(
    "/collaborator",
    response_model=InvitationResponse,
    status_code=status.HTTP_200_OK,
)
async def invite_collaborator(
    email: str = Form(...),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    email_client: EmailClient = Depends(get_email_client),
    renderer: TemplateRenderer = Depends(get_renderer),
) -> InvitationResponse:
    """
    Invite a collaborator by email.

    Requires admin role. The returned validation code must be handed to the
    invitee out of band; it is needed to complete registration.
    """
    try:
        new_collaborator = NewCollaborator.parse(email)
    except DomainValidationError as exc:
        raise InvalidCollaboratorError(str(exc)) from exc

    service = CollaboratorService(db, email_client, renderer)
    code = await service.invite(new_collaborator, settings.base_url)
    return InvitationResponse(validation_code=str(code))
