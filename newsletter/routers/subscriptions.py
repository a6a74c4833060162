"""Public subscription router: subscribe and confirm."""

from fastapi import APIRouter, Depends, Form, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.config import settings
from newsletter.database import get_db
from newsletter.dependencies import get_email_client, get_renderer
from newsletter.domain import DomainValidationError, NewSubscriber, SubscriptionToken
from newsletter.email_client import EmailClient
from newsletter.middleware.rate_limit import limiter
from newsletter.rendering import TemplateRenderer
from newsletter.schemas.auth import MessageResponse
from newsletter.services.subscriptions import (
    InvalidSubscriberError,
    InvalidSubscriptionTokenError,
    SubscriptionService,
)

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
)
@limiter.limit(settings.subscribe_rate_limit)
async def subscribe(
    request: Request,
    name: str = Form(...),
    email: str = Form(...),
    db: AsyncSession = Depends(get_db),
    email_client: EmailClient = Depends(get_email_client),
    renderer: TemplateRenderer = Depends(get_renderer),
) -> MessageResponse:
    """
    Subscribe to the newsletter.

    Sends a confirmation link to the given address. Subscribing again before
    confirming resends the same link.
    """
    try:
        new_subscriber = NewSubscriber.parse(email, name)
    except DomainValidationError as exc:
        raise InvalidSubscriberError(str(exc)) from exc

    service = SubscriptionService(db, email_client, renderer)
    await service.subscribe(new_subscriber, settings.base_url)
    return MessageResponse(message="Check your inbox to confirm your subscription")


@router.get(
    "/confirm",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
)
async def confirm(
    subscription_token: str = Query(...),
    db: AsyncSession = Depends(get_db),
    email_client: EmailClient = Depends(get_email_client),
    renderer: TemplateRenderer = Depends(get_renderer),
) -> MessageResponse:
    """Redeem the link from the confirmation email. Each link works once."""
    try:
        token = SubscriptionToken.parse(subscription_token)
    except DomainValidationError as exc:
        raise InvalidSubscriptionTokenError() from exc

    service = SubscriptionService(db, email_client, renderer)
    await service.confirm(token)
    return MessageResponse(message="Subscription confirmed")
