"""Idempotent newsletter publication."""

import logging
from uuid import UUID

from fastapi import Response, status
from fastapi.responses import RedirectResponse

from newsletter.domain import IdempotencyKey, IdempotencyKeyError
from newsletter.email_client import EmailClient, EmailDispatchError
from newsletter.errors import UnexpectedError, ValidationFailed
from newsletter.services.idempotency import IdempotencyService, ReturnSavedResponse
from newsletter.services.subscriptions import SubscriptionService

logger = logging.getLogger(__name__)

PUBLISHED_REDIRECT = "/admin/newsletters"


class InvalidIdempotencyKeyError(ValidationFailed):
    code = "INVALID_IDEMPOTENCY_KEY"


class NewsletterDeliveryError(UnexpectedError):
    pass


class NewsletterPublisher:
    """
    Sends one issue to every confirmed subscriber, at most once per key.

    The idempotency reservation, the recipient query and the saved response
    all share one transaction. If any send fails the transaction is rolled
    back, so a retry with the same key starts over and resends to everyone.
    """

    def __init__(
        self,
        idempotency: IdempotencyService,
        subscriptions: SubscriptionService,
        email_client: EmailClient,
    ):
        self.idempotency = idempotency
        self.subscriptions = subscriptions
        self.email_client = email_client

    async def publish(
        self,
        user_id: UUID,
        title: str,
        html_content: str,
        text_content: str,
        idempotency_key: str,
    ) -> Response:
        try:
            key = IdempotencyKey.parse(idempotency_key)
        except IdempotencyKeyError as exc:
            raise InvalidIdempotencyKeyError(str(exc)) from exc

        action = await self.idempotency.try_processing(user_id, key)
        if isinstance(action, ReturnSavedResponse):
            return action.response
        transaction = action.transaction

        sent = 0
        for subscriber in await self.subscriptions.get_confirmed_subscribers():
            try:
                await self.email_client.send_email(
                    subscriber.email,
                    title,
                    html_content,
                    text_content,
                )
            except EmailDispatchError as exc:
                await transaction.rollback()
                raise NewsletterDeliveryError(
                    f"Failed to send newsletter issue to {subscriber.email}"
                ) from exc
            sent += 1

        logger.info("Newsletter issue %r sent to %d subscribers", title, sent)
        response = RedirectResponse(url=PUBLISHED_REDIRECT, status_code=status.HTTP_303_SEE_OTHER)
        return await self.idempotency.save_response(transaction, user_id, key, response)
