"""Subscriber lifecycle: subscribe, confirm, and list confirmed recipients."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID, uuid4

from fastapi import status
from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.domain import Email, EmailError, NewSubscriber, SubscriptionToken
from newsletter.email_client import EmailClient, EmailDispatchError
from newsletter.errors import AppError, Unauthorized, UnexpectedError, ValidationFailed
from newsletter.models.subscription import (
    CONFIRMED,
    PENDING_CONFIRMATION,
    Subscription,
    SubscriptionTokenRecord,
)
from newsletter.rendering import TemplateRenderer

logger = logging.getLogger(__name__)

CONFIRMATION_SUBJECT = "Welcome!"


class InvalidSubscriberError(ValidationFailed):
    code = "INVALID_SUBSCRIBER"


class DuplicateSubscriberError(AppError):
    status_code = status.HTTP_406_NOT_ACCEPTABLE
    code = "ALREADY_SUBSCRIBED"
    message = "This email address is already subscribed"


class InvalidSubscriptionTokenError(ValidationFailed):
    code = "INVALID_SUBSCRIPTION_TOKEN"
    message = "Invalid subscription token"


class UnknownSubscriptionTokenError(Unauthorized):
    message = "Unknown or already used subscription token"


class SubscriptionStoreError(UnexpectedError):
    pass


class ConfirmationEmailError(UnexpectedError):
    pass


@dataclass(frozen=True)
class Inserted:
    subscriber_id: UUID


@dataclass(frozen=True)
class Pending:
    subscriber_id: UUID


@dataclass(frozen=True)
class Confirmed:
    subscriber_id: UUID


SubscriptionState = Inserted | Pending | Confirmed


@dataclass(frozen=True)
class ConfirmedSubscriber:
    email: Email


def confirmation_link(base_url: str, token: SubscriptionToken) -> str:
    return f"{base_url}/subscriptions/confirm?subscription_token={token}"


class SubscriptionService:
    """
    Pending/confirmed state machine for newsletter subscribers.

    Every public operation is one transaction on ``db`` and ends with an
    explicit commit; a failure before the commit leaves nothing behind.
    """

    def __init__(self, db: AsyncSession, email_client: EmailClient, renderer: TemplateRenderer):
        self.db = db
        self.email_client = email_client
        self.renderer = renderer

    async def insert_subscriber(self, new_subscriber: NewSubscriber) -> SubscriptionState:
        """
        Insert the subscriber or report the state of the existing row.

        The no-op ``DO UPDATE`` makes ``RETURNING`` yield the existing row on
        conflict; a returned id equal to the freshly generated one means the
        row was created by this statement.
        """
        subscriber_id = uuid4()
        stmt = insert(Subscription).values(
            id=subscriber_id,
            email=new_subscriber.email.value,
            name=new_subscriber.name.value,
            subscribed_at=datetime.now(timezone.utc),
            status=PENDING_CONFIRMATION,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Subscription.email],
            set_={"status": Subscription.status},
        ).returning(Subscription.id, Subscription.status)

        row = (await self.db.execute(stmt)).one()
        if row.id == subscriber_id:
            return Inserted(row.id)
        if row.status == CONFIRMED:
            return Confirmed(row.id)
        return Pending(row.id)

    async def store_token(self, subscriber_id: UUID, token: SubscriptionToken) -> None:
        self.db.add(
            SubscriptionTokenRecord(subscription_token=token.value, subscriber_id=subscriber_id)
        )
        await self.db.flush()

    async def get_subscriber_token(self, subscriber_id: UUID) -> SubscriptionToken:
        result = await self.db.execute(
            select(SubscriptionTokenRecord.subscription_token).where(
                SubscriptionTokenRecord.subscriber_id == subscriber_id
            )
        )
        token = result.scalar_one_or_none()
        if token is None:
            raise SubscriptionStoreError(f"Pending subscriber {subscriber_id} has no token")
        return SubscriptionToken(token)

    async def subscribe(self, new_subscriber: NewSubscriber, base_url: str) -> SubscriptionState:
        """
        Register a subscriber and mail them a confirmation link.

        A repeated subscribe for a pending address resends the existing token.

        Raises:
            DuplicateSubscriberError: the address is already confirmed
            SubscriptionStoreError: database failure, nothing committed
            ConfirmationEmailError: the subscriber is stored but the email failed
        """
        try:
            state = await self.insert_subscriber(new_subscriber)
            if isinstance(state, Confirmed):
                await self.db.rollback()
                raise DuplicateSubscriberError()

            if isinstance(state, Inserted):
                token = SubscriptionToken.generate()
                await self.store_token(state.subscriber_id, token)
                logger.info("New subscriber %s stored as pending", state.subscriber_id)
            else:
                token = await self.get_subscriber_token(state.subscriber_id)
                logger.info("Resending confirmation to pending subscriber %s", state.subscriber_id)

            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise SubscriptionStoreError("Failed to store the new subscriber") from exc

        message = self.renderer.render_subscription_confirmation(confirmation_link(base_url, token))
        try:
            await self.email_client.send_email(
                new_subscriber.email,
                CONFIRMATION_SUBJECT,
                message.html,
                message.text,
            )
        except EmailDispatchError as exc:
            raise ConfirmationEmailError("Failed to send a confirmation email") from exc

        return state

    async def confirm(self, token: SubscriptionToken) -> UUID:
        """
        Redeem a confirmation token and mark its subscriber as confirmed.

        Raises:
            UnknownSubscriptionTokenError: no such token, or already redeemed
        """
        try:
            result = await self.db.execute(
                delete(SubscriptionTokenRecord)
                .where(SubscriptionTokenRecord.subscription_token == token.value)
                .returning(SubscriptionTokenRecord.subscriber_id)
            )
            subscriber_id = result.scalar_one_or_none()
            if subscriber_id is None:
                await self.db.rollback()
                raise UnknownSubscriptionTokenError()

            await self.db.execute(
                update(Subscription)
                .where(Subscription.id == subscriber_id)
                .values(status=CONFIRMED)
            )
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise SubscriptionStoreError("Failed to confirm the subscriber") from exc

        logger.info("Subscriber %s confirmed", subscriber_id)
        return subscriber_id

    async def get_confirmed_subscribers(self) -> list[ConfirmedSubscriber]:
        """
        Load confirmed subscribers in storage order.

        Stored addresses are validated again; rows that no longer parse are
        logged and left out.
        """
        result = await self.db.execute(
            select(Subscription.email)
            .where(Subscription.status == CONFIRMED)
            .order_by(Subscription.subscribed_at)
        )
        subscribers: list[ConfirmedSubscriber] = []
        for email in result.scalars():
            try:
                subscribers.append(ConfirmedSubscriber(Email.parse(email)))
            except EmailError as exc:
                logger.warning(
                    "Skipping a confirmed subscriber, their stored contact details are invalid: %s",
                    exc,
                )
        return subscribers
