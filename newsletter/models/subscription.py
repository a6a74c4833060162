"""Subscriber and subscription token models."""

from sqlalchemy import TIMESTAMP, Column, Enum, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID

from newsletter.database import Base

PENDING_CONFIRMATION = "pending_confirmation"
CONFIRMED = "confirmed"


class Subscription(Base):
    """
    A newsletter subscriber.

    Status moves from ``pending_confirmation`` to ``confirmed`` exactly once,
    when the confirmation token is redeemed. Email is unique.
    """

    __tablename__ = "subscriptions"

    id = Column(PG_UUID(as_uuid=True), primary_key=True)
    email = Column(Text, unique=True, nullable=False)
    name = Column(Text, nullable=False)
    subscribed_at = Column(TIMESTAMP(timezone=True), nullable=False)
    status = Column(
        Enum(PENDING_CONFIRMATION, CONFIRMED, name="subscription_status"),
        nullable=False,
    )


class SubscriptionTokenRecord(Base):
    """Live confirmation token of a pending subscriber, deleted on confirmation."""

    __tablename__ = "subscription_tokens"

    subscription_token = Column(String(30), primary_key=True)
    subscriber_id = Column(
        PG_UUID(as_uuid=True),
        ForeignKey("subscriptions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
