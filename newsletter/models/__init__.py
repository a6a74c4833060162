"""Database models for the newsletter service."""

from newsletter.models.idempotency import IdempotencyRecord
from newsletter.models.invitation import InvitationRecord
from newsletter.models.subscription import Subscription, SubscriptionTokenRecord
from newsletter.models.user import User, UserRole

__all__ = [
    "User",
    "UserRole",
    "Subscription",
    "SubscriptionTokenRecord",
    "InvitationRecord",
    "IdempotencyRecord",
]
