"""Validated value types used at the HTTP and database boundaries."""

from newsletter.domain.email import Email, EmailError
from newsletter.domain.errors import DomainValidationError
from newsletter.domain.idempotency_key import IdempotencyKey, IdempotencyKeyError
from newsletter.domain.subscriber import NewCollaborator, NewSubscriber
from newsletter.domain.subscriber_name import SubscriberName, SubscriberNameError
from newsletter.domain.token import (
    InvitationToken,
    InvitationTokenError,
    SubscriptionToken,
    SubscriptionTokenError,
    Token,
    TokenError,
    ValidationCode,
    ValidationCodeError,
)

__all__ = [
    "DomainValidationError",
    "Email",
    "EmailError",
    "IdempotencyKey",
    "IdempotencyKeyError",
    "InvitationToken",
    "InvitationTokenError",
    "NewCollaborator",
    "NewSubscriber",
    "SubscriberName",
    "SubscriberNameError",
    "SubscriptionToken",
    "SubscriptionTokenError",
    "Token",
    "TokenError",
    "ValidationCode",
    "ValidationCodeError",
]
