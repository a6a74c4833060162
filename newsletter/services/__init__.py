"""Services for the newsletter API."""

from newsletter.services.accounts import AccountService
from newsletter.services.collaborators import CollaboratorService
from newsletter.services.idempotency import IdempotencyService
from newsletter.services.newsletters import NewsletterPublisher
from newsletter.services.subscriptions import SubscriptionService

__all__ = [
    "AccountService",
    "CollaboratorService",
    "IdempotencyService",
    "NewsletterPublisher",
    "SubscriptionService",
]
