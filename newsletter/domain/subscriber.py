"""Validated payloads for the subscription and invitation forms."""

from dataclasses import dataclass

from newsletter.domain.email import Email
from newsletter.domain.subscriber_name import SubscriberName


@dataclass(frozen=True)
class NewSubscriber:
    email: Email
    name: SubscriberName

    @classmethod
    def parse(cls, email: str, name: str) -> "NewSubscriber":
        return cls(email=Email.parse(email), name=SubscriberName.parse(name))


@dataclass(frozen=True)
class NewCollaborator:
    email: Email

    @classmethod
    def parse(cls, email: str) -> "NewCollaborator":
        return cls(email=Email.parse(email))
