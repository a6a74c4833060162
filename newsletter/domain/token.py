"""Single-use link tokens and collaborator validation codes."""

import secrets
import string
from dataclasses import dataclass

from newsletter.domain.errors import DomainValidationError

TOKEN_LENGTH = 30
VALIDATION_CODE_LENGTH = 6

_ALPHANUMERIC = string.ascii_letters + string.digits


class TokenError(DomainValidationError):
    """Raised when a token is not exactly 30 ASCII alphanumerics."""


class SubscriptionTokenError(TokenError):
    pass


class InvitationTokenError(TokenError):
    pass


class ValidationCodeError(DomainValidationError):
    """Raised when a validation code is not exactly 6 ASCII digits."""


@dataclass(frozen=True)
class Token:
    value: str

    error_class = TokenError

    @classmethod
    def parse(cls, raw: str) -> "Token":
        is_empty_or_whitespace = not raw.strip()
        has_invalid_size = len(raw) != TOKEN_LENGTH
        contains_forbidden_chars = not (raw.isascii() and raw.isalnum())

        if is_empty_or_whitespace or has_invalid_size or contains_forbidden_chars:
            raise cls.error_class(f"{raw!r} is not a valid token")
        return cls(raw)

    @classmethod
    def generate(cls) -> "Token":
        return cls("".join(secrets.choice(_ALPHANUMERIC) for _ in range(TOKEN_LENGTH)))

    def __str__(self) -> str:
        return self.value


class SubscriptionToken(Token):
    """Token embedded in a subscription confirmation link."""

    error_class = SubscriptionTokenError


class InvitationToken(Token):
    """Token embedded in a collaborator invitation link."""

    error_class = InvitationTokenError


@dataclass(frozen=True)
class ValidationCode:
    value: str

    @classmethod
    def parse(cls, raw: str) -> "ValidationCode":
        if len(raw) == VALIDATION_CODE_LENGTH and raw.isascii() and raw.isdigit():
            return cls(raw)
        raise ValidationCodeError(f"{raw!r} is not a valid validation code")

    @classmethod
    def generate(cls) -> "ValidationCode":
        return cls("".join(secrets.choice(string.digits) for _ in range(VALIDATION_CODE_LENGTH)))

    def __str__(self) -> str:
        return self.value
