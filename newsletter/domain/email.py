"""Email address value type."""

from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

from newsletter.domain.errors import DomainValidationError


class EmailError(DomainValidationError):
    """Raised when a string is not a valid email address."""


@dataclass(frozen=True)
class Email:
    """A syntactically valid email address, kept exactly as submitted."""

    value: str

    @classmethod
    def parse(cls, raw: str) -> "Email":
        if not raw:
            raise EmailError("Invalid email format")
        try:
            validate_email(raw, check_deliverability=False)
        except EmailNotValidError as exc:
            raise EmailError(f"{raw!r} is not a valid email address") from exc
        return cls(raw)

    def __str__(self) -> str:
        return self.value
