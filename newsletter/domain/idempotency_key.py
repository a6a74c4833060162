"""Client-supplied idempotency key for newsletter publication."""

from dataclasses import dataclass

from newsletter.domain.errors import DomainValidationError

MAX_KEY_BYTES = 50


class IdempotencyKeyError(DomainValidationError):
    pass


@dataclass(frozen=True)
class IdempotencyKey:
    value: str

    @classmethod
    def parse(cls, raw: str) -> "IdempotencyKey":
        if not raw:
            raise IdempotencyKeyError("The idempotency key cannot be empty")
        if len(raw.encode("utf-8")) >= MAX_KEY_BYTES:
            raise IdempotencyKeyError(
                f"The idempotency key must be shorter than {MAX_KEY_BYTES} bytes"
            )
        return cls(raw)

    def __str__(self) -> str:
        return self.value
