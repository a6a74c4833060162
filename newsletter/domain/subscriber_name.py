"""Subscriber display name value type."""

from dataclasses import dataclass

import regex

from newsletter.domain.errors import DomainValidationError

MAX_GRAPHEMES = 256
FORBIDDEN_CHARS = frozenset('/()"<>\\{}')

_GRAPHEME = regex.compile(r"\X")


class SubscriberNameError(DomainValidationError):
    """Raised when a subscriber name is empty, too long or unsafe."""


@dataclass(frozen=True)
class SubscriberName:
    value: str

    @classmethod
    def parse(cls, raw: str) -> "SubscriberName":
        """
        Validate a subscriber name.

        The length limit counts user-perceived characters (grapheme
        clusters), so ``"ë" * 256`` is accepted whatever its normalization.
        """
        is_empty_or_whitespace = not raw.strip()
        is_too_long = len(_GRAPHEME.findall(raw)) > MAX_GRAPHEMES
        contains_forbidden_chars = any(c in FORBIDDEN_CHARS for c in raw)

        if is_empty_or_whitespace or is_too_long or contains_forbidden_chars:
            raise SubscriberNameError(f"{raw!r} is not a valid subscriber name")
        return cls(raw)

    def __str__(self) -> str:
        return self.value
