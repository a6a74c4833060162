"""Rate limiting middleware using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Keyed by client address; only the public subscribe form and login are limited.
limiter = Limiter(key_func=get_remote_address)


def reset_limiter() -> None:
    """Reset the limiter storage. Used in tests to clear rate limit state."""
    limiter.reset()
