"""Errors raised while parsing boundary input into domain types."""


class DomainValidationError(ValueError):
    """Base class for value types that reject their raw input."""
