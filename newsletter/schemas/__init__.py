"""Pydantic schemas for request/response validation."""

from newsletter.schemas.auth import LoginResponse, MessageResponse
from newsletter.schemas.collaborators import (
    InvitationResponse,
    InvitationStatusResponse,
    RegistrationResponse,
)

__all__ = [
    "LoginResponse",
    "MessageResponse",
    "InvitationResponse",
    "InvitationStatusResponse",
    "RegistrationResponse",
]
