"""Authentication schemas for response validation."""

from pydantic import BaseModel


class LoginResponse(BaseModel):
    """Login response schema (the session token is set as a cookie)."""

    user_id: str
    username: str
    role: str


class MessageResponse(BaseModel):
    message: str
