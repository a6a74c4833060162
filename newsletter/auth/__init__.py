"""Authentication utilities for the newsletter service."""

from newsletter.auth.jwt import ACCESS_TOKEN_COOKIE, create_access_token, decode_token
from newsletter.auth.password import hash_password, is_acceptable_password, verify_password

__all__ = [
    "ACCESS_TOKEN_COOKIE",
    "create_access_token",
    "decode_token",
    "hash_password",
    "is_acceptable_password",
    "verify_password",
]
