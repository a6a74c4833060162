"""JWT access token creation and validation for admin sessions."""

from datetime import datetime, timedelta, timezone

from jose import jwt

from newsletter.config import settings

ACCESS_TOKEN_COOKIE = "access_token"


def create_access_token(user_id: str, role: str) -> str:
    """Create a session token carrying the user id and role."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": user_id,
        "role": role,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def decode_token(token: str) -> dict | None:
    """
    Decode and validate a JWT token.

    Returns the payload if valid, None if invalid or expired.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=["HS256"])
        return payload
    except jwt.JWTError:
        return None
