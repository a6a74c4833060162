"""User model and roles."""

import enum

from sqlalchemy import TIMESTAMP, Column, Enum, String, Text, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID

from newsletter.database import Base


class UserRole(str, enum.Enum):
    """Role attached to every user row; gates admin-only operations."""

    ADMIN = "admin"
    COLLABORATOR = "collaborator"


class User(Base):
    """Administrator or collaborator account."""

    __tablename__ = "users"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()"))
    username = Column(String, unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
    )
    created_at = Column(TIMESTAMP(timezone=True), server_default=text("NOW()"))
