"""Idempotency record model for newsletter publication retries."""

from sqlalchemy import (
    TIMESTAMP,
    Column,
    ForeignKey,
    Index,
    LargeBinary,
    SmallInteger,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID

from newsletter.database import Base


class IdempotencyRecord(Base):
    """
    Reservation and cached response for one (user, idempotency key).

    Inserted empty when processing starts and filled with the final response
    in the same transaction that performs the side effects. A row with a
    non-null response means the request was fully processed.
    """

    __tablename__ = "idempotency"

    user_id = Column(
        PG_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    idempotency_key = Column(Text, primary_key=True)
    response_status_code = Column(SmallInteger)
    response_headers = Column(JSONB)  # [{"name": ..., "value": ...}]
    response_body = Column(LargeBinary)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()"))

    __table_args__ = (
        Index("idx_idempotency_created", "created_at"),
    )
