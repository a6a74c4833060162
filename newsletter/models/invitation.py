"""Collaborator invitation model."""

from sqlalchemy import TIMESTAMP, Column, String, text

from newsletter.database import Base


class InvitationRecord(Base):
    """
    Pending collaborator invitation.

    The token gates the registration form, the (token, validation code) pair
    gates the registration itself. The row is deleted when registration
    succeeds.
    """

    __tablename__ = "invitation_tokens"

    invitation_token = Column(String(30), primary_key=True)
    validation_code = Column(String(6), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=text("NOW()"))
