"""Collaborator invitation and registration schemas."""

from pydantic import BaseModel


class InvitationResponse(BaseModel):
    """
    Returned to the inviting admin.

    The validation code is only shown here; the invitee receives the link by
    email and the code through the admin.
    """

    validation_code: str


class InvitationStatusResponse(BaseModel):
    invitation_token: str
    valid: bool


class RegistrationResponse(BaseModel):
    user_id: str
    username: str
    role: str
