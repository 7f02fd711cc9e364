from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from recruitflow.invitations import InvitationState
from recruitflow.models import InvitationStatus


class InvitationCreate(BaseModel):
    email: str = Field(..., description="Address the registration link is sent to")


class InvitationOut(BaseModel):
    id: str
    email: str
    company_id: str
    status: InvitationStatus
    state: InvitationState
    send_attempts: int
    last_sent_at: Optional[datetime] = None
    used_at: Optional[datetime] = None
    created_at: datetime


class InvitationIssuedOut(BaseModel):
    invitation_id: str
    registration_url: str
    receipt_id: str


class InvitationCheckOut(BaseModel):
    invitation_id: str
    state: InvitationState
    company_id: Optional[str] = None
    email: Optional[str] = None
