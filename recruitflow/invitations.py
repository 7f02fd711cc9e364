"""
Invitation issuance and the lookup guard.

An invitation moves pending -> used exactly once. "Expired" is never stored: it
is derived from ``created_at`` and the configured TTL every time the invitation
is looked at.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable

from recruitflow import models
from recruitflow.auth import is_valid_email, normalize_email
from recruitflow.backend import BackendDataService
from recruitflow.config import Settings
from recruitflow.errors import (
    ConflictError,
    EmailDispatchError,
    ExpiredError,
    InvitationRecordError,
    NotFoundError,
    RecruitflowError,
    ValidationError,
)
from recruitflow.mailer import DeliveryReceipt, ResendEmailSender
from recruitflow.messages import build_registration_url, render_invitation_email

logger = logging.getLogger(__name__)


class InvitationState(str, Enum):
    valid = "valid"
    not_found = "not_found"
    used = "used"
    expired = "expired"


def check_invitation(invitation: models.Invitation | None, now: datetime, ttl_hours: int) -> InvitationState:
    if invitation is None:
        return InvitationState.not_found
    if invitation.status == models.InvitationStatus.used:
        return InvitationState.used
    if now - invitation.created_at > timedelta(hours=ttl_hours):
        return InvitationState.expired
    return InvitationState.valid


def ensure_usable(state: InvitationState, invitation_id: str) -> None:
    if state is InvitationState.valid:
        return
    if state is InvitationState.not_found:
        raise NotFoundError("Invitation not found", invitation_id=invitation_id)
    if state is InvitationState.used:
        raise ConflictError("This invitation has already been used", invitation_id=invitation_id)
    if state is InvitationState.expired:
        raise ExpiredError("This invitation has expired", invitation_id=invitation_id)
    raise ValueError(f"Unhandled invitation state: {state}")


@dataclass
class IssuedInvitation:
    invitation: models.Invitation
    registration_url: str
    receipt: DeliveryReceipt


class InvitationService:
    def __init__(
        self,
        backend: BackendDataService,
        sender: ResendEmailSender,
        settings: Settings,
        clock: Callable[[], datetime] = models.utcnow,
    ):
        self.backend = backend
        self.sender = sender
        self.settings = settings
        self.clock = clock

    def state_of(self, invitation: models.Invitation | None) -> InvitationState:
        return check_invitation(invitation, self.clock(), self.settings.INVITATION_TTL_HOURS)

    def issue(self, recruiter_id: str, company_id: str, email: str) -> IssuedInvitation:
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required")
        if not is_valid_email(email):
            raise ValidationError("Email address is not valid")
        if not self.backend.get_company(company_id):
            raise NotFoundError("Company not found", company_id=company_id)

        cutoff = self.clock() - timedelta(hours=self.settings.INVITATION_TTL_HOURS)
        try:
            with self.backend.transaction():
                # Holds concurrent issues for this company until commit.
                self.backend.lock_company(company_id)
                live = self.backend.find_live_invitation(email, company_id, cutoff)
                invitation = None if live else self.backend.create_invitation(email, company_id, recruiter_id)
        except RecruitflowError as exc:
            raise InvitationRecordError("Could not create the invitation") from exc

        if live:
            raise ConflictError(
                "A pending invitation already exists for this email; resend it instead",
                invitation_id=live.id,
            )

        logger.info("Invitation %s created for %s (company %s)", invitation.id, email, company_id)
        return self._dispatch(invitation)

    def resend(self, company_id: str, invitation_id: str) -> IssuedInvitation:
        invitation = self.backend.get_invitation(invitation_id)
        if invitation is not None and invitation.company_id != company_id:
            invitation = None
        ensure_usable(self.state_of(invitation), invitation_id)
        return self._dispatch(invitation)

    def inspect(self, invitation_id: str) -> tuple[models.Invitation | None, InvitationState]:
        invitation = self.backend.get_invitation(invitation_id)
        return invitation, self.state_of(invitation)

    def list_for_company(self, company_id: str) -> list[tuple[models.Invitation, InvitationState]]:
        return [(inv, self.state_of(inv)) for inv in self.backend.list_invitations(company_id)]

    def _dispatch(self, invitation: models.Invitation) -> IssuedInvitation:
        registration_url = build_registration_url(self.settings.APP_BASE_URL, invitation.id, invitation.company_id)
        message = render_invitation_email(invitation.email, registration_url, self.settings.INVITATION_TTL_HOURS)
        try:
            receipt = self.sender.send(message)
        except RecruitflowError as exc:
            logger.warning("Invitation %s is pending but its email was not sent: %s", invitation.id, exc)
            raise EmailDispatchError(
                "The invitation was created but the email could not be sent",
                invitation_id=invitation.id,
            ) from exc

        try:
            with self.backend.transaction():
                self.backend.record_invitation_sent(invitation, self.clock())
        except RecruitflowError:
            # The email is already out; only the send counter is stale.
            logger.exception("Could not record delivery of invitation %s", invitation.id)

        return IssuedInvitation(invitation=invitation, registration_url=registration_url, receipt=receipt)
