"""
Invitation-gated applicant registration.

The guard runs first and writes nothing. The bootstrap (claim the invitation,
create the identity, the profile, the initial application and a session) runs
in one database transaction, so a failure at any step leaves no identity behind
and the invitation still pending for a clean retry.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from recruitflow import models
from recruitflow.auth import MIN_PASSWORD_LENGTH, is_valid_email, normalize_email
from recruitflow.backend import BackendDataService
from recruitflow.config import Settings
from recruitflow.errors import ConflictError, NotFoundError, ValidationError
from recruitflow.invitations import check_invitation, ensure_usable

logger = logging.getLogger(__name__)


@dataclass
class RegistrationRequest:
    email: str
    password: str
    first_name: str
    last_name: str
    phone: str | None = None


@dataclass
class RegistrationResult:
    user: models.User
    profile: models.ApplicantProfile
    application: models.Application
    invitation_id: str
    session_token: str


def _validate(invitation_id: str, company_id: str, request: RegistrationRequest) -> None:
    missing = [
        name
        for name, value in (
            ("invitation", invitation_id),
            ("company_id", company_id),
            ("email", request.email),
            ("password", request.password),
            ("first_name", request.first_name),
            ("last_name", request.last_name),
        )
        if not (value or "").strip()
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)
    if not is_valid_email(request.email):
        raise ValidationError("Email address is not valid")
    if len(request.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class RegistrationService:
    def __init__(
        self,
        backend: BackendDataService,
        settings: Settings,
        clock: Callable[[], datetime] = models.utcnow,
    ):
        self.backend = backend
        self.settings = settings
        self.clock = clock

    def register(self, invitation_id: str, company_id: str, request: RegistrationRequest) -> RegistrationResult:
        _validate(invitation_id, company_id, request)
        email = normalize_email(request.email)
        now = self.clock()

        invitation = self.backend.get_invitation(invitation_id)
        ensure_usable(check_invitation(invitation, now, self.settings.INVITATION_TTL_HOURS), invitation_id)

        if invitation.company_id != company_id:
            raise ValidationError("The invitation link does not match its company")
        if self.settings.INVITATION_REQUIRE_EMAIL_MATCH and invitation.email != email:
            raise ValidationError("Register with the email address the invitation was sent to")
        if not self.backend.get_company(company_id):
            raise NotFoundError("Company not found", company_id=company_id)

        with self.backend.transaction():
            if not self.backend.claim_invitation(invitation_id, now):
                logger.info("Invitation %s was consumed concurrently", invitation_id)
                raise ConflictError("This invitation has already been used", invitation_id=invitation_id)

            user = self.backend.create_identity(
                email=email,
                password=request.password,
                full_name=f"{request.first_name} {request.last_name}".strip(),
                metadata={
                    "role": "applicant",
                    "first_name": request.first_name,
                    "last_name": request.last_name,
                    "phone": request.phone,
                    "invitation_id": invitation_id,
                },
            )
            self.backend.mark_invitation_consumer(invitation_id, user.id)
            profile = self.backend.upsert_applicant_profile(
                user_id=user.id,
                email=email,
                first_name=request.first_name.strip(),
                last_name=request.last_name.strip(),
                phone=(request.phone or "").strip() or None,
            )
            application = self.backend.upsert_initial_application(company_id, user.id)
            token = self.backend.create_session(user, now)

        logger.info("Invitation %s consumed by %s; application %s created", invitation_id, user.id, application.id)
        return RegistrationResult(
            user=user,
            profile=profile,
            application=application,
            invitation_id=invitation_id,
            session_token=token,
        )
