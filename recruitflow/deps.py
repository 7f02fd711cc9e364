from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from recruitflow import models
from recruitflow.auth import parse_bearer_token
from recruitflow.backend import BackendDataService
from recruitflow.config import Settings
from recruitflow.database import get_session
from recruitflow.errors import AuthenticationError, PermissionDeniedError
from recruitflow.invitations import InvitationService
from recruitflow.llm import TextGenerator
from recruitflow.mailer import ResendEmailSender
from recruitflow.registration import RegistrationService
from recruitflow.skilltests import SkillTestService
from recruitflow.storage import ObjectStorage


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_backend(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> BackendDataService:
    return BackendDataService(session, settings)


def get_email_sender(request: Request) -> ResendEmailSender:
    return request.app.state.email_sender


def get_text_generator(request: Request) -> TextGenerator:
    return request.app.state.text_generator


def get_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage


def get_invitation_service(
    backend: BackendDataService = Depends(get_backend),
    sender: ResendEmailSender = Depends(get_email_sender),
    settings: Settings = Depends(get_settings),
) -> InvitationService:
    return InvitationService(backend, sender, settings)


def get_registration_service(
    backend: BackendDataService = Depends(get_backend),
    settings: Settings = Depends(get_settings),
) -> RegistrationService:
    return RegistrationService(backend, settings)


def get_skill_test_service(
    backend: BackendDataService = Depends(get_backend),
    generator: TextGenerator = Depends(get_text_generator),
) -> SkillTestService:
    return SkillTestService(backend, generator)


def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    token = parse_bearer_token(authorization)
    if not token:
        raise AuthenticationError("Missing bearer token")
    return token


def get_current_user(
    token: str = Depends(get_bearer_token),
    backend: BackendDataService = Depends(get_backend),
) -> models.User:
    user = backend.resolve_session(token, models.utcnow())
    if not user:
        raise AuthenticationError("Session is invalid or has expired")
    return user


def get_recruiter_membership(
    current_user: models.User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> models.CompanyMembership:
    """
    The recruiter's company is their default membership, falling back to the oldest one.
    """
    membership = session.scalars(
        select(models.CompanyMembership)
        .where(models.CompanyMembership.user_id == current_user.id)
        .order_by(models.CompanyMembership.is_default.desc(), models.CompanyMembership.created_at)
    ).first()
    if not membership:
        raise PermissionDeniedError("Recruiter profile not found")
    return membership


def get_applicant_profile(
    current_user: models.User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> models.ApplicantProfile:
    profile = session.get(models.ApplicantProfile, current_user.id)
    if not profile:
        raise PermissionDeniedError("Applicant profile not found")
    return profile
