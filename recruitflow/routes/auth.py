import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select

from recruitflow import models
from recruitflow.auth import is_valid_email, normalize_email, verify_password
from recruitflow.backend import BackendDataService
from recruitflow.deps import (
    get_backend,
    get_bearer_token,
    get_current_user,
    get_invitation_service,
    get_registration_service,
)
from recruitflow.errors import AuthenticationError, ConflictError, ValidationError
from recruitflow.invitations import InvitationService, InvitationState
from recruitflow.registration import RegistrationRequest, RegistrationService
from recruitflow.schemas_auth import (
    AuthStatusOut,
    LoginIn,
    RecruiterSignupIn,
    RegisterIn,
    RegistrationOut,
    SessionOut,
    UserOut,
)
from recruitflow.schemas_invitations import InvitationCheckOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/recruiters", response_model=SessionOut, status_code=201)
def signup_recruiter(
    payload: RecruiterSignupIn,
    backend: BackendDataService = Depends(get_backend),
) -> SessionOut:
    email = normalize_email(payload.email)
    if not is_valid_email(email):
        raise ValidationError("Email address is not valid")

    existing = backend.session.scalars(
        select(models.Company).where(models.Company.name == payload.company_name.strip())
    ).first()
    if existing:
        raise ConflictError("Company with that name already exists")

    now = models.utcnow()
    with backend.transaction() as session:
        user = backend.create_identity(
            email=email,
            password=payload.password,
            full_name=payload.full_name,
            metadata={"role": "recruiter"},
        )
        company = models.Company(name=payload.company_name.strip(), website=payload.company_website)
        session.add(company)
        session.flush()
        session.add(
            models.CompanyMembership(
                user_id=user.id,
                company_id=company.id,
                role=models.CompanyRole.admin,
                is_default=True,
            )
        )
        token = backend.create_session(user, now)

    logger.info("Recruiter %s signed up for company %s", user.id, company.id)
    return SessionOut(access_token=token, user=UserOut.model_validate(user))


@router.post("/login", response_model=SessionOut)
def login(
    payload: LoginIn,
    backend: BackendDataService = Depends(get_backend),
) -> SessionOut:
    user = backend.get_user_by_email(normalize_email(payload.email))
    if not user or not user.is_active or not verify_password(payload.password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    with backend.transaction():
        token = backend.create_session(user, models.utcnow())
    return SessionOut(access_token=token, user=UserOut.model_validate(user))


@router.post("/logout", response_model=AuthStatusOut)
def logout(
    token: str = Depends(get_bearer_token),
    backend: BackendDataService = Depends(get_backend),
) -> AuthStatusOut:
    with backend.transaction():
        backend.revoke_session(token)
    return AuthStatusOut(status="logged_out")


@router.get("/me", response_model=UserOut)
def me(current_user: models.User = Depends(get_current_user)) -> models.User:
    return current_user


@router.delete("/users/me", response_model=AuthStatusOut)
def delete_account(
    current_user: models.User = Depends(get_current_user),
    backend: BackendDataService = Depends(get_backend),
) -> AuthStatusOut:
    user_id = current_user.id
    with backend.transaction():
        backend.delete_identity(user_id)
    logger.info("User %s deleted their account", user_id)
    return AuthStatusOut(status="deleted")


@router.get("/register", response_model=InvitationCheckOut)
def check_registration_link(
    invitation: str = Query(..., description="Invitation id from the registration link"),
    company_id: str = Query(..., description="Company id from the registration link"),
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationCheckOut:
    record, state = service.inspect(invitation)
    if record is not None and record.company_id != company_id:
        record, state = None, InvitationState.not_found
    return InvitationCheckOut(
        invitation_id=invitation,
        state=state,
        company_id=record.company_id if record else None,
        email=record.email if record else None,
    )


@router.post("/register", response_model=RegistrationOut, status_code=201)
def register_applicant(
    payload: RegisterIn,
    invitation: str = Query(..., description="Invitation id from the registration link"),
    company_id: str = Query(..., description="Company id from the registration link"),
    service: RegistrationService = Depends(get_registration_service),
) -> RegistrationOut:
    result = service.register(
        invitation,
        company_id,
        RegistrationRequest(
            email=payload.email,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            phone=payload.phone,
        ),
    )
    return RegistrationOut(
        access_token=result.session_token,
        user=UserOut.model_validate(result.user),
        invitation_id=result.invitation_id,
        profile_id=result.profile.id,
        application_id=result.application.id,
        company_id=result.application.company_id,
    )
