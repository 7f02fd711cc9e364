import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from recruitflow import models
from recruitflow.backend import BackendDataService
from recruitflow.database import get_session
from recruitflow.deps import get_applicant_profile, get_backend, get_recruiter_membership
from recruitflow.errors import PermissionDeniedError, ValidationError
from recruitflow.schemas_profiles import (
    ApplicantProfileDetailOut,
    ApplicantProfileUpdate,
    RecruiterProfileOut,
    RecruiterProfileUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profiles"])

REQUIRED_APPLICANT_FIELDS = ("first_name", "last_name")
APPLICANT_LIST_FIELDS = ("education", "work_experience", "skills", "certifications")
RECRUITER_FIELDS = ("first_name", "last_name", "phone", "department", "position")
# Request field -> Company column. Only company admins may change these.
COMPANY_FIELDS = {
    "company_name": "name",
    "company_website": "website",
    "company_address": "address",
    "company_description": "description",
}


def _clean(value):
    if isinstance(value, str):
        return value.strip() or None
    return value


@router.get("/applicant/profile", response_model=ApplicantProfileDetailOut)
def get_my_applicant_profile(
    profile: models.ApplicantProfile = Depends(get_applicant_profile),
) -> models.ApplicantProfile:
    return profile


@router.put("/applicant/profile", response_model=ApplicantProfileDetailOut)
def update_my_applicant_profile(
    payload: ApplicantProfileUpdate,
    profile: models.ApplicantProfile = Depends(get_applicant_profile),
    backend: BackendDataService = Depends(get_backend),
) -> models.ApplicantProfile:
    changes = {field: _clean(value) for field, value in payload.model_dump(exclude_unset=True).items()}
    blank = [field for field in REQUIRED_APPLICANT_FIELDS if field in changes and not changes[field]]
    if blank:
        raise ValidationError(f"Missing required fields: {', '.join(blank)}", fields=blank)
    for field in APPLICANT_LIST_FIELDS:
        if field in changes and changes[field] is None:
            changes[field] = []

    with backend.transaction():
        for field, value in changes.items():
            setattr(profile, field, value)
    logger.info("Applicant %s updated their profile", profile.id)
    return profile


def _recruiter_out(
    membership: models.CompanyMembership, recruiter: models.RecruiterProfile | None
) -> RecruiterProfileOut:
    company = membership.company
    return RecruiterProfileOut(
        id=membership.user_id,
        email=membership.user.email,
        first_name=recruiter.first_name if recruiter else None,
        last_name=recruiter.last_name if recruiter else None,
        phone=recruiter.phone if recruiter else None,
        department=recruiter.department if recruiter else None,
        position=recruiter.position if recruiter else None,
        role=membership.role,
        company_id=company.id,
        company_name=company.name,
        company_website=company.website,
        company_address=company.address,
        company_description=company.description,
    )


@router.get("/recruiter/profile", response_model=RecruiterProfileOut)
def get_my_recruiter_profile(
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    session: Session = Depends(get_session),
) -> RecruiterProfileOut:
    return _recruiter_out(membership, session.get(models.RecruiterProfile, membership.user_id))


@router.put("/recruiter/profile", response_model=RecruiterProfileOut)
def update_my_recruiter_profile(
    payload: RecruiterProfileUpdate,
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    backend: BackendDataService = Depends(get_backend),
) -> RecruiterProfileOut:
    changes = {field: _clean(value) for field, value in payload.model_dump(exclude_unset=True).items()}
    company_changes = {COMPANY_FIELDS[field]: changes.pop(field) for field in list(changes) if field in COMPANY_FIELDS}
    if company_changes and membership.role != models.CompanyRole.admin:
        raise PermissionDeniedError("Only company admins can edit company details")
    if "name" in company_changes and not company_changes["name"]:
        raise ValidationError("Company name cannot be empty", field="company_name")

    with backend.transaction() as session:
        recruiter = session.get(models.RecruiterProfile, membership.user_id)
        if not recruiter:
            recruiter = models.RecruiterProfile(id=membership.user_id)
            session.add(recruiter)
        for field in RECRUITER_FIELDS:
            if field in changes:
                setattr(recruiter, field, changes[field])
        for column, value in company_changes.items():
            setattr(membership.company, column, value)
        session.flush()

    logger.info("Recruiter %s updated their profile", membership.user_id)
    return _recruiter_out(membership, recruiter)
