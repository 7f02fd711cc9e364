from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from recruitflow import models
from recruitflow.backend import BackendDataService
from recruitflow.database import get_session
from recruitflow.deps import get_applicant_profile, get_backend, get_recruiter_membership
from recruitflow.errors import NotFoundError, ValidationError
from recruitflow.schemas_accounts import ApplicationDetailOut, ApplicationOut, ApplicationUpdate

router = APIRouter(tags=["applications"])


@router.get("/applications", response_model=list[ApplicationDetailOut])
def list_company_applications(
    status: Optional[models.ApplicationStatus] = Query(None),
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    session: Session = Depends(get_session),
) -> list[models.Application]:
    query = (
        select(models.Application)
        .options(selectinload(models.Application.applicant))
        .where(models.Application.company_id == membership.company_id)
    )
    if status:
        query = query.where(models.Application.status == status)
    return list(session.scalars(query.order_by(models.Application.applied_at.desc())))


@router.patch("/applications/{application_id}", response_model=ApplicationOut)
def update_application(
    application_id: str,
    payload: ApplicationUpdate,
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    backend: BackendDataService = Depends(get_backend),
) -> models.Application:
    changes = payload.model_dump(exclude_unset=True)
    if "status" in changes and changes["status"] is None:
        raise ValidationError("Status cannot be cleared", field="status")
    with backend.transaction() as session:
        application = session.get(models.Application, application_id)
        # Other companies' applications are reported as absent.
        if not application or application.company_id != membership.company_id:
            raise NotFoundError("Application not found", application_id=application_id)
        for field, value in changes.items():
            setattr(application, field, value)
    return application


@router.get("/applicant/applications", response_model=list[ApplicationOut])
def list_my_applications(
    profile: models.ApplicantProfile = Depends(get_applicant_profile),
    session: Session = Depends(get_session),
) -> list[models.Application]:
    return list(
        session.scalars(
            select(models.Application)
            .where(models.Application.applicant_id == profile.id)
            .order_by(models.Application.applied_at.desc())
        )
    )
