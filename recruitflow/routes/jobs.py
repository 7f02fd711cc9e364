import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from recruitflow import models
from recruitflow.backend import BackendDataService
from recruitflow.database import get_session
from recruitflow.deps import get_backend, get_recruiter_membership
from recruitflow.errors import NotFoundError, PermissionDeniedError
from recruitflow.schemas_accounts import JobCreate, JobOut, JobWithCountsOut
from recruitflow.schemas_auth import AuthStatusOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])


def _get_company_job(session: Session, job_id: str, company_id: str) -> models.Job:
    job = session.get(models.Job, job_id)
    if not job:
        raise NotFoundError("Job not found", job_id=job_id)
    if job.company_id != company_id:
        raise PermissionDeniedError("This job belongs to another company")
    return job


@router.post("", response_model=JobOut, status_code=201)
def create_job(
    payload: JobCreate,
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    backend: BackendDataService = Depends(get_backend),
) -> models.Job:
    with backend.transaction() as session:
        job = models.Job(
            user_id=membership.user_id,
            company_id=membership.company_id,
            **payload.model_dump(),
        )
        session.add(job)
        session.flush()
    logger.info("Job %s created for company %s", job.id, job.company_id)
    return job


@router.get("", response_model=list[JobWithCountsOut])
def list_company_jobs(
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    session: Session = Depends(get_session),
) -> list[JobWithCountsOut]:
    counts = (
        select(models.Application.job_id, func.count(models.Application.id).label("applications_count"))
        .group_by(models.Application.job_id)
        .subquery()
    )
    rows = session.execute(
        select(models.Job, func.coalesce(counts.c.applications_count, 0))
        .outerjoin(counts, counts.c.job_id == models.Job.id)
        .where(models.Job.company_id == membership.company_id)
        .order_by(models.Job.created_at.desc())
    ).all()
    return [
        JobWithCountsOut(**JobOut.model_validate(job).model_dump(), applications_count=count)
        for job, count in rows
    ]


@router.get("/{job_id}", response_model=JobOut)
def get_job(
    job_id: str,
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    session: Session = Depends(get_session),
) -> models.Job:
    return _get_company_job(session, job_id, membership.company_id)


@router.delete("/{job_id}", response_model=AuthStatusOut)
def delete_job(
    job_id: str,
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    backend: BackendDataService = Depends(get_backend),
) -> AuthStatusOut:
    with backend.transaction() as session:
        job = _get_company_job(session, job_id, membership.company_id)
        for application in job.applications:
            application.job_id = None
        session.delete(job)
    logger.info("Job %s deleted by %s", job_id, membership.user_id)
    return AuthStatusOut(status="deleted")
