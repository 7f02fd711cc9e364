from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from recruitflow.models import ApplicationStatus


class CompanyOut(BaseModel):
    id: str
    name: str
    website: Optional[str] = None

    class Config:
        from_attributes = True


class ApplicantProfileOut(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None

    class Config:
        from_attributes = True


class JobCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    employment_type: Optional[str] = None
    salary_range: Optional[str] = None
    selected_benefits: list[str] = []
    selected_locations: list[str] = []
    selected_requirements: list[str] = []
    work_style: str = ""
    company_culture: str = ""
    team_description: str = ""
    logo_url: str = ""
    office_photo_url: str = ""
    team_photo_url: str = ""
    event_photo_url: str = ""


class JobOut(JobCreate):
    id: str
    user_id: Optional[str] = None
    company_id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class JobWithCountsOut(JobOut):
    applications_count: int = 0


class ApplicationUpdate(BaseModel):
    status: Optional[ApplicationStatus] = None
    score: Optional[float] = Field(None, ge=0, le=100)
    feedback: Optional[str] = None
    next_step: Optional[str] = Field(None, max_length=255)
    next_date: Optional[datetime] = None


class ApplicationOut(BaseModel):
    id: str
    company_id: str
    applicant_id: str
    job_id: Optional[str] = None
    status: ApplicationStatus
    score: Optional[float] = None
    feedback: Optional[str] = None
    next_step: Optional[str] = None
    next_date: Optional[datetime] = None
    applied_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ApplicationDetailOut(ApplicationOut):
    applicant: ApplicantProfileOut
