from typing import Any, Optional

from pydantic import BaseModel, Field

from recruitflow.models import CompanyRole


class ApplicantProfileDetailOut(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    current_position: Optional[str] = None
    desired_position: Optional[str] = None
    desired_salary: Optional[str] = None
    education: list[dict[str, Any]] = []
    work_experience: list[dict[str, Any]] = []
    skills: list[dict[str, Any]] = []
    certifications: list[dict[str, Any]] = []

    class Config:
        from_attributes = True


class ApplicantProfileUpdate(BaseModel):
    """Fields left out of the request keep their stored value. Email is not editable here."""

    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=32)
    current_position: Optional[str] = Field(None, max_length=255)
    desired_position: Optional[str] = Field(None, max_length=255)
    desired_salary: Optional[str] = Field(None, max_length=128)
    education: Optional[list[dict[str, Any]]] = None
    work_experience: Optional[list[dict[str, Any]]] = None
    skills: Optional[list[dict[str, Any]]] = None
    certifications: Optional[list[dict[str, Any]]] = None


class RecruiterProfileOut(BaseModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    role: CompanyRole
    company_id: str
    company_name: str
    company_website: Optional[str] = None
    company_address: Optional[str] = None
    company_description: Optional[str] = None


class RecruiterProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=32)
    department: Optional[str] = Field(None, max_length=255)
    position: Optional[str] = Field(None, max_length=255)
    company_name: Optional[str] = Field(None, max_length=255)
    company_website: Optional[str] = Field(None, max_length=255)
    company_address: Optional[str] = Field(None, max_length=255)
    company_description: Optional[str] = None
