from typing import Optional

from pydantic import BaseModel, Field


class RecruiterSignupIn(BaseModel):
    email: str = Field(..., description="Login email of the recruiter")
    password: str = Field(..., min_length=8, max_length=256)
    full_name: Optional[str] = Field(None, max_length=255)
    company_name: str = Field(..., min_length=1, max_length=255)
    company_website: Optional[str] = None


class LoginIn(BaseModel):
    email: str
    password: str = Field(..., max_length=256)


class RegisterIn(BaseModel):
    email: str
    password: str = Field(..., max_length=256)
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    phone: Optional[str] = Field(None, max_length=32)


class UserOut(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None

    class Config:
        from_attributes = True


class SessionOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class RegistrationOut(SessionOut):
    invitation_id: str
    profile_id: str
    application_id: str
    company_id: str


class AuthStatusOut(BaseModel):
    status: str
