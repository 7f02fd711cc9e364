from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from recruitflow.models import AssignmentStatus

Category = Literal["general", "frontend", "backend", "mobile", "devops", "database", "security"]
ProgrammingLanguage = Literal["javascript", "typescript", "python", "java", "php", "ruby", "go"]
ExperienceLevel = Literal["entry", "intermediate", "senior"]
Difficulty = Literal["easy", "medium", "hard"]
TestType = Literal["coding", "algorithm", "system", "debugging"]


class SkillTestParams(BaseModel):
    category: Category = "general"
    programming_language: ProgrammingLanguage = "python"
    experience_level: ExperienceLevel = "entry"
    difficulty: Difficulty = "medium"
    test_type: TestType = "coding"
    question_count: int = Field(3, ge=1, le=20)
    time_limit: int = Field(60, ge=5, le=480, description="Minutes")


class SkillTestDraftRequest(SkillTestParams):
    prompt: str = Field(..., description="Extra instructions for the question writer.")


class SkillTestDraftOut(BaseModel):
    success: bool = True
    data: str


class SkillTestCreate(SkillTestParams):
    title: str = Field(..., min_length=1, max_length=255)
    prompt: Optional[str] = None
    questions: str = Field(..., min_length=1, description="The question sheet, usually an edited draft.")
    applicant_ids: list[str] = Field(..., min_length=1)


class AssignmentOut(BaseModel):
    id: str
    test_id: str
    applicant_id: str
    status: AssignmentStatus
    score: Optional[float] = None
    completed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SkillTestOut(SkillTestParams):
    id: str
    company_id: str
    created_by_user_id: Optional[str] = None
    title: str
    created_at: datetime
    assignments: list[AssignmentOut] = []

    class Config:
        from_attributes = True


class AssignedTestOut(BaseModel):
    """A test as the assigned applicant sees it, questions included."""

    assignment_id: str
    status: AssignmentStatus
    test_id: str
    title: str
    category: str
    programming_language: str
    difficulty: str
    time_limit: int
    questions: Optional[str] = None


class ResponseCreate(BaseModel):
    answer: str = Field(..., min_length=1)


class TestResultOut(BaseModel):
    response_id: str
    test_id: str
    test_title: str
    applicant_id: str
    applicant_name: str
    score: float
    code_quality_score: float
    maintainability_score: float
    algorithm_score: float
    readability_score: float
    performance_score: float
    review_comments: Optional[str] = None
    submitted_at: datetime
