from fastapi import APIRouter, Depends

from recruitflow import models
from recruitflow.deps import get_applicant_profile, get_recruiter_membership, get_skill_test_service
from recruitflow.schemas_skilltests import (
    AssignedTestOut,
    ResponseCreate,
    SkillTestCreate,
    SkillTestDraftOut,
    SkillTestDraftRequest,
    SkillTestOut,
    TestResultOut,
)
from recruitflow.skilltests import SkillTestService

router = APIRouter(tags=["skill-tests"])


def _assigned_out(assignment: models.TestAssignment) -> AssignedTestOut:
    test = assignment.test
    return AssignedTestOut(
        assignment_id=assignment.id,
        status=assignment.status,
        test_id=test.id,
        title=test.title,
        category=test.category,
        programming_language=test.programming_language,
        difficulty=test.difficulty,
        time_limit=test.time_limit,
        questions="\n\n".join(question.question_text for question in test.questions) or None,
    )


def _result_out(response: models.TestResponse) -> TestResultOut:
    return TestResultOut(
        response_id=response.id,
        test_id=response.test_id,
        test_title=response.test.title,
        applicant_id=response.applicant_id,
        applicant_name=f"{response.applicant.first_name} {response.applicant.last_name}".strip(),
        score=response.score,
        code_quality_score=response.code_quality_score,
        maintainability_score=response.maintainability_score,
        algorithm_score=response.algorithm_score,
        readability_score=response.readability_score,
        performance_score=response.performance_score,
        review_comments=response.review_comments,
        submitted_at=response.created_at,
    )


@router.post("/skill-tests/drafts", response_model=SkillTestDraftOut)
def draft_skill_test(
    payload: SkillTestDraftRequest,
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    service: SkillTestService = Depends(get_skill_test_service),
) -> SkillTestDraftOut:
    return SkillTestDraftOut(success=True, data=service.draft_questions(payload, payload.prompt))


@router.post("/skill-tests", response_model=SkillTestOut, status_code=201)
def create_skill_test(
    payload: SkillTestCreate,
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    service: SkillTestService = Depends(get_skill_test_service),
) -> models.SkillTest:
    return service.create_test(membership, payload)


@router.get("/skill-tests", response_model=list[SkillTestOut])
def list_skill_tests(
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    service: SkillTestService = Depends(get_skill_test_service),
) -> list[models.SkillTest]:
    return service.list_company_tests(membership.company_id)


@router.get("/skill-tests/results", response_model=list[TestResultOut])
def list_skill_test_results(
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    service: SkillTestService = Depends(get_skill_test_service),
) -> list[TestResultOut]:
    return [_result_out(response) for response in service.list_company_results(membership.company_id)]


@router.get("/applicant/skill-tests", response_model=list[AssignedTestOut])
def list_my_pending_tests(
    profile: models.ApplicantProfile = Depends(get_applicant_profile),
    service: SkillTestService = Depends(get_skill_test_service),
) -> list[AssignedTestOut]:
    return [_assigned_out(assignment) for assignment in service.pending_for_applicant(profile.id)]


@router.get("/applicant/skill-tests/results", response_model=list[TestResultOut])
def list_my_results(
    profile: models.ApplicantProfile = Depends(get_applicant_profile),
    service: SkillTestService = Depends(get_skill_test_service),
) -> list[TestResultOut]:
    return [_result_out(response) for response in service.list_applicant_results(profile.id)]


@router.get("/applicant/skill-tests/{test_id}", response_model=AssignedTestOut)
def get_my_test(
    test_id: str,
    profile: models.ApplicantProfile = Depends(get_applicant_profile),
    service: SkillTestService = Depends(get_skill_test_service),
) -> AssignedTestOut:
    return _assigned_out(service.get_for_applicant(profile.id, test_id))


@router.post("/applicant/skill-tests/{test_id}/responses", response_model=TestResultOut, status_code=201)
def submit_my_response(
    test_id: str,
    payload: ResponseCreate,
    profile: models.ApplicantProfile = Depends(get_applicant_profile),
    service: SkillTestService = Depends(get_skill_test_service),
) -> TestResultOut:
    return _result_out(service.submit(profile.id, test_id, payload.answer))
