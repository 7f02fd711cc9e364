"""
Skill tests.

A recruiter drafts a question sheet with the text generator, edits it, saves it
and assigns it to applicants who applied to the company. Each assignment takes
exactly one answer: the answer is graded by the text generator against five
criteria worth 20 points each, and the assignment moves pending -> completed.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from recruitflow import models
from recruitflow.backend import BackendDataService
from recruitflow.errors import ConflictError, NotFoundError, UpstreamError, ValidationError
from recruitflow.llm import TextGenerator
from recruitflow.schemas_skilltests import SkillTestCreate, SkillTestParams

logger = logging.getLogger(__name__)

POINTS_PER_CRITERION = 20
GRADING_CRITERIA = (
    ("code_quality", "Code quality", "consistency, use of best practices"),
    ("maintainability", "Maintainability", "structure, ease of future change"),
    ("algorithm", "Algorithm", "fitness of the approach, correctness of the logic"),
    ("readability", "Readability", "naming, quality and amount of comments"),
    ("performance", "Performance", "runtime efficiency, resource use"),
)
MAX_SCORE = POINTS_PER_CRITERION * len(GRADING_CRITERIA)

_JSON_FENCE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


def build_question_prompt(params: SkillTestParams, brief: str) -> str:
    return "\n".join(
        [
            "You are an experienced author of programming skill tests.",
            f"Write {params.question_count} questions for the following test.",
            "",
            f"- Category: {params.category}",
            f"- Language: {params.programming_language}",
            f"- Experience level: {params.experience_level}",
            f"- Difficulty: {params.difficulty}",
            f"- Test type: {params.test_type}",
            "",
            "Additional instructions:",
            brief.strip(),
            "",
            "Output format:",
            "- Number every question and answer in markdown.",
            "- Give each question its statement and an empty answer section.",
            f"- The time limit is {params.time_limit} minutes.",
        ]
    )


def build_grading_prompt(questions: str, answer: str) -> str:
    lines = [
        "You grade programming skill tests.",
        "",
        "Questions:",
        questions.strip() or "(not provided)",
        "",
        "Answer:",
        answer.strip(),
        "",
        "Criteria:",
    ]
    for index, (_, label, focus) in enumerate(GRADING_CRITERIA, start=1):
        lines.append(f"{index}. {label} ({POINTS_PER_CRITERION} points): {focus}")
    keys = ", ".join(f'"{key}": number' for key, _, _ in GRADING_CRITERIA)
    lines += [
        "",
        "Reply with a single JSON object in a ```json block:",
        f'{{{keys}, "total_score": number, "review_comments": "text"}}',
    ]
    return "\n".join(lines)


@dataclass
class Grading:
    code_quality: float
    maintainability: float
    algorithm: float
    readability: float
    performance: float
    total_score: float
    review_comments: str | None


def _points(value, maximum: float) -> float:
    if isinstance(value, bool):
        raise UpstreamError("The grader returned an invalid score")
    try:
        points = float(value)
    except (TypeError, ValueError) as exc:
        raise UpstreamError("The grader returned an invalid score") from exc
    return min(max(points, 0.0), maximum)


def parse_grading(text: str) -> Grading:
    """
    Read the grader's JSON, fenced or bare. Scores are clamped to their range;
    a missing total is the sum of the criteria.
    """
    text = text or ""
    match = _JSON_FENCE.search(text)
    raw = match.group(1) if match else text[text.find("{") : text.rfind("}") + 1]
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise UpstreamError("The grader returned no readable scores") from exc
    if not isinstance(data, dict):
        raise UpstreamError("The grader returned no readable scores")

    scores = {key: _points(data.get(key), POINTS_PER_CRITERION) for key, _, _ in GRADING_CRITERIA}
    total = data.get("total_score")
    total = sum(scores.values()) if total is None else _points(total, MAX_SCORE)
    comments = data.get("review_comments")
    return Grading(**scores, total_score=total, review_comments=str(comments) if comments else None)


class SkillTestService:
    def __init__(
        self,
        backend: BackendDataService,
        generator: TextGenerator,
        clock: Callable[[], datetime] = models.utcnow,
    ):
        self.backend = backend
        self.generator = generator
        self.clock = clock

    # Recruiter side

    def draft_questions(self, params: SkillTestParams, brief: str) -> str:
        if not (brief or "").strip():
            raise ValidationError("Prompt is required")
        return self.generator.generate(build_question_prompt(params, brief))

    def create_test(self, membership: models.CompanyMembership, payload: SkillTestCreate) -> models.SkillTest:
        applicant_ids = list(dict.fromkeys(payload.applicant_ids))
        applied = set(
            self.backend.session.scalars(
                select(models.Application.applicant_id).where(
                    models.Application.company_id == membership.company_id,
                    models.Application.applicant_id.in_(applicant_ids),
                )
            )
        )
        unknown = [applicant_id for applicant_id in applicant_ids if applicant_id not in applied]
        if unknown:
            raise ValidationError("Only applicants of this company can be assigned", applicant_ids=unknown)

        with self.backend.transaction() as session:
            test = models.SkillTest(
                company_id=membership.company_id,
                created_by_user_id=membership.user_id,
                **payload.model_dump(exclude={"prompt", "questions", "applicant_ids"}),
            )
            session.add(test)
            session.flush()
            session.add(models.TestQuestion(test_id=test.id, question_text=payload.questions, prompt=payload.prompt))
            for applicant_id in applicant_ids:
                session.add(models.TestAssignment(test_id=test.id, applicant_id=applicant_id))
            session.flush()

        logger.info("Skill test %s assigned to %d applicant(s)", test.id, len(applicant_ids))
        return test

    def list_company_tests(self, company_id: str) -> list[models.SkillTest]:
        return list(
            self.backend.session.scalars(
                select(models.SkillTest)
                .options(selectinload(models.SkillTest.assignments))
                .where(models.SkillTest.company_id == company_id)
                .order_by(models.SkillTest.created_at.desc())
            )
        )

    def list_company_results(self, company_id: str) -> list[models.TestResponse]:
        return self._results(models.SkillTest.company_id == company_id)

    # Applicant side

    def pending_for_applicant(self, applicant_id: str) -> list[models.TestAssignment]:
        return list(
            self.backend.session.scalars(
                select(models.TestAssignment)
                .options(selectinload(models.TestAssignment.test).selectinload(models.SkillTest.questions))
                .where(
                    models.TestAssignment.applicant_id == applicant_id,
                    models.TestAssignment.status == models.AssignmentStatus.pending,
                )
                .order_by(models.TestAssignment.created_at)
            )
        )

    def get_for_applicant(self, applicant_id: str, test_id: str) -> models.TestAssignment:
        assignment = self._assignment(applicant_id, test_id)
        if assignment.status == models.AssignmentStatus.pending and assignment.started_at is None:
            with self.backend.transaction():
                assignment.started_at = self.clock()
        return assignment

    def submit(self, applicant_id: str, test_id: str, answer: str) -> models.TestResponse:
        answer = (answer or "").strip()
        if not answer:
            raise ValidationError("Answer is required")
        assignment = self._assignment(applicant_id, test_id)
        if assignment.status != models.AssignmentStatus.pending:
            raise ConflictError("This test has already been submitted", test_id=test_id)

        questions = "\n\n".join(question.question_text for question in assignment.test.questions)
        # Graded before any write; a grader failure leaves the assignment pending.
        grading = parse_grading(self.generator.generate(build_grading_prompt(questions, answer)))

        now = self.clock()
        with self.backend.transaction() as session:
            if not self.backend.complete_assignment(assignment.id, grading.total_score, now):
                raise ConflictError("This test has already been submitted", test_id=test_id)
            response = models.TestResponse(
                test_id=test_id,
                applicant_id=applicant_id,
                assignment_id=assignment.id,
                answer=answer,
                score=grading.total_score,
                code_quality_score=grading.code_quality,
                maintainability_score=grading.maintainability,
                algorithm_score=grading.algorithm,
                readability_score=grading.readability,
                performance_score=grading.performance,
                review_comments=grading.review_comments,
            )
            session.add(response)
            session.flush()

        logger.info("Applicant %s completed skill test %s with %.1f", applicant_id, test_id, grading.total_score)
        return response

    def list_applicant_results(self, applicant_id: str) -> list[models.TestResponse]:
        return self._results(models.TestResponse.applicant_id == applicant_id)

    def _assignment(self, applicant_id: str, test_id: str) -> models.TestAssignment:
        assignment = self.backend.session.scalars(
            select(models.TestAssignment).where(
                models.TestAssignment.applicant_id == applicant_id,
                models.TestAssignment.test_id == test_id,
            )
        ).first()
        # Tests assigned to someone else are reported as absent.
        if not assignment:
            raise NotFoundError("Skill test not found", test_id=test_id)
        return assignment

    def _results(self, criterion) -> list[models.TestResponse]:
        return list(
            self.backend.session.scalars(
                select(models.TestResponse)
                .join(models.SkillTest, models.SkillTest.id == models.TestResponse.test_id)
                .options(selectinload(models.TestResponse.test), selectinload(models.TestResponse.applicant))
                .where(criterion)
                .order_by(models.TestResponse.created_at.desc())
            )
        )
