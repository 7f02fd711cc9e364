"""
Backend data service: the relational store and the auth identity store.

Every write goes through :meth:`BackendDataService.transaction`, which commits on
success, rolls back on any failure and translates driver errors into the error
taxonomy (IntegrityError -> ConflictError, other SQLAlchemy errors ->
UpstreamError). Lookups return ``None`` for absent rows and let callers decide
what "not found" means for them.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from recruitflow import auth, models
from recruitflow.config import Settings
from recruitflow.errors import ConflictError, RecruitflowError, UpstreamError

logger = logging.getLogger(__name__)

# Idempotent reads get one retry; writes are never retried here.
READ_ATTEMPTS = 2


class BackendDataService:
    def __init__(self, session: Session, settings: Settings):
        self.session = session
        self.settings = settings

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        try:
            yield self.session
            self.session.commit()
        except RecruitflowError:
            self.session.rollback()
            raise
        except IntegrityError as exc:
            self.session.rollback()
            raise ConflictError("The record conflicts with an existing one") from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Backend write failed")
            raise UpstreamError("The data service is unavailable") from exc
        except Exception:
            self.session.rollback()
            raise

    # Invitations

    def create_invitation(self, email: str, company_id: str, invited_by_user_id: str | None) -> models.Invitation:
        invitation = models.Invitation(
            email=email,
            company_id=company_id,
            invited_by_user_id=invited_by_user_id,
            status=models.InvitationStatus.pending,
        )
        self.session.add(invitation)
        self.session.flush()
        return invitation

    def get_invitation(self, invitation_id: str) -> models.Invitation | None:
        for attempt in range(1, READ_ATTEMPTS + 1):
            try:
                return self.session.get(models.Invitation, invitation_id, populate_existing=True)
            except OperationalError as exc:
                self.session.rollback()
                if attempt >= READ_ATTEMPTS:
                    logger.exception("Invitation lookup failed for %s", invitation_id)
                    raise UpstreamError("Could not read the invitation") from exc
                logger.warning("Invitation lookup for %s failed, retrying once", invitation_id)
        return None

    def find_live_invitation(self, email: str, company_id: str, created_after: datetime) -> models.Invitation | None:
        return self.session.scalars(
            select(models.Invitation)
            .where(
                models.Invitation.email == email,
                models.Invitation.company_id == company_id,
                models.Invitation.status == models.InvitationStatus.pending,
                models.Invitation.created_at >= created_after,
            )
            .order_by(models.Invitation.created_at.desc())
        ).first()

    def list_invitations(self, company_id: str) -> list[models.Invitation]:
        return list(
            self.session.scalars(
                select(models.Invitation)
                .where(models.Invitation.company_id == company_id)
                .order_by(models.Invitation.created_at.desc())
            )
        )

    def record_invitation_sent(self, invitation: models.Invitation, sent_at: datetime) -> None:
        invitation.send_attempts = (invitation.send_attempts or 0) + 1
        invitation.last_sent_at = sent_at
        self.session.flush()

    def claim_invitation(self, invitation_id: str, used_at: datetime) -> bool:
        """
        Flip pending -> used. Returns False when another consumer got there first.
        """
        result = self.session.execute(
            update(models.Invitation)
            .where(
                models.Invitation.id == invitation_id,
                models.Invitation.status == models.InvitationStatus.pending,
            )
            .values(status=models.InvitationStatus.used, used_at=used_at)
        )
        return result.rowcount == 1

    def mark_invitation_consumer(self, invitation_id: str, user_id: str) -> None:
        self.session.execute(
            update(models.Invitation)
            .where(models.Invitation.id == invitation_id)
            .values(used_by_user_id=user_id)
        )

    # Identities and sessions

    def get_user_by_email(self, email: str) -> models.User | None:
        return self.session.scalars(select(models.User).where(models.User.email == email)).first()

    def create_identity(
        self,
        email: str,
        password: str,
        full_name: str | None = None,
        metadata: dict | None = None,
    ) -> models.User:
        if self.get_user_by_email(email):
            raise ConflictError("An account with this email already exists")
        user = models.User(
            email=email,
            password_hash=auth.hash_password(password, self.settings.PASSWORD_HASH_ITERATIONS),
            full_name=full_name,
            user_metadata=metadata or {},
        )
        self.session.add(user)
        self.session.flush()
        return user

    def delete_identity(self, user_id: str) -> bool:
        user = self.session.get(models.User, user_id)
        if not user:
            return False
        self.session.execute(delete(models.TestResponse).where(models.TestResponse.applicant_id == user_id))
        self.session.execute(delete(models.TestAssignment).where(models.TestAssignment.applicant_id == user_id))
        self.session.execute(delete(models.Application).where(models.Application.applicant_id == user_id))
        self.session.execute(delete(models.ApplicantProfile).where(models.ApplicantProfile.id == user_id))
        self.session.execute(delete(models.RecruiterProfile).where(models.RecruiterProfile.id == user_id))
        self.session.execute(delete(models.AuthSession).where(models.AuthSession.user_id == user_id))
        self.session.execute(delete(models.CompanyMembership).where(models.CompanyMembership.user_id == user_id))
        # Company-owned records outlive the recruiter who created them.
        self.session.execute(
            update(models.Invitation)
            .where(models.Invitation.invited_by_user_id == user_id)
            .values(invited_by_user_id=None)
        )
        self.session.execute(update(models.Job).where(models.Job.user_id == user_id).values(user_id=None))
        self.session.execute(
            update(models.SkillTest)
            .where(models.SkillTest.created_by_user_id == user_id)
            .values(created_by_user_id=None)
        )
        self.session.delete(user)
        self.session.flush()
        return True

    def create_session(self, user: models.User, now: datetime) -> str:
        token = auth.generate_session_token()
        self.session.add(
            models.AuthSession(
                user_id=user.id,
                token_hash=auth.hash_session_token(token),
                expires_at=auth.session_expiry(now, self.settings.SESSION_TTL_HOURS),
            )
        )
        self.session.flush()
        return token

    def resolve_session(self, token: str, now: datetime) -> models.User | None:
        auth_session = self.session.scalars(
            select(models.AuthSession).where(models.AuthSession.token_hash == auth.hash_session_token(token))
        ).first()
        if not auth_session or auth_session.expires_at <= now:
            return None
        user = auth_session.user
        if not user or not user.is_active:
            return None
        return user

    def revoke_session(self, token: str) -> None:
        self.session.execute(
            delete(models.AuthSession).where(models.AuthSession.token_hash == auth.hash_session_token(token))
        )

    # Profiles and applications

    def get_company(self, company_id: str) -> models.Company | None:
        return self.session.get(models.Company, company_id)

    def lock_company(self, company_id: str) -> bool:
        """
        Take the company row's write lock for the rest of the transaction.

        Call it before any other write in the transaction. Other writers then
        wait here (row lock on Postgres, database lock plus busy timeout on SQLite).
        """
        result = self.session.execute(
            update(models.Company).where(models.Company.id == company_id).values(updated_at=models.utcnow())
        )
        return result.rowcount == 1

    def upsert_applicant_profile(
        self,
        user_id: str,
        email: str,
        first_name: str,
        last_name: str,
        phone: str | None,
    ) -> models.ApplicantProfile:
        profile = self.session.get(models.ApplicantProfile, user_id)
        if not profile:
            profile = models.ApplicantProfile(id=user_id)
            self.session.add(profile)
        profile.email = email
        profile.first_name = first_name
        profile.last_name = last_name
        profile.phone = phone
        self.session.flush()
        return profile

    def upsert_initial_application(self, company_id: str, applicant_id: str) -> models.Application:
        application = self.session.scalars(
            select(models.Application).where(
                models.Application.company_id == company_id,
                models.Application.applicant_id == applicant_id,
                models.Application.job_id.is_(None),
            )
        ).first()
        if application:
            return application
        application = models.Application(
            company_id=company_id,
            applicant_id=applicant_id,
            status=models.ApplicationStatus.pending,
        )
        self.session.add(application)
        self.session.flush()
        return application

    # Skill tests

    def complete_assignment(self, assignment_id: str, score: float, completed_at: datetime) -> bool:
        """
        Flip pending -> completed. Returns False when the test was already submitted.
        """
        result = self.session.execute(
            update(models.TestAssignment)
            .where(
                models.TestAssignment.id == assignment_id,
                models.TestAssignment.status == models.AssignmentStatus.pending,
            )
            .values(status=models.AssignmentStatus.completed, score=score, completed_at=completed_at)
        )
        return result.rowcount == 1
