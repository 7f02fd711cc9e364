from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from recruitflow import models
from recruitflow.backend import BackendDataService
from recruitflow.errors import ConflictError, UpstreamError


@pytest.fixture
def backend(db, settings):
    return BackendDataService(db, settings)


@pytest.fixture
def company(db):
    company = models.Company(name="Initech")
    db.add(company)
    db.commit()
    return company


def test_claim_succeeds_only_once(backend, company):
    with backend.transaction():
        invitation = backend.create_invitation("bob@example.com", company.id, None)
    now = models.utcnow()

    with backend.transaction():
        first = backend.claim_invitation(invitation.id, now)
    with backend.transaction():
        second = backend.claim_invitation(invitation.id, now)

    assert (first, second) == (True, False)
    assert backend.get_invitation(invitation.id).status == models.InvitationStatus.used


def test_invitation_lookup_retries_once(backend, monkeypatch):
    calls = []
    real_get = backend.session.get

    def flaky_get(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            raise OperationalError("SELECT", {}, Exception("connection reset"))
        return real_get(*args, **kwargs)

    monkeypatch.setattr(backend.session, "get", flaky_get)

    assert backend.get_invitation("missing") is None
    assert len(calls) == 2


def test_invitation_lookup_gives_up_after_second_failure(backend, monkeypatch):
    def broken_get(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr(backend.session, "get", broken_get)

    with pytest.raises(UpstreamError):
        backend.get_invitation("anything")


def test_duplicate_identity_is_a_conflict(backend):
    with backend.transaction():
        backend.create_identity("dup@example.com", "long-enough")

    with pytest.raises(ConflictError):
        with backend.transaction():
            backend.create_identity("dup@example.com", "long-enough")


def test_integrity_error_becomes_conflict(backend, company):
    with pytest.raises(ConflictError):
        with backend.transaction() as session:
            session.add(models.Company(name=company.name))


def test_transaction_rolls_back_on_error(backend, db):
    with pytest.raises(RuntimeError):
        with backend.transaction():
            backend.create_identity("ghost@example.com", "long-enough")
            raise RuntimeError("boom")

    assert backend.get_user_by_email("ghost@example.com") is None


def test_upserts_are_idempotent(backend, company, db):
    with backend.transaction():
        user = backend.create_identity("ann@example.com", "long-enough")
        first_profile = backend.upsert_applicant_profile(user.id, "ann@example.com", "Ann", "Lee", None)
        first_app = backend.upsert_initial_application(company.id, user.id)
    with backend.transaction():
        second_profile = backend.upsert_applicant_profile(user.id, "ann@example.com", "Ann", "Leigh", "123")
        second_app = backend.upsert_initial_application(company.id, user.id)

    assert first_profile.id == second_profile.id == user.id
    assert second_profile.last_name == "Leigh"
    assert first_app.id == second_app.id
    assert db.query(models.Application).count() == 1


def test_sessions_resolve_until_revoked_or_expired(backend):
    now = models.utcnow()
    with backend.transaction():
        user = backend.create_identity("sam@example.com", "long-enough")
        token = backend.create_session(user, now)

    assert backend.resolve_session(token, now).id == user.id
    assert backend.resolve_session("not-a-token", now) is None
    assert backend.resolve_session(token, now + timedelta(hours=backend.settings.SESSION_TTL_HOURS)) is None

    with backend.transaction():
        backend.revoke_session(token)
    assert backend.resolve_session(token, now) is None


def test_delete_identity_removes_applicant_records(backend, company, db):
    with backend.transaction():
        user = backend.create_identity("zoe@example.com", "long-enough")
        backend.upsert_applicant_profile(user.id, "zoe@example.com", "Zoe", "Day", None)
        backend.upsert_initial_application(company.id, user.id)
        backend.create_session(user, models.utcnow())

    with backend.transaction():
        assert backend.delete_identity(user.id) is True

    assert backend.get_user_by_email("zoe@example.com") is None
    assert db.query(models.ApplicantProfile).count() == 0
    assert db.query(models.Application).count() == 0
    assert db.query(models.AuthSession).count() == 0
    assert backend.delete_identity("unknown") is False
