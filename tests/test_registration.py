import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from conftest import build_app, registration_payload, signup
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from recruitflow import models
from recruitflow.backend import BackendDataService
from recruitflow.errors import UpstreamError


@pytest.fixture
def invitation_id(client, recruiter):
    response = client.post("/invitations", json={"email": "alice@example.com"}, headers=recruiter.headers)
    assert response.status_code == 201, response.text
    return response.json()["invitation_id"]


def _register(client, invitation_id, company_id, **overrides):
    return client.post(
        "/auth/register",
        params={"invitation": invitation_id, "company_id": company_id},
        json=registration_payload(**overrides),
    )


def _count(db, model):
    db.expire_all()
    return db.query(model).count()


def test_registration_creates_account_profile_and_application(client, db, recruiter, invitation_id):
    response = _register(client, invitation_id, recruiter.company_id)

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["invitation_id"] == invitation_id
    assert body["company_id"] == recruiter.company_id
    assert body["user"]["email"] == "alice@example.com"

    db.expire_all()
    user = db.query(models.User).filter_by(email="alice@example.com").one()
    assert user.user_metadata["role"] == "applicant"

    profile = db.get(models.ApplicantProfile, user.id)
    assert body["profile_id"] == user.id
    assert (profile.first_name, profile.last_name, profile.phone) == ("Alice", "Liddell", "+1 555 0100")

    [application] = db.query(models.Application).filter_by(applicant_id=user.id).all()
    assert application.id == body["application_id"]
    assert application.company_id == recruiter.company_id
    assert application.status == models.ApplicationStatus.pending
    assert application.job_id is None

    invitation = db.get(models.Invitation, invitation_id)
    assert invitation.status == models.InvitationStatus.used
    assert invitation.used_at is not None
    assert invitation.used_by_user_id == user.id

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["id"] == user.id


def test_second_registration_with_same_link_is_rejected(client, db, recruiter, invitation_id):
    assert _register(client, invitation_id, recruiter.company_id).status_code == 201
    users_before = _count(db, models.User)

    again = _register(client, invitation_id, recruiter.company_id, email="alice@example.com", password="other-pass")

    assert again.status_code == 409
    assert again.json()["code"] == "conflict"
    assert _count(db, models.User) == users_before
    assert _count(db, models.ApplicantProfile) == 1
    assert _count(db, models.Application) == 1


def test_losing_the_claim_race_writes_nothing(client, db, recruiter, invitation_id, monkeypatch):
    # Another consumer flipped the row between our read and our claim.
    monkeypatch.setattr(BackendDataService, "claim_invitation", lambda self, invitation_id, used_at: False)

    response = _register(client, invitation_id, recruiter.company_id)

    assert response.status_code == 409
    assert response.json()["invitation_id"] == invitation_id
    assert _count(db, models.ApplicantProfile) == 0
    assert db.query(models.User).filter_by(email="alice@example.com").first() is None


def test_concurrent_registrations_with_one_link_create_one_account(
    settings, file_engine, email_sender, completions, s3_client
):
    attempts = 4
    barrier = threading.Barrier(attempts, timeout=10)
    app = build_app(settings, file_engine, email_sender, completions, s3_client)

    with TestClient(app) as client:
        account = signup(client)
        with Session(file_engine) as session:
            company_id = session.query(models.CompanyMembership).filter_by(user_id=account.user_id).one().company_id
        invitation_id = client.post(
            "/invitations", json={"email": "alice@example.com"}, headers=account.headers
        ).json()["invitation_id"]

        def register(_):
            barrier.wait()
            return _register(client, invitation_id, company_id).status_code

        with ThreadPoolExecutor(max_workers=attempts) as pool:
            statuses = sorted(pool.map(register, range(attempts)))

    assert statuses == [201] + [409] * (attempts - 1)
    with Session(file_engine) as session:
        assert session.query(models.User).filter_by(email="alice@example.com").count() == 1
        assert session.query(models.ApplicantProfile).count() == 1
        assert session.query(models.Application).count() == 1
        assert session.get(models.Invitation, invitation_id).status == models.InvitationStatus.used


def test_expired_invitation_is_rejected_before_any_write(client, db, recruiter, invitation_id):
    invitation = db.get(models.Invitation, invitation_id)
    invitation.created_at = models.utcnow() - timedelta(hours=24, minutes=1)
    db.commit()

    response = _register(client, invitation_id, recruiter.company_id)

    assert response.status_code == 410
    assert response.json()["code"] == "expired"
    db.expire_all()
    assert db.get(models.Invitation, invitation_id).status == models.InvitationStatus.pending
    assert db.query(models.User).filter_by(email="alice@example.com").first() is None


def test_failed_bootstrap_rolls_back_and_can_be_retried(client, db, recruiter, invitation_id, monkeypatch):
    def broken_upsert(self, **kwargs):
        raise UpstreamError("The data service is unavailable")

    monkeypatch.setattr(BackendDataService, "upsert_applicant_profile", broken_upsert)
    failed = _register(client, invitation_id, recruiter.company_id)

    assert failed.status_code == 502
    assert db.query(models.User).filter_by(email="alice@example.com").first() is None
    db.expire_all()
    assert db.get(models.Invitation, invitation_id).status == models.InvitationStatus.pending

    monkeypatch.undo()
    retried = _register(client, invitation_id, recruiter.company_id)

    assert retried.status_code == 201, retried.text
    assert _count(db, models.ApplicantProfile) == 1
    assert _count(db, models.Application) == 1


def test_unknown_invitation_is_not_found(client, db, recruiter):
    response = _register(client, "0" * 32, recruiter.company_id)

    assert response.status_code == 404
    assert db.query(models.User).filter_by(email="alice@example.com").first() is None


def test_link_with_wrong_company_is_rejected(client, db, recruiter, invitation_id):
    other = signup(client, email="other@globex.test", company_name="Globex")
    other_company = db.query(models.CompanyMembership).filter_by(user_id=other.user_id).one().company_id

    response = _register(client, invitation_id, other_company)

    assert response.status_code == 400
    db.expire_all()
    assert db.get(models.Invitation, invitation_id).status == models.InvitationStatus.pending


def test_registration_email_must_match_invitation(client, recruiter, invitation_id):
    response = _register(client, invitation_id, recruiter.company_id, email="mallory@example.com")

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


def test_email_match_can_be_disabled(client, db, settings, recruiter, invitation_id):
    settings.INVITATION_REQUIRE_EMAIL_MATCH = False

    response = _register(client, invitation_id, recruiter.company_id, email="alice.work@example.com")

    assert response.status_code == 201, response.text
    db.expire_all()
    assert db.get(models.ApplicantProfile, response.json()["profile_id"]).email == "alice.work@example.com"


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"first_name": " "}, "first_name"),
        ({"last_name": ""}, "last_name"),
        ({"password": ""}, "password"),
    ],
)
def test_missing_fields_are_reported(client, db, recruiter, invitation_id, overrides, field):
    response = _register(client, invitation_id, recruiter.company_id, **overrides)

    assert response.status_code == 400
    assert field in response.json()["fields"]
    assert _count(db, models.ApplicantProfile) == 0


def test_short_password_is_rejected(client, recruiter, invitation_id):
    response = _register(client, invitation_id, recruiter.company_id, password="short")

    assert response.status_code == 400
    assert "8 characters" in response.json()["detail"]


def test_existing_account_email_conflicts_and_keeps_invitation_pending(client, db, recruiter):
    signup(client, email="alice@example.com", company_name="Alice Co")
    invitation_id = client.post(
        "/invitations", json={"email": "alice@example.com"}, headers=recruiter.headers
    ).json()["invitation_id"]

    response = _register(client, invitation_id, recruiter.company_id)

    assert response.status_code == 409
    db.expire_all()
    assert db.get(models.Invitation, invitation_id).status == models.InvitationStatus.pending


def test_link_check_reports_state(client, db, recruiter, invitation_id):
    params = {"invitation": invitation_id, "company_id": recruiter.company_id}

    valid = client.get("/auth/register", params=params).json()
    assert valid["state"] == "valid"
    assert valid["email"] == "alice@example.com"

    wrong_company = client.get("/auth/register", params={**params, "company_id": "nope"}).json()
    assert wrong_company["state"] == "not_found"
    assert wrong_company["email"] is None

    assert _register(client, invitation_id, recruiter.company_id).status_code == 201
    assert client.get("/auth/register", params=params).json()["state"] == "used"


def test_link_check_reports_expired(client, db, recruiter, invitation_id):
    invitation = db.get(models.Invitation, invitation_id)
    invitation.created_at = models.utcnow() - timedelta(days=3)
    db.commit()

    response = client.get("/auth/register", params={"invitation": invitation_id, "company_id": recruiter.company_id})

    assert response.status_code == 200
    assert response.json()["state"] == "expired"
