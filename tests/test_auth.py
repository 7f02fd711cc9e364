import pytest
from conftest import signup

from recruitflow import auth, models


def test_recruiter_signup_creates_company_and_admin_membership(client, db):
    account = signup(client, email="Rita@Acme.test", company_name="Acme")

    db.expire_all()
    user = db.get(models.User, account.user_id)
    assert user.email == "rita@acme.test"
    assert user.user_metadata == {"role": "recruiter"}
    [membership] = db.query(models.CompanyMembership).filter_by(user_id=user.id).all()
    assert membership.role == models.CompanyRole.admin
    assert membership.is_default is True
    assert db.get(models.Company, membership.company_id).name == "Acme"


def test_company_names_are_unique(client):
    signup(client, email="first@acme.test", company_name="Acme")

    response = client.post(
        "/auth/recruiters",
        json={"email": "second@acme.test", "password": "correct-horse", "company_name": "Acme"},
    )

    assert response.status_code == 409


def test_login_and_logout(client):
    signup(client)

    bad = client.post("/auth/login", json={"email": "recruiter@acme.test", "password": "wrong-password"})
    assert bad.status_code == 401
    assert bad.json()["code"] == "authentication_required"

    good = client.post("/auth/login", json={"email": " RECRUITER@acme.test", "password": "correct-horse"})
    assert good.status_code == 200
    headers = {"Authorization": f"Bearer {good.json()['access_token']}"}
    assert client.get("/auth/me", headers=headers).json()["email"] == "recruiter@acme.test"

    assert client.post("/auth/logout", headers=headers).json() == {"status": "logged_out"}
    assert client.get("/auth/me", headers=headers).status_code == 401


def test_unknown_user_cannot_log_in(client):
    response = client.post("/auth/login", json={"email": "nobody@example.com", "password": "whatever1"})

    assert response.status_code == 401


def test_delete_account_removes_user_and_sessions(client, db):
    account = signup(client, email="leaving@acme.test", company_name="Leaving Inc")

    response = client.delete("/auth/users/me", headers=account.headers)

    assert response.status_code == 200
    assert response.json() == {"status": "deleted"}
    db.expire_all()
    assert db.get(models.User, account.user_id) is None
    assert db.query(models.AuthSession).filter_by(user_id=account.user_id).count() == 0
    assert client.get("/auth/me", headers=account.headers).status_code == 401


def test_delete_account_keeps_company_jobs_and_invitations(client, db, recruiter):
    job = client.post("/jobs", json={"title": "Backend Engineer"}, headers=recruiter.headers).json()
    invited = client.post("/invitations", json={"email": "bob@example.com"}, headers=recruiter.headers)
    assert invited.status_code == 201, invited.text

    response = client.delete("/auth/users/me", headers=recruiter.headers)

    assert response.status_code == 200, response.text
    db.expire_all()
    assert db.get(models.User, recruiter.user_id) is None
    kept_job = db.get(models.Job, job["id"])
    assert kept_job.user_id is None
    assert kept_job.company_id == recruiter.company_id
    invitation = db.get(models.Invitation, invited.json()["invitation_id"])
    assert invitation.invited_by_user_id is None


def test_me_requires_a_bearer_token(client):
    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Basic abc"}).status_code == 401


def test_password_hash_round_trip():
    encoded = auth.hash_password("s3cret-pass", iterations=1000)

    assert encoded.startswith("pbkdf2_sha256$1000$")
    assert auth.verify_password("s3cret-pass", encoded)
    assert not auth.verify_password("wrong", encoded)
    assert not auth.verify_password("s3cret-pass", "garbage")


def test_empty_password_cannot_be_hashed():
    with pytest.raises(ValueError):
        auth.hash_password("")


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Bearer abc", "abc"),
        ("bearer  abc ", "abc"),
        ("Bearer ", None),
        ("Token abc", None),
        (None, None),
    ],
)
def test_parse_bearer_token(header, expected):
    assert auth.parse_bearer_token(header) == expected


@pytest.mark.parametrize(
    "email, valid",
    [
        ("alice@example.com", True),
        ("  Alice@Example.COM ", True),
        ("first.last@sub.example.co", True),
        ("alice@example", False),
        ("alice@@example.com", False),
        ("alice example@example.com", False),
        ("", False),
        (None, False),
    ],
)
def test_email_validation(email, valid):
    assert auth.is_valid_email(email) is valid
