from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recruitflow import models
from recruitflow.config import Settings
from recruitflow.errors import UpstreamError
from recruitflow.llm import TextGenerator
from recruitflow.mailer import DeliveryReceipt
from recruitflow.main import create_app
from recruitflow.models import Base
from recruitflow.storage import ObjectStorage


class FakeEmailSender:
    def __init__(self):
        self.sent = []
        self.fail = False
        self.on_send = None
        self.closed = False

    def send(self, message):
        if self.on_send:
            self.on_send(message)
        if self.fail:
            raise UpstreamError("Email service returned 503")
        self.sent.append(message)
        return DeliveryReceipt(id=f"email-{len(self.sent)}", to=message.to)

    def close(self):
        self.closed = True


class FakeCompletions:
    def __init__(self):
        self.calls = []
        self.reply = "1. What is a Python generator?"
        self.error = None

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeS3Client:
    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body, ContentType=None):
        self.objects[(Bucket, Key)] = (Body, ContentType)

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        return f"https://storage.test/{Params['Bucket']}/{Params['Key']}?expires={ExpiresIn}"


@pytest.fixture
def settings():
    test_settings = Settings()
    test_settings.DATABASE_URL = "sqlite://"
    test_settings.APP_BASE_URL = "https://jobs.example.com"
    test_settings.PASSWORD_HASH_ITERATIONS = 1000
    test_settings.INVITATION_TTL_HOURS = 24
    test_settings.RESEND_API_KEY = "re_test"
    test_settings.OPENAI_API_KEY = ""
    test_settings.API_PREFIX = ""
    test_settings.API_ROOT_PATH = ""
    return test_settings


def enable_foreign_keys(test_engine):
    @event.listens_for(test_engine, "connect")
    def _foreign_keys_on(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return test_engine


@pytest.fixture
def engine():
    test_engine = enable_foreign_keys(
        create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )
    )
    Base.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, expire_on_commit=False, future=True)()
    yield session
    session.close()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def completions():
    return FakeCompletions()


@pytest.fixture
def s3_client():
    return FakeS3Client()


def build_app(settings, engine, email_sender, completions, s3_client):
    return create_app(
        settings=settings,
        engine=engine,
        email_sender=email_sender,
        text_generator=TextGenerator(settings, client=SimpleNamespace(chat=SimpleNamespace(completions=completions))),
        storage=ObjectStorage(settings, client=s3_client),
    )


@pytest.fixture
def file_engine(tmp_path):
    """File-backed database so concurrent requests get their own connections."""
    test_engine = enable_foreign_keys(
        create_engine(
            f"sqlite:///{tmp_path / 'recruitflow.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
            future=True,
        )
    )
    Base.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def client(settings, engine, email_sender, completions, s3_client):
    app = build_app(settings, engine, email_sender, completions, s3_client)
    with TestClient(app) as test_client:
        yield test_client


def signup(client, email="recruiter@acme.test", company_name="Acme"):
    response = client.post(
        "/auth/recruiters",
        json={
            "email": email,
            "password": "correct-horse",
            "full_name": "Rita Recruiter",
            "company_name": company_name,
        },
    )
    assert response.status_code == 201, response.text
    token = response.json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}
    me = client.get("/auth/me", headers=headers).json()
    return SimpleNamespace(headers=headers, user_id=me["id"])


@pytest.fixture
def recruiter(client, db):
    account = signup(client)
    membership = db.query(models.CompanyMembership).filter_by(user_id=account.user_id).one()
    account.company_id = membership.company_id
    return account


def registration_payload(email="alice@example.com", **overrides):
    payload = {
        "email": email,
        "password": "applicant-pass",
        "first_name": "Alice",
        "last_name": "Liddell",
        "phone": "+1 555 0100",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def applicant(client, recruiter):
    invitation_id = client.post(
        "/invitations", json={"email": "alice@example.com"}, headers=recruiter.headers
    ).json()["invitation_id"]
    response = client.post(
        "/auth/register",
        params={"invitation": invitation_id, "company_id": recruiter.company_id},
        json=registration_payload(),
    )
    assert response.status_code == 201, response.text
    body = response.json()
    body["headers"] = {"Authorization": f"Bearer {body['access_token']}"}
    return body
