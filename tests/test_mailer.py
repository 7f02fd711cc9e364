import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from conftest import build_app
from fastapi.testclient import TestClient

from recruitflow.errors import ConfigurationError, UpstreamError
from recruitflow.mailer import EmailMessage, ResendEmailSender
from recruitflow.messages import INVITATION_SUBJECT, build_registration_url, render_invitation_email


def _sender(settings, handler):
    return ResendEmailSender(settings, http_client=httpx.Client(transport=httpx.MockTransport(handler)))


MESSAGE = EmailMessage(to="alice@example.com", subject="Hello", html="<p>hi</p>")


def test_send_posts_message_and_returns_receipt(settings):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"id": "msg_123"})

    receipt = _sender(settings, handler).send(MESSAGE)

    assert receipt.id == "msg_123"
    assert receipt.to == "alice@example.com"
    [request] = seen
    assert request.url == settings.RESEND_API_URL
    assert request.headers["Authorization"] == "Bearer re_test"
    body = json.loads(request.content)
    assert body == {"from": settings.EMAIL_FROM, "to": ["alice@example.com"], "subject": "Hello", "html": "<p>hi</p>"}


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="internal"),
        httpx.Response(422, json={"message": "invalid to"}),
        httpx.Response(200, json={}),
        httpx.Response(200, text="not json"),
    ],
)
def test_send_maps_bad_responses_to_upstream_error(settings, response):
    with pytest.raises(UpstreamError):
        _sender(settings, lambda request: response).send(MESSAGE)


def test_send_maps_transport_failure_to_upstream_error(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamError):
        _sender(settings, handler).send(MESSAGE)


def test_send_without_api_key_is_a_configuration_error(settings):
    settings.RESEND_API_KEY = ""
    sender = _sender(settings, lambda request: httpx.Response(200, json={"id": "x"}))

    with pytest.raises(ConfigurationError):
        sender.send(MESSAGE)


def test_registration_url_carries_both_ids():
    url = build_registration_url("https://jobs.example.com/", "inv1", "comp1")

    parsed = urlparse(url)
    assert parsed.path == "/auth/register"
    assert parse_qs(parsed.query) == {"invitation": ["inv1"], "company_id": ["comp1"]}


def test_invitation_email_links_registration_page():
    url = build_registration_url("https://jobs.example.com", "inv1", "comp1")

    message = render_invitation_email("alice@example.com", url, 24)

    assert message.to == "alice@example.com"
    assert message.subject == INVITATION_SUBJECT
    assert 'href="https://jobs.example.com/auth/register?invitation=inv1&amp;company_id=comp1"' in message.html
    assert "24 hours" in message.html


def test_app_shutdown_closes_email_client(settings, engine, email_sender, completions, s3_client):
    with TestClient(build_app(settings, engine, email_sender, completions, s3_client)):
        assert email_sender.closed is False

    assert email_sender.closed is True


def test_close_releases_owned_http_client(settings):
    sender = ResendEmailSender(settings)

    sender.close()

    assert sender.http_client.is_closed
