from datetime import timedelta

import pytest

from taskdesk.services.email_service import EmailService, describe_duration


@pytest.mark.parametrize(
    "ttl, expected",
    [
        (timedelta(hours=1), "1 hour"),
        (timedelta(hours=24), "24 hours"),
        (timedelta(minutes=30), "30 minutes"),
        (timedelta(minutes=90), "90 minutes"),
        (timedelta(days=3), "3 days"),
    ],
)
def test_describe_duration(ttl, expected):
    assert describe_duration(ttl) == expected


@pytest.fixture
def outgoing(monkeypatch):
    sent = []
    service = EmailService(
        smtp_host="smtp.example.com",
        smtp_username="mailer",
        smtp_password="secret",
        from_email="noreply@example.com",
        verification_ttl=timedelta(hours=48),
        reset_ttl=timedelta(minutes=15),
    )
    monkeypatch.setattr(
        service,
        "_send_email",
        lambda to_email, subject, html_body, text_body: sent.append((to_email, html_body, text_body)) or True,
    )
    return service, sent


def test_verification_email_states_configured_lifetime(outgoing):
    service, sent = outgoing
    assert service.send_verification_email("alice@example.com", "abc", "http://app.test") is True
    to_email, html_body, text_body = sent[0]
    assert to_email == "alice@example.com"
    assert "http://app.test/verify-email?token=abc" in text_body
    assert "expires in 2 days" in html_body
    assert "expires in 2 days" in text_body


def test_reset_email_states_configured_lifetime(outgoing):
    service, sent = outgoing
    service.send_password_reset_email("alice@example.com", "xyz", "http://app.test")
    _, html_body, text_body = sent[0]
    assert "http://app.test/reset-password?token=xyz" in html_body
    assert "expires in 15 minutes" in text_body
    assert "1 hour" not in text_body


def test_links_are_logged_without_smtp(caplog):
    service = EmailService()
    with caplog.at_level("INFO", logger="taskdesk.services.email_service"):
        assert service.send_password_reset_email("alice@example.com", "xyz", "http://app.test") is True
    assert "reset-password?token=xyz" in caplog.text
