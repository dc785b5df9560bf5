import aiosmtplib
import pytest

from quizhub.core.exceptions.base import ServiceUnavailableError
from quizhub.core.exceptions.handler import ServiceErrorCode
from quizhub.core.service.email import email_service
from quizhub.core.service.email.email_service import ConsoleEmailSender, SmtpEmailSender


@pytest.fixture
def sent(monkeypatch):
    """Replace aiosmtplib.send; each entry of `outcomes` is an exception to raise or None"""
    calls = {"messages": [], "outcomes": []}

    async def fake_send(message, **kwargs):
        calls["messages"].append((message, kwargs))
        outcome = calls["outcomes"].pop(0) if calls["outcomes"] else None
        if outcome is not None:
            raise outcome

    monkeypatch.setattr(email_service.aiosmtplib, "send", fake_send)
    return calls


async def test_smtp_sender_builds_multipart_message(sent):
    sender = SmtpEmailSender(hostname="smtp.example.com", port=2525, sender="quiz@example.com")

    await sender.send("player@example.com", "Your OTP Code", "code 123456", "<b>123456</b>")

    message, kwargs = sent["messages"][0]
    assert message["To"] == "player@example.com"
    assert message["From"] == "quiz@example.com"
    assert message["Subject"] == "Your OTP Code"
    assert message.is_multipart()
    assert kwargs["hostname"] == "smtp.example.com"
    assert kwargs["port"] == 2525


async def test_smtp_sender_retries_then_succeeds(sent):
    sent["outcomes"] = [aiosmtplib.SMTPException("busy"), None]
    sender = SmtpEmailSender(hostname="smtp.example.com", max_attempts=3, backoff_seconds=0)

    await sender.send("player@example.com", "subject", "body")

    assert len(sent["messages"]) == 2


async def test_smtp_sender_gives_up_with_503(sent):
    sent["outcomes"] = [OSError("refused"), OSError("refused")]
    sender = SmtpEmailSender(hostname="smtp.example.com", max_attempts=2, backoff_seconds=0)

    with pytest.raises(ServiceUnavailableError) as exc_info:
        await sender.send("player@example.com", "subject", "body")

    assert exc_info.value.status_code == 503
    assert exc_info.value.code == ServiceErrorCode.EMAIL_DELIVERY_FAILED
    assert len(sent["messages"]) == 2


async def test_smtp_sender_single_attempt_by_default(sent):
    sent["outcomes"] = [aiosmtplib.SMTPException("down")]
    sender = SmtpEmailSender(hostname="smtp.example.com")

    with pytest.raises(ServiceUnavailableError):
        await sender.send("player@example.com", "subject", "body")
    assert len(sent["messages"]) == 1


async def test_smtp_sender_without_host(sent, monkeypatch):
    monkeypatch.setattr(email_service.settings, "SMTP_HOST", None)
    with pytest.raises(ServiceUnavailableError):
        await SmtpEmailSender().send("player@example.com", "subject", "body")
    assert sent["messages"] == []


async def test_console_sender_does_not_raise():
    await ConsoleEmailSender().send("player@example.com", "subject", "body")
