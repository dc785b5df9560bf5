"""
Outgoing email dispatch.

`EmailSender` is the collaborator the auth services depend on. The SMTP
implementation retries with a linear backoff up to EMAIL_SEND_MAX_ATTEMPTS
(one attempt by default) and surfaces the final failure as a 503.
"""

import asyncio
from abc import ABC, abstractmethod
from email.message import EmailMessage
from functools import lru_cache
from typing import Optional

import aiosmtplib

from quizhub.core.exceptions.base import ServiceUnavailableError
from quizhub.core.exceptions.handler import ServiceErrorCode
from quizhub.core.logger.logger import get_logger
from quizhub.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class EmailSender(ABC):
    """Sends a single message to a single recipient"""

    @abstractmethod
    async def send(self, to: str, subject: str, body: str, html: Optional[str] = None) -> None:
        ...


class SmtpEmailSender(EmailSender):
    """SMTP delivery through aiosmtplib"""

    def __init__(
        self,
        hostname: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        start_tls: Optional[bool] = None,
        sender: Optional[str] = None,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None
    ):
        self.hostname = hostname or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.username = username if username is not None else settings.SMTP_USERNAME
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.start_tls = settings.SMTP_USE_TLS if start_tls is None else start_tls
        self.sender = sender or settings.EMAIL_FROM
        self.max_attempts = max(1, max_attempts or settings.EMAIL_SEND_MAX_ATTEMPTS)
        self.backoff_seconds = settings.EMAIL_RETRY_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds

    def _build_message(self, to: str, subject: str, body: str, html: Optional[str]) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        if html:
            message.add_alternative(html, subtype="html")
        return message

    async def _deliver(self, message: EmailMessage) -> None:
        await aiosmtplib.send(
            message,
            hostname=self.hostname,
            port=self.port,
            username=self.username,
            password=self.password,
            start_tls=self.start_tls,
            timeout=settings.SMTP_TIMEOUT_SECONDS
        )

    async def send(self, to: str, subject: str, body: str, html: Optional[str] = None) -> None:
        if not self.hostname:
            raise ServiceUnavailableError(
                "Email service is not configured",
                ServiceErrorCode.EMAIL_DELIVERY_FAILED
            )

        message = self._build_message(to, subject, body, html)
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                await self._deliver(message)
                logger.info("Email sent", extra={"to": to, "subject": subject, "attempt": attempt})
                return
            except (aiosmtplib.SMTPException, OSError) as e:
                last_error = e
                logger.warning(
                    "Email delivery attempt failed",
                    extra={"to": to, "attempt": attempt, "max_attempts": self.max_attempts, "error": str(e)}
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.backoff_seconds * attempt)

        logger.error("Email delivery failed", extra={"to": to, "subject": subject, "error": str(last_error)})
        raise ServiceUnavailableError("Failed to send email", ServiceErrorCode.EMAIL_DELIVERY_FAILED)


class ConsoleEmailSender(EmailSender):
    """Writes messages to the log instead of sending them (development)"""

    async def send(self, to: str, subject: str, body: str, html: Optional[str] = None) -> None:
        logger.info("Email (console backend)", extra={"to": to, "subject": subject, "body": body})


@lru_cache()
def get_email_sender() -> EmailSender:
    """Email sender selected by EMAIL_BACKEND (cached)"""
    if settings.EMAIL_BACKEND == "console":
        return ConsoleEmailSender()
    return SmtpEmailSender()
