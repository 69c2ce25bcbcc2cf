"""
Outbound mail: an SMTP sender and an in-memory outbox for tests.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutgoingMail:
    to: str
    subject: str
    body: str


class Mailer(Protocol):
    def send(self, to: str, subject: str, body: str) -> None:
        ...

    def close(self) -> None:
        ...


@dataclass
class InMemoryMailer:
    """Collects mail instead of sending it."""

    outbox: list = field(default_factory=list)
    fail_sends: bool = False

    def send(self, to: str, subject: str, body: str) -> None:
        if self.fail_sends:
            raise smtplib.SMTPException("simulated failure")
        self.outbox.append(OutgoingMail(to=to, subject=subject, body=body))

    def close(self) -> None:
        pass


@dataclass
class SmtpMailer:
    host: str
    port: int = 587
    username: str = ""
    password: str = ""
    timeout: float = 30.0

    def send(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.username
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Sending mail to %s failed: %s", to, exc)
            raise

    def close(self) -> None:
        pass
