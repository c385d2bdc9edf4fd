"""Outbound email delivery over SMTP."""
from __future__ import annotations

import smtplib
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Protocol

from certbatch.core.config import SMTPConfig


class DeliveryError(RuntimeError):
    """Raised when a message could not be handed to the mail server."""


class Mailer(Protocol):
    """Contract for sending a certificate as an email attachment."""

    def send(
        self,
        recipient: str,
        subject: str,
        html_body: str,
        attachment: bytes,
        filename: str,
    ) -> None:
        """Deliver the message or raise :class:`DeliveryError`."""


def build_message(
    sender: str,
    recipient: str,
    subject: str,
    html_body: str,
    attachment: bytes,
    filename: str,
) -> MIMEMultipart:
    msg = MIMEMultipart("mixed")
    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = recipient
    msg.attach(MIMEText(html_body, "html", "utf-8"))

    part = MIMEApplication(attachment, _subtype="pdf", Name=filename)
    part["Content-Disposition"] = f'attachment; filename="{filename}"'
    msg.attach(part)
    return msg


class SMTPMailer:
    """Sends mail through an SMTP relay (STARTTLS, or implicit TLS on 465)."""

    def __init__(self, config: SMTPConfig, *, timeout: float = 30.0) -> None:
        self._config = config
        self._timeout = timeout

    @property
    def sender(self) -> str:
        return formataddr((self._config.sender_name, self._config.sender))

    def _connect(self) -> smtplib.SMTP:
        if self._config.port == 465:
            return smtplib.SMTP_SSL(self._config.host, self._config.port, timeout=self._timeout)
        server = smtplib.SMTP(self._config.host, self._config.port, timeout=self._timeout)
        server.ehlo()
        server.starttls()
        server.ehlo()
        return server

    def send(
        self,
        recipient: str,
        subject: str,
        html_body: str,
        attachment: bytes,
        filename: str,
    ) -> None:
        if not self._config.user or not self._config.password:
            raise DeliveryError("SMTP credentials are not configured (set SMTP_USER and SMTP_PASSWORD)")

        msg = build_message(self.sender, recipient, subject, html_body, attachment, filename)
        try:
            with self._connect() as server:
                server.login(self._config.user, self._config.password)
                server.sendmail(self._config.sender, [recipient], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"sending to {recipient} failed: {exc}") from exc
