import smtplib
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from certbatch.core.config import SMTPConfig
from certbatch.infrastructure import DeliveryError, SMTPMailer
from certbatch.infrastructure.mailer import build_message


def _config(**overrides) -> SMTPConfig:
    values = dict(
        host="smtp.example.com",
        port=587,
        user="certs@example.com",
        password="app-password",
        sender="certs@example.com",
        sender_name="Certificates Desk",
        subject="Internship Completion Certificate",
        body_template="Dear {name}",
    )
    values.update(overrides)
    return SMTPConfig(**values)


class FakeSMTP:
    instances: list["FakeSMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls: list[str] = []
        self.sent: list[tuple[str, list[str], str]] = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.calls.append("quit")
        return False

    def ehlo(self):
        self.calls.append("ehlo")

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        if password != "app-password":
            raise smtplib.SMTPAuthenticationError(535, b"bad credentials")
        self.calls.append("login")

    def sendmail(self, sender, recipients, message):
        self.sent.append((sender, recipients, message))


@pytest.fixture()
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_build_message_attaches_pdf():
    msg = build_message("Desk <certs@example.com>", "asha@example.com", "Subject", "<b>Hi</b>", b"%PDF-1.4", "Asha_GH-001.pdf")

    parts = msg.get_payload()
    assert msg["To"] == "asha@example.com"
    assert parts[0].get_content_type() == "text/html"
    assert parts[1].get_content_type() == "application/pdf"
    assert parts[1].get_filename() == "Asha_GH-001.pdf"
    assert parts[1].get_payload(decode=True) == b"%PDF-1.4"


def test_smtp_mailer_uses_starttls_and_sends(fake_smtp):
    mailer = SMTPMailer(_config())

    mailer.send("asha@example.com", "Subject", "Dear Asha", b"%PDF-1.4", "Asha_GH-001.pdf")

    server = fake_smtp.instances[0]
    assert server.calls == ["ehlo", "starttls", "ehlo", "login", "quit"]
    sender, recipients, message = server.sent[0]
    assert sender == "certs@example.com"
    assert recipients == ["asha@example.com"]
    assert "Certificates Desk" in message


def test_smtp_mailer_wraps_authentication_errors(fake_smtp):
    mailer = SMTPMailer(_config(password="wrong"))

    with pytest.raises(DeliveryError, match="asha@example.com"):
        mailer.send("asha@example.com", "Subject", "Dear Asha", b"%PDF-1.4", "Asha_GH-001.pdf")


def test_smtp_mailer_requires_credentials(fake_smtp):
    mailer = SMTPMailer(_config(user="", password=""))

    with pytest.raises(DeliveryError, match="not configured"):
        mailer.send("asha@example.com", "Subject", "Dear Asha", b"%PDF-1.4", "Asha_GH-001.pdf")
    assert fake_smtp.instances == []
