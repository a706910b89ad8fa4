import pytest

from app.core.config import settings
from app.services.email import EmailService
from app.worker import send_email_task

CONTEXT = {
    "project_name": "Rounds",
    "name": "Bisi",
    "title": "Payment proof approved",
    "body": "Your payment in <Family Savings> has been verified",
    "round_link": "https://rounds.app/round/123",
}

class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False

    def ehlo(self):
        pass

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def sendmail(self, from_addr, to_addrs, msg):
        FakeSMTP.sent.append((from_addr, to_addrs, msg))

def test_render_notification_template():
    html = EmailService().render_template("notification.html", CONTEXT)

    assert "Hi Bisi," in html
    assert "https://rounds.app/round/123" in html
    # Round names are user input
    assert "&lt;Family Savings&gt;" in html

def test_send_email_requires_smtp_host(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", None)

    with pytest.raises(RuntimeError):
        EmailService().send_email(email_to="bisi@example.com", subject="Hi", template_name="notification.html", context=CONTEXT)

def test_send_email(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr("app.services.email.smtplib.SMTP", FakeSMTP)

    EmailService().send_notification_email(email_to="bisi@example.com", subject="Payment proof approved", context=CONTEXT)

    assert len(FakeSMTP.sent) == 1
    from_addr, to_addrs, msg = FakeSMTP.sent[0]
    assert from_addr == settings.EMAILS_FROM_EMAIL
    assert to_addrs == ["bisi@example.com"]
    assert "Subject: Payment proof approved" in msg

def test_email_task_reraises(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", None)

    with pytest.raises(RuntimeError):
        send_email_task.run("bisi@example.com", "Hi", "notification.html", CONTEXT)
