import smtplib

from app import email_service, notifications
from app.models import Review, User


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def sendmail(self, sender, recipients, message):
        FakeSMTP.sent.append((sender, recipients, message))


def _configure(monkeypatch):
    monkeypatch.setattr(email_service, "SMTP_USER", "bot@example.com")
    monkeypatch.setattr(email_service, "SMTP_PASSWORD", "secret")
    monkeypatch.setattr(email_service, "FROM_EMAIL", "bot@example.com")
    monkeypatch.setattr(email_service.smtplib, "SMTP", FakeSMTP)
    FakeSMTP.sent = []


def test_missing_credentials_means_not_sent(monkeypatch):
    monkeypatch.setattr(email_service, "SMTP_USER", "")
    assert email_service.send_email("a@example.com", "Hi", "<p>Hi</p>") is False


def test_envelope_includes_cc_and_bcc(monkeypatch):
    _configure(monkeypatch)
    ok = email_service.send_email(" a@example.com ", "Hi", "<p>Hi</p>", text_body="Hi",
                                  cc=["c@example.com"], bcc="b@example.com")
    assert ok is True
    sender, recipients, message = FakeSMTP.sent[0]
    assert recipients == ["a@example.com", "c@example.com", "b@example.com"]
    assert "b@example.com" not in message.split("\n\n")[0]


def test_smtp_failure_returns_false(monkeypatch):
    _configure(monkeypatch)

    def broken(*args, **kwargs):
        raise smtplib.SMTPException("nope")

    monkeypatch.setattr(FakeSMTP, "sendmail", broken)
    assert email_service.send_email("a@example.com", "Hi", "<p>Hi</p>") is False


def test_review_link_points_to_section():
    assert notifications.review_link(Review(id=5, kind="tenant")).endswith("/tenant/5")
    assert notifications.review_link(Review(id=6, kind="landlord")).endswith("/property/6")


def test_should_notify_author_rules():
    author = User(id=1, email="a@example.com", first_name="A", last_name="B", email_notifications=True)
    other = User(id=2, email="o@example.com", first_name="O", last_name="P")
    review = Review(id=1, kind="property", author=author)

    assert notifications.should_notify_author(review, other) is True
    assert notifications.should_notify_author(review, author) is False
    author.email_notifications = False
    assert notifications.should_notify_author(review, other) is False
