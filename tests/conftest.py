import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app import notifications
from app.database import Base, get_db, make_engine
from app.main import app
from app.models import User
from app.security import issue_token
from app.utils import hash_password

PASSWORD = "Password123"


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sent_emails(monkeypatch):
    """Every outgoing email as (to, subject, text_body); nothing reaches SMTP."""
    outbox = []

    def fake_send(to, subject, html_body, text_body=None, **kwargs):
        outbox.append((to, subject, text_body or ""))
        return True

    monkeypatch.setattr(notifications, "send_email", fake_send)
    return outbox


@pytest.fixture
def client(session_factory, sent_emails):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role="user", verified=True, first_name="Anna", last_name="Ivanova", email=None, **extra):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            first_name=first_name,
            last_name=last_name,
            password_hash=hash_password(PASSWORD),
            role=role,
            email_verified=verified,
            **extra,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


def auth(user):
    return {"Authorization": f"Bearer {issue_token(user)}"}


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(role="admin", first_name="Admin", last_name="User")


def property_payload(**overrides):
    body = {
        "city": "Almaty",
        "street": "Abaya",
        "building": "15",
        "reviewText": "Quiet flat with a good renovation and shops nearby.",
        "ratings": {"apartment": 4},
    }
    body.update(overrides)
    return body


def tenant_payload(**overrides):
    body = {
        "tenantFullName": "Aleksei Sergeev",
        "tenantIdLastFour": "1234",
        "tenantPhoneLastFour": "6543",
        "rentalPeriod": {"from": {"month": 1, "year": 2023}, "to": {"month": 12, "year": 2023}},
        "reviewText": "Paid on time and kept the apartment clean.",
        "rating": 5,
    }
    body.update(overrides)
    return body
