from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from dental_portal.core.config import Settings
from dental_portal.core.security import SessionClaim, TokenService
from dental_portal.core.timeutils import utcnow
from dental_portal.main import create_app
from dental_portal.models.certificate import Certificate, CertificateStatus
from dental_portal.models.classroom import Classroom
from dental_portal.models.course import Course
from dental_portal.models.user import Role
from dental_portal.services.user_service import create_user

SESSION_SECRET = "test-session-secret"
RESET_SECRET = "test-reset-secret"


class RecordingMailer:
    def __init__(self):
        self.sent = []

    def send(self, email, reset_link):
        self.sent.append((email, reset_link))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        ENV="test",
        DATABASE_URL=f"sqlite:///{tmp_path / 'portal.db'}",
        CREATE_TABLES_ON_STARTUP=True,
        JWT_SECRET_KEY=SESSION_SECRET,
        RESET_PASSWORD_SECRET=RESET_SECRET,
        APP_URL="http://portal.test",
        SMTP_HOST=None,
        ADMIN_EMAIL=None,
        ADMIN_PASSWORD=None,
    )


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def app(settings, mailer):
    return create_app(settings=settings, mailer=mailer)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(client):
    session = client.app.state.database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def tokens(client) -> TokenService:
    return client.app.state.tokens


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=Role.client, *, name=None, email=None, password="secret123"):
        counter["n"] += 1
        n = counter["n"]
        return create_user(
            db,
            name=name or f"User {n}",
            email=email or f"user{n}@example.com",
            password=password,
            role=role,
        )

    return _make


@pytest.fixture
def auth_headers(tokens):
    def _headers(user):
        claim = SessionClaim(id=int(user.id), email=user.email, role=Role(user.role))
        return {"Authorization": f"Bearer {tokens.issue_session_token(claim)}"}

    return _headers


@pytest.fixture
def make_course(db):
    def _make(title="Implant Basics", **fields):
        row = Course(title=title, **fields)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make


@pytest.fixture
def make_classroom(db):
    def _make(course, *, title="Session 1", published_in=timedelta(days=-1), expires_in=timedelta(days=30), **fields):
        now = utcnow()
        row = Classroom(
            course_id=int(course.id),
            title=title,
            published_date=now + published_in if published_in is not None else None,
            expiration_date=now + expires_in if expires_in is not None else None,
            **fields,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make


@pytest.fixture
def make_certificate(db):
    def _make(user, course, *, status=CertificateStatus.pending, issued_at=None):
        row = Certificate(user_id=int(user.id), course_id=int(course.id), status=status, issued_at=issued_at)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make
