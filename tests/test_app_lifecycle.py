import pytest
from fastapi.testclient import TestClient

from dental_portal.core.config import Settings
from dental_portal.core.exceptions import ConfigurationError
from dental_portal.core.security import verify_password
from dental_portal.main import create_app
from dental_portal.models.user import Role
from dental_portal.services.mail_service import LogMailer, SmtpMailer, build_mailer
from dental_portal.services.user_service import get_user_by_email


def test_startup_fails_without_reset_secret(settings):
    broken = settings.model_copy(update={"RESET_PASSWORD_SECRET": None})
    with pytest.raises(ConfigurationError):
        with TestClient(create_app(settings=broken)):
            pass


def test_startup_fails_when_secrets_are_shared(settings):
    broken = settings.model_copy(update={"RESET_PASSWORD_SECRET": settings.JWT_SECRET_KEY})
    with pytest.raises(ConfigurationError):
        with TestClient(create_app(settings=broken)):
            pass


def test_startup_bootstraps_admin(settings, mailer):
    configured = settings.model_copy(update={"ADMIN_EMAIL": "Root@Example.com", "ADMIN_PASSWORD": "root-pass"})
    with TestClient(create_app(settings=configured, mailer=mailer)) as client:
        db = client.app.state.database.session()
        try:
            admin = get_user_by_email(db, "root@example.com")
            assert admin.role is Role.admin
            assert verify_password("root-pass", admin.password_hash)
        finally:
            db.close()


def test_request_id_is_echoed_or_generated(client):
    echoed = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
    assert echoed.headers["X-Request-ID"] == "abc-123"
    assert client.get("/api/health").headers["X-Request-ID"]


def test_unhandled_errors_are_generic(client, monkeypatch):
    def _explode(*args, **kwargs):
        raise RuntimeError("secret detail")

    monkeypatch.setattr("dental_portal.services.course_service.list_courses", _explode)
    raw = TestClient(client.app, raise_server_exceptions=False)
    res = raw.get("/api/courses", headers={"X-Request-ID": "boom"})

    assert res.status_code == 500
    assert res.json() == {
        "request_id": "boom",
        "data": None,
        "error": {"code": "INTERNAL_ERROR", "message": "Internal server error"},
    }


def test_cors_origins_accept_comma_separated_or_json():
    assert Settings(_env_file=None, BACKEND_CORS_ORIGINS="http://a, http://b").BACKEND_CORS_ORIGINS == ["http://a", "http://b"]
    assert Settings(_env_file=None, BACKEND_CORS_ORIGINS='["http://c"]').BACKEND_CORS_ORIGINS == ["http://c"]


def test_cookie_secure_only_in_production():
    assert Settings(_env_file=None, ENV="production").COOKIE_SECURE is True
    assert Settings(_env_file=None, ENV="dev").COOKIE_SECURE is False


def test_mailer_selection(settings):
    assert isinstance(build_mailer(settings), LogMailer)
    smtp = build_mailer(settings.model_copy(update={"SMTP_HOST": "smtp.example.com"}))
    assert isinstance(smtp, SmtpMailer)
    assert smtp.host == "smtp.example.com"
