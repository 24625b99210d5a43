"""Tests for sign-in error classification."""
import pytest
from flask import session
from sqlalchemy.exc import OperationalError
from werkzeug.security import generate_password_hash

from app.dashboard import create_app
from app.dashboard.auth import ACCESS_DENIED, CREDENTIALS_SIGNIN, AuthError, authenticate, sign_in
from app.dashboard.db import session_scope
from app.dashboard.models import Base, User


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    with session_scope(app) as s:
        s.add(User(email="user@nextmail.com", password_hash=generate_password_hash("123456"), is_active=True))
        s.add(User(email="off@nextmail.com", password_hash=generate_password_hash("123456"), is_active=False))
    return app


def test_sign_in_ok(app):
    with session_scope(app) as s:
        assert sign_in(s, " USER@nextmail.com ", "123456").email == "user@nextmail.com"


@pytest.mark.parametrize(
    "email, password, kind",
    [
        ("user@nextmail.com", "bad", CREDENTIALS_SIGNIN),
        ("nobody@nextmail.com", "123456", CREDENTIALS_SIGNIN),
        ("off@nextmail.com", "123456", ACCESS_DENIED),
    ],
)
def test_sign_in_classifies_failures(app, email, password, kind):
    with session_scope(app) as s:
        with pytest.raises(AuthError) as exc:
            sign_in(s, email, password)
    assert exc.value.type == kind


def test_authenticate_sets_session(app):
    with app.test_request_context("/auth/login", method="POST"):
        with session_scope(app) as s:
            assert authenticate(s, "user@nextmail.com", "123456") is None
        assert session["user_id"]


def test_authenticate_messages(app):
    with app.test_request_context("/auth/login", method="POST"):
        with session_scope(app) as s:
            assert authenticate(s, "user@nextmail.com", "nope") == "Invalid credentials."
            assert authenticate(s, "off@nextmail.com", "123456") == "Something went wrong."
        assert "user_id" not in session


def test_authenticate_other_auth_error_types(app, monkeypatch):
    def _callback_error(s, email, password):
        raise AuthError("CallbackRouteError")

    monkeypatch.setattr("app.dashboard.auth.sign_in", _callback_error)
    with app.test_request_context("/auth/login", method="POST"):
        assert authenticate(None, "user@nextmail.com", "123456") == "Something went wrong."


def test_authenticate_unclassified_errors_propagate(app, monkeypatch):
    def _db_down(s, email, password):
        raise OperationalError("SELECT", {}, ConnectionRefusedError("db down"))

    monkeypatch.setattr("app.dashboard.auth.sign_in", _db_down)
    with app.test_request_context("/auth/login", method="POST"):
        with pytest.raises(OperationalError):
            authenticate(None, "user@nextmail.com", "123456")
