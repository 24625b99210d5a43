from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, flash, g, redirect, render_template, request, session, url_for
from sqlalchemy import select
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash

from app.dashboard.db import db_session
from app.dashboard.models import User

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds

CREDENTIALS_SIGNIN = "CredentialsSignin"
ACCESS_DENIED = "AccessDenied"


class AuthError(Exception):
    """Classified sign-in failure. ``type`` names the failure class."""

    def __init__(self, type: str, message: str | None = None) -> None:
        super().__init__(message or type)
        self.type = type


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > cutoff]
    return len(_login_attempts[ip]) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def sign_in(s: Session, email: str, password: str) -> User:
    user = s.execute(select(User).where(User.email == email.strip().lower())).scalar_one_or_none()
    if not user or not check_password_hash(user.password_hash, password):
        raise AuthError(CREDENTIALS_SIGNIN)
    if not user.is_active:
        raise AuthError(ACCESS_DENIED, f"User {user.id} is deactivated")
    return user


def authenticate(s: Session, email: str, password: str) -> str | None:
    """
    Sign in and remember the user on the session.

    Returns None on success, or a short message for a classified failure.
    Anything that is not an AuthError (e.g. the database being down) propagates.
    """
    try:
        user = sign_in(s, email, password)
    except AuthError as e:
        if e.type == CREDENTIALS_SIGNIN:
            return "Invalid credentials."
        return "Something went wrong."
    session["user_id"] = user.id
    return None


def load_current_user() -> None:
    """
    Loads g.current_user from the signed session cookie.
    Also assigns a simple per-request request_id (for log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    if request.path.startswith(("/static/", "/health", "/healthz")):
        g.current_user = None
        return

    user_id = session.get("user_id")
    if not user_id:
        g.current_user = None
        return

    user = db_session().get(User, int(user_id))
    if not user or not user.is_active:
        session.pop("user_id", None)
        g.current_user = None
        return
    g.current_user = user


@bp.get("/login")
def login_get():
    nxt = (request.args.get("next") or "").strip()
    return render_template("auth/login.html", next=nxt)


@bp.post("/login")
def login_post():
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""
    nxt = (request.form.get("next") or "").strip()
    ip = request.remote_addr or "unknown"

    if _check_rate_limit(ip):
        flash("Too many login attempts. Please wait 5 minutes.", "danger")
        return redirect(url_for("auth.login_get"))

    _record_attempt(ip)

    try:
        message = authenticate(db_session(), email, password)
    except Exception:
        current_app.logger.exception("Login POST crashed (email=%s request_id=%s)", email, getattr(g, "request_id", None))
        raise
    if message:
        current_app.logger.info("Login failed for %s: %s", email, message)
        flash(message, "danger")
        return redirect(url_for("auth.login_get", next=nxt or None))

    _login_attempts[ip].clear()
    # Optional "next" redirect (only allow local paths to avoid open redirects).
    if nxt.startswith("/") and not nxt.startswith("//"):
        return redirect(nxt)
    return redirect(url_for("invoices.invoices_list"))


@bp.get("/logout")
def logout():
    session.pop("user_id", None)
    return redirect(url_for("routes.index"))
