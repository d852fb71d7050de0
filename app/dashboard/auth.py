from __future__ import annotations

import uuid
from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import Blueprint, current_app, g, redirect, render_template, request, session, url_for
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash

from app.dashboard.db import db_session
from app.dashboard.models import User

bp = Blueprint("auth", __name__)

INVALID_CREDENTIALS = "Invalid credentials."
SOMETHING_WENT_WRONG = "Something went wrong."


class CredentialsError(Exception):
    pass


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

    try:
        user = db_session().get(User, int(user_id))
    except (SQLAlchemyError, ValueError) as e:
        current_app.logger.error("load_current_user failed (clearing session): %s", e)
        user = None
    if not user or not user.is_active:
        session.pop("user_id", None)
        g.current_user = None
        return
    g.current_user = user


def login_required(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user: User | None = getattr(g, "current_user", None)
        if not user or not user.is_active:
            nxt = request.full_path or request.path
            # Avoid trailing '?' from full_path when there is no query string.
            if nxt.endswith("?"):
                nxt = nxt[:-1]
            return redirect(url_for("auth.login_get", next=nxt))
        return fn(*args, **kwargs)

    return wrapped


def authenticate(email: str, password: str) -> User:
    """Check credentials. Raises CredentialsError on a bad email/password pair."""
    s = db_session()
    user = s.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if not user or not user.is_active or not check_password_hash(user.password_hash, password):
        raise CredentialsError(email)
    return user


@bp.get("/login")
def login_get():
    if getattr(g, "current_user", None):
        return redirect(url_for("routes.dashboard"))
    nxt = (request.args.get("next") or "").strip()
    return render_template("auth/login.html", next=nxt, error=None, email="")


@bp.post("/login")
def login_post():
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""
    nxt = (request.form.get("next") or "").strip()

    try:
        user = authenticate(email, password)
    except CredentialsError:
        current_app.logger.info("Login failed for %s", email)
        return render_template("auth/login.html", next=nxt, error=INVALID_CREDENTIALS, email=email), 401
    except SQLAlchemyError:
        current_app.logger.exception("Login crashed (email=%s request_id=%s)", email, getattr(g, "request_id", None))
        db_session().rollback()
        return render_template("auth/login.html", next=nxt, error=SOMETHING_WENT_WRONG, email=email), 500

    session.clear()
    session["user_id"] = user.id
    current_app.logger.info("User %s logged in", user.id)
    # Optional "next" redirect (only allow local paths to avoid open redirects).
    if nxt.startswith("/") and not nxt.startswith("//"):
        return redirect(nxt)
    return redirect(url_for("routes.dashboard"))


@bp.post("/logout")
def logout():
    session.pop("user_id", None)
    return redirect(url_for("auth.login_get"))
