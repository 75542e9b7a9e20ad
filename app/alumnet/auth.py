from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, g, jsonify, request

from app.alumnet.audit import record_event
from app.alumnet.db import db_session
from app.alumnet.errors import NotFound, RateLimited, Unauthenticated
from app.alumnet.models import User
from app.alumnet.modules.alumni.service import authenticate, principal_for_user, register_member, user_to_dict
from app.alumnet.modules.settings.service import DbSettingsStore
from app.alumnet.rbac import current_principal, login_required
from app.alumnet.session import Principal, SessionService
from app.alumnet.utils import json_body

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds
_AUDIT_ENTITY_ID_MAX = 128  # AuditEvent.entity_id length


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > cutoff]
    return len(_login_attempts[ip]) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def session_service() -> SessionService:
    return current_app.extensions["alumnet_sessions"]


def load_current_user() -> None:
    """
    Resolves g.current_user from the session cookie (signature check only, no DB).
    Also assigns a per-request request_id for audit/log correlation.
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.current_user = None
    if request.path.startswith(("/health", "/healthz")):
        return

    token = request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])
    if not token:
        return
    try:
        g.current_user = session_service().verify(token)
    except Unauthenticated:
        current_app.logger.debug("Ignoring invalid session cookie (request_id=%s)", g.request_id)


def _set_session_cookie(response, principal: Principal):
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        session_service().issue(principal),
        max_age=current_app.config["AUTH_SESSION_TTL_SECONDS"],
        httponly=True,
        secure=current_app.config["AUTH_COOKIE_SECURE"],
        samesite=current_app.config["AUTH_COOKIE_SAMESITE"],
    )
    return response


@bp.post("/register")
def register():
    s = db_session()
    user = register_member(s, json_body(), DbSettingsStore(s))
    s.commit()
    current_app.logger.info("Registered user_id=%s", user.id)
    response = jsonify({"success": True, "user": user_to_dict(user)})
    response.status_code = 201
    return _set_session_cookie(response, principal_for_user(user))


@bp.post("/login")
def login():
    payload = json_body()
    email = payload.get("email")
    email = email.strip().lower() if isinstance(email, str) else ""
    password = payload.get("password")
    password = password if isinstance(password, str) else ""
    ip = request.remote_addr or "unknown"

    if _check_rate_limit(ip):
        current_app.logger.warning("Login rate limit hit ip=%s", ip)
        raise RateLimited("Too many login attempts. Please wait 5 minutes.")

    _record_attempt(ip)

    s = db_session()
    user = authenticate(s, email, password)
    if user is None:
        record_event(
            s,
            actor=None,
            action="auth.login_failed",
            entity_type="User",
            entity_id=email[:_AUDIT_ENTITY_ID_MAX],
            reason="Invalid credentials",
            metadata={"email": email[:255]},
        )
        s.commit()
        raise Unauthenticated("Invalid credentials.")

    _login_attempts[ip].clear()
    principal = principal_for_user(user)
    record_event(s, actor=principal, action="auth.login", entity_type="User", entity_id=str(user.id))
    s.commit()
    response = jsonify({"success": True, "user": user_to_dict(user)})
    return _set_session_cookie(response, principal)


@bp.post("/logout")
def logout():
    principal = current_principal()
    if principal:
        s = db_session()
        record_event(s, actor=principal, action="auth.logout", entity_type="User", entity_id=str(principal.id))
        s.commit()
    response = jsonify({"success": True})
    response.delete_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        httponly=True,
        secure=current_app.config["AUTH_COOKIE_SECURE"],
        samesite=current_app.config["AUTH_COOKIE_SAMESITE"],
    )
    return response


@bp.get("/me")
@login_required
def me():
    principal = current_principal()
    user = db_session().get(User, principal.id)
    if user is None:
        raise NotFound("User not found.")
    return jsonify({"user": user_to_dict(user)})
