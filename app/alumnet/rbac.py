"""
Role gate.

Every role decision goes through POLICY: a mapping from action key to the set
of roles allowed to perform it. Services call authorize() once at their entry
point; thin read-only routes use the require_permission() decorator instead.
"""
from collections.abc import Callable, Iterable
from functools import wraps
from typing import Any
import logging

from flask import g

from app.alumnet.constants import ROLE_ADMIN, ROLE_MEMBER, ROLE_MODERATOR
from app.alumnet.errors import Forbidden, Unauthenticated
from app.alumnet.session import Principal

logger = logging.getLogger(__name__)

_EVERYONE = frozenset({ROLE_ADMIN, ROLE_MODERATOR, ROLE_MEMBER})
_STAFF = frozenset({ROLE_ADMIN, ROLE_MODERATOR})
_ADMIN = frozenset({ROLE_ADMIN})

POLICY: dict[str, frozenset[str]] = {
    # Content submission
    "jobs.submit": _EVERYONE,
    "jobs.view": _EVERYONE,
    "accomplishments.submit": _EVERYONE,
    # Moderation queue
    "moderation.view": _STAFF,
    "moderation.decide": _STAFF,
    # Events
    "events.view": _EVERYONE,
    "events.rsvp": _EVERYONE,
    "events.manage": _ADMIN,
    # Directory
    "alumni.search": _EVERYONE,
    "profile.edit": _EVERYONE,
    # Administration
    "settings.view": _ADMIN,
    "settings.edit": _ADMIN,
    "members.view": _ADMIN,
    "members.manage": _ADMIN,
    "audit.view": _ADMIN,
    # Dashboards
    "dashboard.member": _EVERYONE,
    "dashboard.moderation": _STAFF,
    "dashboard.admin": _ADMIN,
}


def user_has_permission(principal: Principal | None, action: str) -> bool:
    if principal is None:
        return False
    return principal.role in POLICY.get(action, frozenset())


def require_principal(principal: Principal | None) -> Principal:
    if principal is None:
        raise Unauthenticated()
    return principal


def require_role(principal: Principal | None, allowed: Iterable[str]) -> Principal:
    p = require_principal(principal)
    if p.role not in set(allowed):
        raise Forbidden()
    return p


def authorize(principal: Principal | None, action: str) -> Principal:
    """Return the principal if POLICY allows the action, else raise."""
    p = require_principal(principal)
    if not user_has_permission(p, action):
        logger.warning("Forbidden: action=%s user_id=%s role=%s", action, p.id, p.role)
        raise Forbidden()
    return p


def current_principal() -> Principal | None:
    return getattr(g, "current_user", None)


def require_permission(action: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            authorize(current_principal(), action)
            return fn(*args, **kwargs)

        return wrapped

    return decorator


def login_required(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        require_principal(current_principal())
        return fn(*args, **kwargs)

    return wrapped
