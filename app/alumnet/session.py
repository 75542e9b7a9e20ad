"""
Signed, time-bound session tokens.

The token is an itsdangerous timed signature over {userId, email, name, role}.
There is no refresh or rotation: the TTL is fixed at issuance and checked on
every verification. A bad signature, an expired token and a malformed payload
are all reported the same way (Unauthenticated).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from app.alumnet.constants import ROLE_ADMIN, ROLES
from app.alumnet.errors import Unauthenticated

_SALT = "alumnet.session"


@dataclass(frozen=True)
class Principal:
    id: int
    email: str | None
    name: str | None
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class SessionService:
    def __init__(self, secret_key: str, ttl_seconds: int) -> None:
        self.ttl_seconds = ttl_seconds
        self._serializer = URLSafeTimedSerializer(secret_key, salt=_SALT)

    def issue(self, principal: Principal) -> str:
        return self._serializer.dumps(
            {
                "userId": principal.id,
                "email": principal.email,
                "name": principal.name,
                "role": principal.role,
            }
        )

    def verify(self, token: str | None) -> Principal:
        if not token:
            raise Unauthenticated()
        try:
            payload = self._serializer.loads(token, max_age=self.ttl_seconds)
        except BadSignature as e:  # SignatureExpired is a subclass
            raise Unauthenticated() from e
        return _principal_from_payload(payload)


def _principal_from_payload(payload: Any) -> Principal:
    if not isinstance(payload, dict):
        raise Unauthenticated()
    user_id = payload.get("userId")
    email = payload.get("email")
    name = payload.get("name")
    role = payload.get("role")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise Unauthenticated()
    if email is not None and not isinstance(email, str):
        raise Unauthenticated()
    if name is not None and not isinstance(name, str):
        raise Unauthenticated()
    if role not in ROLES:
        raise Unauthenticated()
    return Principal(id=user_id, email=email, name=name, role=role)


def session_service_from_config(config: dict) -> SessionService:
    return SessionService(
        secret_key=str(config["SECRET_KEY"]),
        ttl_seconds=int(config["AUTH_SESSION_TTL_SECONDS"]),
    )
