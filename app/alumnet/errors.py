"""
Error taxonomy shared by services and routes.

Services raise these; the Flask error handler in create_app() renders them as
JSON. Anything that is not an AppError is treated as an internal failure.
"""
from __future__ import annotations

from typing import Any


class AppError(Exception):
    status_code = 500
    code = "internal_error"
    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message}


class Unauthenticated(AppError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Sign in to continue."


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    default_message = "You do not have access to this action."


class ProfileRequired(AppError):
    status_code = 403
    code = "profile_required"
    default_message = "An alumni profile is required for this action."


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    default_message = "Some fields are invalid."

    def __init__(self, fields: dict[str, list[str]], message: str | None = None) -> None:
        self.fields = fields
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["fields"] = self.fields
        return out


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Not found."


class Conflict(AppError):
    status_code = 409
    code = "conflict"
    default_message = "The request conflicts with the current state."


class Closed(AppError):
    status_code = 409
    code = "closed"
    default_message = "This event is not accepting RSVPs."


class CapacityReached(AppError):
    status_code = 409
    code = "capacity_reached"
    default_message = "Event capacity reached."


class RateLimited(AppError):
    status_code = 429
    code = "rate_limited"
    default_message = "Too many attempts. Please wait and try again."


class ServiceUnavailable(AppError):
    status_code = 503
    code = "service_unavailable"
    default_message = "The service is temporarily unavailable."


class MaintenanceMode(ServiceUnavailable):
    code = "maintenance_mode"
    default_message = "This action is temporarily disabled due to maintenance mode."


class InternalError(AppError):
    pass
