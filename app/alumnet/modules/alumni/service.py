from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import or_
from werkzeug.security import check_password_hash, generate_password_hash

from app.alumnet.audit import record_event
from app.alumnet.constants import (
    ADMIN_MATRIC_PREFIX,
    GENERATED_MATRIC_PREFIX,
    MEMBERS_PAGE_SIZE,
    PROFILE_STATUSES,
    ROLE_ADMIN,
    ROLE_MEMBER,
    ROLES,
    SEARCH_PAGE_SIZE,
)
from app.alumnet.errors import Conflict, Forbidden, MaintenanceMode, NotFound, ProfileRequired, ValidationError
from app.alumnet.models import User
from app.alumnet.rbac import authorize
from app.alumnet.session import Principal
from app.alumnet.utils import FieldErrors, Page, check_length, clean_str, is_valid_email, paginate

from .models import AlumniProfile

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.alumnet.modules.settings.service import SettingsProvider

logger = logging.getLogger(__name__)

SEARCH_SORTS = {
    "createdAt": AlumniProfile.created_at,
    "name": User.name,
    "title": AlumniProfile.job_title,
    "company": AlumniProfile.employer,
    "graduationYear": AlumniProfile.graduation_year,
    "department": AlumniProfile.department,
}


def principal_for_user(user: User) -> Principal:
    return Principal(id=user.id, email=user.email, name=user.name, role=user.role)


def generate_matric_no(prefix: str, length: int) -> str:
    return f"{prefix}{uuid.uuid4().hex[:length].upper()}"


def get_profile_for_user(s: "Session", user_id: int) -> AlumniProfile | None:
    return s.query(AlumniProfile).filter(AlumniProfile.user_id == user_id).one_or_none()


def require_profile(s: "Session", principal: Principal) -> AlumniProfile:
    profile = get_profile_for_user(s, principal.id)
    if profile is None:
        raise ProfileRequired()
    return profile


def resolve_poster_profile(s: "Session", principal: Principal, *, message: str | None = None) -> AlumniProfile:
    """
    The alumni profile content is posted under. Admins without one get a
    synthetic profile so they are never blocked from posting; everyone else
    must already have a profile.
    """
    profile = get_profile_for_user(s, principal.id)
    if profile is not None:
        return profile
    if principal.role != ROLE_ADMIN:
        raise ProfileRequired(message)

    profile = AlumniProfile(
        user_id=principal.id,
        matric_no=generate_matric_no(ADMIN_MATRIC_PREFIX, 12),
        department="Administration",
        graduation_year=datetime.utcnow().year,
        status="ACTIVE",
    )
    s.add(profile)
    s.flush()
    logger.info("Provisioned admin alumni profile id=%s for user_id=%s", profile.id, principal.id)
    record_event(
        s,
        actor=principal,
        action="alumni.provision_admin_profile",
        entity_type="AlumniProfile",
        entity_id=str(profile.id),
        metadata={"matric_no": profile.matric_no},
    )
    return profile


# ---------- Registration ----------

def validate_registration_payload(payload: dict) -> dict[str, Any]:
    errors = FieldErrors()
    name = check_length(errors, payload, "name", min_len=2, max_len=120, required=True)
    email = check_length(errors, payload, "email", max_len=255, required=True)
    if email and not is_valid_email(email):
        errors.add("email", "Must be a valid email address.")
    phone = check_length(errors, payload, "phone", max_len=30)
    matric_no = check_length(errors, payload, "matricNo", min_len=4, max_len=60, required=True)
    department = check_length(errors, payload, "department", min_len=2, max_len=120, required=True)

    graduation_year = payload.get("graduationYear")
    if isinstance(graduation_year, str) and graduation_year.strip().isdigit():
        graduation_year = int(graduation_year.strip())
    if not isinstance(graduation_year, int) or isinstance(graduation_year, bool):
        errors.add("graduationYear", "Must be a whole number.")
    elif not 1980 <= graduation_year <= 2100:
        errors.add("graduationYear", "Must be between 1980 and 2100.")

    password = payload.get("password")
    if not isinstance(password, str) or not 8 <= len(password) <= 128:
        errors.add("password", "Must be between 8 and 128 characters.")

    errors.raise_if_any()
    return {
        "name": name,
        "email": email.lower(),
        "phone": phone,
        "matric_no": matric_no.upper(),
        "department": department,
        "graduation_year": graduation_year,
        "password": password,
    }


def register_member(s: "Session", payload: dict, settings: "SettingsProvider") -> User:
    """Create a MEMBER user and their alumni profile."""
    current = settings.get()
    if current.maintenanceMode:
        raise MaintenanceMode("Registration is temporarily disabled due to maintenance mode.")
    if not current.allowPublicRegistration:
        raise Forbidden("Public registration is currently disabled by the administrator.")

    data = validate_registration_payload(payload)

    existing = (
        s.query(User)
        .outerjoin(AlumniProfile, AlumniProfile.user_id == User.id)
        .filter(or_(User.email == data["email"], AlumniProfile.matric_no == data["matric_no"]))
        .first()
    )
    if existing:
        raise Conflict("Email or matric number already exists.")

    user = User(
        name=data["name"],
        email=data["email"],
        phone=data["phone"],
        password_hash=generate_password_hash(data["password"]),
        role=ROLE_MEMBER,
        is_verified=current.defaultNewUserVerified,
    )
    s.add(user)
    s.flush()
    profile = AlumniProfile(
        user=user,
        matric_no=data["matric_no"],
        department=data["department"],
        graduation_year=data["graduation_year"],
        status="ACTIVE",
    )
    s.add(profile)
    s.flush()

    record_event(
        s,
        actor=principal_for_user(user),
        action="auth.register",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"email": user.email, "matric_no": profile.matric_no},
    )
    return user


def authenticate(s: "Session", email: str | None, password: str | None) -> User | None:
    """Return the user for valid credentials, else None."""
    email = (email or "").strip().lower()
    if not email or not password:
        return None
    user = s.query(User).filter(User.email == email).one_or_none()
    if not user or not check_password_hash(user.password_hash, password):
        return None
    return user


# ---------- Directory ----------

def search_alumni(
    s: "Session",
    principal: Principal | None,
    *,
    dept: str | None = None,
    year: Any = None,
    city: str | None = None,
    employer: str | None = None,
    skills: str | None = None,
    page: int = 1,
    sort: str | None = None,
    order: str | None = None,
) -> Page:
    authorize(principal, "alumni.search")

    q = s.query(AlumniProfile).join(User, User.id == AlumniProfile.user_id)

    dept = clean_str(dept)
    if dept:
        q = q.filter(AlumniProfile.department.ilike(f"%{dept}%"))
    try:
        year_filter = int(str(year).strip()) if year not in (None, "") else None
    except ValueError:
        year_filter = None
    if year_filter and year_filter > 0:
        q = q.filter(AlumniProfile.graduation_year == year_filter)
    city = clean_str(city)
    if city:
        q = q.filter(AlumniProfile.current_city.ilike(f"%{city}%"))
    employer = clean_str(employer)
    if employer:
        q = q.filter(AlumniProfile.employer.ilike(f"%{employer}%"))
    skills = clean_str(skills)
    if skills:
        q = q.filter(AlumniProfile.skills.ilike(f"%{skills}%"))

    sort_col = SEARCH_SORTS.get(sort or "", AlumniProfile.created_at)
    sort_expr = sort_col.asc() if order == "asc" else sort_col.desc()
    q = q.order_by(sort_expr, AlumniProfile.id.desc())
    return paginate(q, page, SEARCH_PAGE_SIZE)


def profile_to_dict(profile: AlumniProfile, *, include_contact: bool = False) -> dict[str, Any]:
    out = {
        "id": profile.id,
        "name": profile.user.name if profile.user else None,
        "matricNo": profile.matric_no,
        "department": profile.department,
        "graduationYear": profile.graduation_year,
        "status": profile.status,
        "employer": profile.employer,
        "jobTitle": profile.job_title,
        "currentCity": profile.current_city,
        "skills": profile.skills,
    }
    if include_contact and profile.user:
        out["email"] = profile.user.email
        out["phone"] = profile.user.phone
    return out


# ---------- Profile self-service ----------

def update_own_profile(s: "Session", principal: Principal | None, payload: dict) -> User:
    """Update name/phone and career fields; creates the alumni profile if missing."""
    actor = authorize(principal, "profile.edit")
    user = s.get(User, actor.id)
    if user is None:
        raise NotFound("User not found.")

    errors = FieldErrors()
    name = check_length(errors, payload, "name", min_len=2, max_len=120)
    phone = check_length(errors, payload, "phone", max_len=30)
    department = check_length(errors, payload, "department", min_len=2, max_len=120)
    current_city = check_length(errors, payload, "currentCity", max_len=120)
    employer = check_length(errors, payload, "employer", max_len=160)
    job_title = check_length(errors, payload, "jobTitle", max_len=160)
    skills = check_length(errors, payload, "skills", max_len=2000)
    graduation_year = None
    raw_year = payload.get("graduationYear")
    if raw_year not in (None, ""):
        try:
            graduation_year = int(str(raw_year).strip())
        except ValueError:
            errors.add("graduationYear", "Must be a whole number.")
        else:
            if not 1980 <= graduation_year <= 2100:
                errors.add("graduationYear", "Must be between 1980 and 2100.")
    errors.raise_if_any()

    if name:
        user.name = name
    if "phone" in payload:
        user.phone = phone

    profile = get_profile_for_user(s, user.id)
    if profile is None:
        profile = AlumniProfile(
            user=user,
            matric_no=generate_matric_no(GENERATED_MATRIC_PREFIX, 8),
            department=department or "General Studies",
            graduation_year=graduation_year or datetime.utcnow().year,
            status="ACTIVE",
        )
        s.add(profile)
    else:
        if department:
            profile.department = department
        if graduation_year:
            profile.graduation_year = graduation_year
    # Absent keys keep their stored value; explicit null or "" clears.
    for key, attr, value in (
        ("currentCity", "current_city", current_city),
        ("employer", "employer", employer),
        ("jobTitle", "job_title", job_title),
        ("skills", "skills", skills),
    ):
        if key in payload:
            setattr(profile, attr, value)
    s.flush()

    record_event(s, actor=actor, action="user.update_profile", entity_type="User", entity_id=str(user.id))
    return user


def change_password(
    s: "Session",
    principal: Principal | None,
    current_password: str | None,
    new_password: str | None,
    confirm_password: str | None,
) -> None:
    actor = authorize(principal, "profile.edit")
    user = s.get(User, actor.id)
    if user is None:
        raise NotFound("User not found.")
    errors = FieldErrors()
    if not current_password or not check_password_hash(user.password_hash, current_password):
        errors.add("currentPassword", "Current password is incorrect.")
    if not isinstance(new_password, str) or not 8 <= len(new_password) <= 128:
        errors.add("newPassword", "Must be between 8 and 128 characters.")
    elif new_password != confirm_password:
        errors.add("confirmPassword", "Passwords do not match.")
    errors.raise_if_any()

    user.password_hash = generate_password_hash(new_password)
    record_event(s, actor=actor, action="user.change_password", entity_type="User", entity_id=str(user.id))


# ---------- Member management (admin) ----------

def list_members(
    s: "Session",
    principal: Principal | None,
    *,
    q: str | None = None,
    role: str | None = None,
    page: int = 1,
) -> Page:
    authorize(principal, "members.view")
    query = s.query(User)
    search = clean_str(q)
    if search:
        like = f"%{search}%"
        query = query.filter(or_(User.name.ilike(like), User.email.ilike(like)))
    if role in ROLES:
        query = query.filter(User.role == role)
    query = query.order_by(User.created_at.desc(), User.id.desc())
    return paginate(query, page, MEMBERS_PAGE_SIZE)


def update_member(
    s: "Session",
    principal: Principal | None,
    user_id: int,
    *,
    role: str,
    verified: bool | None = None,
    status: str | None = None,
) -> User:
    """Change a member's role, and optionally their verification and profile status."""
    actor = authorize(principal, "members.manage")
    if role not in ROLES:
        raise ValidationError({"role": [f"Must be one of: {', '.join(ROLES)}"]})
    if verified is not None and not isinstance(verified, bool):
        raise ValidationError({"verified": ["Must be true or false."]})
    if status is not None and status not in PROFILE_STATUSES:
        raise ValidationError({"status": [f"Must be one of: {', '.join(PROFILE_STATUSES)}"]})
    if user_id == actor.id and role != ROLE_ADMIN:
        raise Conflict("You cannot remove your own admin role.")

    user = s.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")

    changes: dict[str, Any] = {}
    if user.role != role:
        changes["role"] = {"old": user.role, "new": role}
        user.role = role
    if verified is not None and user.is_verified != verified:
        changes["is_verified"] = {"old": user.is_verified, "new": verified}
        user.is_verified = verified
    if status is not None:
        profile = get_profile_for_user(s, user.id)
        if profile is not None and profile.status != status:
            changes["status"] = {"old": profile.status, "new": status}
            profile.status = status

    record_event(
        s,
        actor=actor,
        action="member.update",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"email": user.email, "changes": changes},
    )
    return user


def create_profile_for_user(s: "Session", principal: Principal | None, user_id: int) -> AlumniProfile:
    """Give a user without an alumni profile a generated one. Existing profiles are returned untouched."""
    actor = authorize(principal, "members.manage")
    user = s.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")
    existing = get_profile_for_user(s, user.id)
    if existing is not None:
        return existing

    profile = AlumniProfile(
        user=user,
        matric_no=generate_matric_no(GENERATED_MATRIC_PREFIX, 8),
        department="General Studies",
        graduation_year=datetime.utcnow().year,
        status="ACTIVE",
    )
    s.add(profile)
    s.flush()
    record_event(
        s,
        actor=actor,
        action="member.create_profile",
        entity_type="AlumniProfile",
        entity_id=str(profile.id),
        metadata={"user_id": user.id, "matric_no": profile.matric_no},
    )
    return profile


def user_to_dict(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "role": user.role,
        "isVerified": user.is_verified,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
        "alumni": profile_to_dict(user.alumni) if user.alumni else None,
    }
