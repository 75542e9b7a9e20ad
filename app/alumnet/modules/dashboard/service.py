from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import func

from app.alumnet.constants import ACTIVITY_FEED_LIMIT, STAFF_ROLES
from app.alumnet.models import User
from app.alumnet.modules.accomplishments.models import Accomplishment
from app.alumnet.modules.accomplishments.service import accomplishment_to_dict
from app.alumnet.modules.alumni.models import AlumniProfile
from app.alumnet.modules.alumni.service import get_profile_for_user, profile_to_dict
from app.alumnet.modules.jobs.models import Job
from app.alumnet.modules.jobs.service import job_to_dict
from app.alumnet.rbac import authorize
from app.alumnet.session import Principal

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def _count(s: "Session", column, *criteria) -> int:
    return s.query(func.count(column)).filter(*criteria).scalar() or 0


def _pending_counts(s: "Session") -> dict[str, int]:
    return {
        "pendingJobs": _count(s, Job.id, Job.is_approved.is_(False), Job.is_active.is_(True)),
        "pendingAccomplishments": _count(s, Accomplishment.id, Accomplishment.is_approved.is_(False)),
    }


def admin_overview(s: "Session", principal: Principal | None) -> dict[str, int]:
    """Platform-wide counts. All read inside the caller's single transaction."""
    authorize(principal, "dashboard.admin")
    out = {
        "users": _count(s, User.id),
        "alumni": _count(s, AlumniProfile.id),
        "verifiedUsers": _count(s, User.id, User.is_verified.is_(True)),
        "activeJobs": _count(s, Job.id, Job.is_approved.is_(True), Job.is_active.is_(True)),
        "staff": _count(s, User.id, User.role.in_(sorted(STAFF_ROLES))),
    }
    out.update(_pending_counts(s))
    return out


def moderation_overview(s: "Session", principal: Principal | None) -> dict[str, int]:
    authorize(principal, "dashboard.moderation")
    return _pending_counts(s)


def member_overview(s: "Session", principal: Principal | None) -> dict[str, Any]:
    actor = authorize(principal, "dashboard.member")
    profile = get_profile_for_user(s, actor.id)
    network_size = _count(s, AlumniProfile.id)
    if profile is None:
        return {
            "profile": None,
            "accomplishments": 0,
            "networkSize": network_size,
            "recentJobs": [],
            "recentAccomplishments": [],
        }

    recent_jobs = (
        s.query(Job)
        .filter(Job.poster_id == profile.id)
        .order_by(Job.created_at.desc(), Job.id.desc())
        .limit(ACTIVITY_FEED_LIMIT)
        .all()
    )
    recent_items = (
        s.query(Accomplishment)
        .filter(Accomplishment.alumni_id == profile.id)
        .order_by(Accomplishment.created_at.desc(), Accomplishment.id.desc())
        .limit(ACTIVITY_FEED_LIMIT)
        .all()
    )
    return {
        "profile": profile_to_dict(profile, include_contact=True),
        "accomplishments": _count(s, Accomplishment.id, Accomplishment.alumni_id == profile.id),
        "networkSize": network_size,
        "recentJobs": [job_to_dict(j) for j in recent_jobs],
        "recentAccomplishments": [accomplishment_to_dict(a) for a in recent_items],
    }
