from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from app.alumnet.audit import record_event
from app.alumnet.constants import JOB_BOARD_LIMIT, ROLE_ADMIN
from app.alumnet.errors import MaintenanceMode
from app.alumnet.modules.alumni.service import get_profile_for_user, resolve_poster_profile
from app.alumnet.modules.moderation.workflow import SubmissionResult, initial_approval, job_state
from app.alumnet.rbac import authorize
from app.alumnet.session import Principal
from app.alumnet.utils import FieldErrors, check_iso_date, check_length, isoformat

from .models import Job

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.alumnet.modules.settings.service import SettingsProvider

logger = logging.getLogger(__name__)

MSG_MAINTENANCE = "Job posting is temporarily disabled due to maintenance mode."
MSG_PROFILE_REQUIRED = "Only members with an alumni profile can post jobs."
MSG_APPROVED_BY_ADMIN = "Job posted and approved instantly."
MSG_LIVE = "Job posted successfully and is live."
MSG_PENDING = "Job submitted successfully. It is now pending admin approval."


def validate_job_payload(payload: dict) -> dict[str, Any]:
    """
    Validate a job submission. Returns cleaned values (blank optional fields
    become None) or raises ValidationError with every failing field.
    """
    errors = FieldErrors()
    cleaned = {
        "company": check_length(errors, payload, "company", max_len=120),
        "title": check_length(errors, payload, "title", min_len=4, max_len=180, required=True),
        "description": check_length(errors, payload, "description", min_len=20, max_len=5000, required=True),
        "requirements": check_length(errors, payload, "requirements", max_len=5000),
        "location": check_length(errors, payload, "location", max_len=180),
        "salary_range": check_length(errors, payload, "salaryRange", max_len=120),
        "deadline": check_iso_date(errors, payload, "deadline"),
    }
    errors.raise_if_any()
    return cleaned


def submit_job(s: "Session", principal: Principal | None, payload: dict, settings: "SettingsProvider") -> SubmissionResult:
    actor = authorize(principal, "jobs.submit")
    current = settings.get()
    is_admin = actor.role == ROLE_ADMIN

    if current.maintenanceMode and not is_admin:
        raise MaintenanceMode(MSG_MAINTENANCE)

    data = validate_job_payload(payload or {})
    poster = resolve_poster_profile(s, actor, message=MSG_PROFILE_REQUIRED)

    is_approved, approved_by_id = initial_approval(
        actor,
        require_approval=current.requireApprovalForJobs,
        admin_auto_approve=current.adminAutoApproveOwnContent,
    )
    job = Job(
        poster_id=poster.id,
        is_approved=is_approved,
        is_active=True,
        approved_by_id=approved_by_id,
        **data,
    )
    s.add(job)
    s.flush()

    record_event(
        s,
        actor=actor,
        action="job.submit",
        entity_type="Job",
        entity_id=str(job.id),
        metadata={"title": job.title, "is_approved": is_approved},
    )
    s.flush()
    logger.info("Job submitted id=%s poster_id=%s approved=%s", job.id, poster.id, is_approved)

    if is_approved and is_admin:
        message = MSG_APPROVED_BY_ADMIN
    elif is_approved:
        message = MSG_LIVE
    else:
        message = MSG_PENDING
    return SubmissionResult(
        id=job.id,
        title=job.title,
        is_approved=is_approved,
        approved_by_id=approved_by_id,
        message=message,
    )


def list_visible_jobs(s: "Session", principal: Principal | None) -> list[Job]:
    """Job board: admins see every job, everyone else approved and active ones."""
    actor = authorize(principal, "jobs.view")
    q = s.query(Job)
    if actor.role != ROLE_ADMIN:
        q = q.filter(Job.is_approved.is_(True), Job.is_active.is_(True))
    return q.order_by(Job.created_at.desc(), Job.id.desc()).limit(JOB_BOARD_LIMIT).all()


def list_my_jobs(s: "Session", principal: Principal | None) -> list[Job]:
    actor = authorize(principal, "jobs.view")
    profile = get_profile_for_user(s, actor.id)
    if profile is None:
        return []
    return (
        s.query(Job)
        .filter(Job.poster_id == profile.id)
        .order_by(Job.created_at.desc(), Job.id.desc())
        .all()
    )


def job_to_dict(job: Job) -> dict[str, Any]:
    poster = job.poster
    return {
        "id": job.id,
        "company": job.company,
        "title": job.title,
        "description": job.description,
        "requirements": job.requirements,
        "location": job.location,
        "salaryRange": job.salary_range,
        "deadline": isoformat(job.deadline),
        "status": job_state(job),
        "isApproved": job.is_approved,
        "isActive": job.is_active,
        "approvedById": job.approved_by_id,
        "createdAt": isoformat(job.created_at),
        "poster": {
            "id": poster.id,
            "name": poster.user.name if poster.user else None,
            "department": poster.department,
            "graduationYear": poster.graduation_year,
        }
        if poster
        else None,
    }
