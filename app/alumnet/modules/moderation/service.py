from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.alumnet.audit import record_event
from app.alumnet.constants import MODERATION_PAGE_SIZE
from app.alumnet.errors import Conflict, NotFound
from app.alumnet.modules.accomplishments.models import Accomplishment
from app.alumnet.modules.jobs.models import Job
from app.alumnet.rbac import authorize
from app.alumnet.session import Principal
from app.alumnet.utils import Page, paginate

from .workflow import APPROVED, REJECTED, accomplishment_state, can_transition, job_state

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


# ---------- Queues ----------

def list_pending_jobs(s: "Session", principal: Principal | None, page: int = 1) -> Page:
    authorize(principal, "moderation.view")
    q = (
        s.query(Job)
        .filter(Job.is_approved.is_(False), Job.is_active.is_(True))
        .order_by(Job.created_at.desc(), Job.id.desc())
    )
    return paginate(q, page, MODERATION_PAGE_SIZE)


def list_pending_accomplishments(s: "Session", principal: Principal | None, page: int = 1) -> Page:
    authorize(principal, "moderation.view")
    q = (
        s.query(Accomplishment)
        .filter(Accomplishment.is_approved.is_(False))
        .order_by(Accomplishment.created_at.desc(), Accomplishment.id.desc())
    )
    return paginate(q, page, MODERATION_PAGE_SIZE)


# ---------- Decisions ----------

def _ensure_transition(entity: str, entity_id: int, current: str, new: str) -> None:
    if not can_transition(current, new):
        logger.info("Moderation conflict: %s id=%s is %s, cannot become %s", entity, entity_id, current, new)
        raise Conflict(f"{entity} is already {current.lower()}.")


def approve_job(s: "Session", job_id: int, approver: Principal | None) -> Job:
    """PENDING -> APPROVED. Approving an approved job is a no-op."""
    actor = authorize(approver, "moderation.decide")
    job = s.get(Job, job_id)
    if job is None:
        raise NotFound("Job not found.")
    current = job_state(job)
    if current == APPROVED:
        return job
    _ensure_transition("Job", job.id, current, APPROVED)

    job.is_approved = True
    job.approved_by_id = actor.id
    record_event(s, actor=actor, action="job.approve", entity_type="Job", entity_id=str(job.id))
    s.flush()
    return job


def reject_job(s: "Session", job_id: int, approver: Principal | None) -> Job | None:
    """
    PENDING -> REJECTED. The row is kept but deactivated so it drops out of the
    board and the queue. Unknown or already rejected jobs are a no-op.
    """
    actor = authorize(approver, "moderation.decide")
    job = s.get(Job, job_id)
    if job is None:
        return None
    current = job_state(job)
    if current == REJECTED:
        return job
    _ensure_transition("Job", job.id, current, REJECTED)

    job.is_active = False
    record_event(s, actor=actor, action="job.reject", entity_type="Job", entity_id=str(job.id))
    s.flush()
    return job


def approve_accomplishment(s: "Session", accomplishment_id: int, approver: Principal | None) -> Accomplishment:
    actor = authorize(approver, "moderation.decide")
    item = s.get(Accomplishment, accomplishment_id)
    if item is None:
        raise NotFound("Accomplishment not found.")
    if accomplishment_state(item) == APPROVED:
        return item

    item.is_approved = True
    item.approved_by_id = actor.id
    record_event(
        s,
        actor=actor,
        action="accomplishment.approve",
        entity_type="Accomplishment",
        entity_id=str(item.id),
    )
    s.flush()
    return item


def reject_accomplishment(s: "Session", accomplishment_id: int, approver: Principal | None) -> None:
    """Rejection deletes the accomplishment outright."""
    actor = authorize(approver, "moderation.decide")
    item = s.get(Accomplishment, accomplishment_id)
    if item is None:
        return
    _ensure_transition("Accomplishment", item.id, accomplishment_state(item), REJECTED)

    record_event(
        s,
        actor=actor,
        action="accomplishment.reject",
        entity_type="Accomplishment",
        entity_id=str(item.id),
        metadata={"title": item.title, "alumni_id": item.alumni_id},
    )
    s.delete(item)
    s.flush()
