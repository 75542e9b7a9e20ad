"""
Content lifecycle shared by jobs and accomplishments.

    PENDING -> APPROVED
    PENDING -> REJECTED

Both outcomes are terminal. A rejected accomplishment no longer exists, so
only jobs can be observed in REJECTED.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.alumnet.constants import ROLE_ADMIN

if TYPE_CHECKING:
    from app.alumnet.modules.accomplishments.models import Accomplishment
    from app.alumnet.modules.jobs.models import Job
    from app.alumnet.session import Principal

PENDING = "PENDING"
APPROVED = "APPROVED"
REJECTED = "REJECTED"

STATUS_TRANSITIONS = {
    PENDING: {APPROVED, REJECTED},
    APPROVED: set(),
    REJECTED: set(),
}


@dataclass(frozen=True)
class SubmissionResult:
    id: int
    title: str
    is_approved: bool
    approved_by_id: int | None
    message: str


def job_state(job: "Job") -> str:
    if not job.is_active:
        return REJECTED
    return APPROVED if job.is_approved else PENDING


def accomplishment_state(accomplishment: "Accomplishment") -> str:
    return APPROVED if accomplishment.is_approved else PENDING


def can_transition(current: str, new: str) -> bool:
    return new in STATUS_TRANSITIONS.get(current, set())


def initial_approval(principal: "Principal", require_approval: bool, admin_auto_approve: bool) -> tuple[bool, int | None]:
    """
    Approval state for newly submitted content: (is_approved, approved_by_id).

    Admins are approved when they auto-approve their own content or when the
    content type needs no approval; everyone else only when no approval is
    required. Only an admin's own approval is stamped; other auto-approved
    content has no approver.
    """
    is_admin = principal.role == ROLE_ADMIN
    if is_admin:
        is_approved = admin_auto_approve or not require_approval
    else:
        is_approved = not require_approval
    approved_by_id = principal.id if is_approved and is_admin else None
    return is_approved, approved_by_id

