from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from app.alumnet.audit import record_event
from app.alumnet.constants import ACCOMPLISHMENT_TYPES, ROLE_ADMIN
from app.alumnet.errors import MaintenanceMode
from app.alumnet.modules.alumni.service import resolve_poster_profile
from app.alumnet.modules.moderation.workflow import SubmissionResult, accomplishment_state, initial_approval
from app.alumnet.rbac import authorize
from app.alumnet.session import Principal
from app.alumnet.utils import FieldErrors, check_iso_date, check_length, is_valid_url, isoformat

from .models import Accomplishment

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.alumnet.modules.settings.service import SettingsProvider

logger = logging.getLogger(__name__)

MSG_MAINTENANCE = "Achievement sharing is temporarily disabled due to maintenance mode."
MSG_PROFILE_REQUIRED = "Only members with an alumni profile can share achievements."
MSG_APPROVED_BY_ADMIN = "Achievement posted and approved instantly."
MSG_LIVE = "Achievement posted successfully and is live."
MSG_PENDING = "Achievement submitted. It is pending admin approval."


def validate_accomplishment_payload(payload: dict) -> dict[str, Any]:
    errors = FieldErrors()

    kind = payload.get("type")
    if isinstance(kind, str):
        kind = kind.strip().upper()
    if kind not in ACCOMPLISHMENT_TYPES:
        errors.add("type", f"Must be one of: {', '.join(ACCOMPLISHMENT_TYPES)}.")

    title = check_length(errors, payload, "title", min_len=4, max_len=180, required=True)
    description = check_length(errors, payload, "description", min_len=10, max_len=3000)
    image_url = check_length(errors, payload, "imageUrl", max_len=1000)
    if image_url and not is_valid_url(image_url):
        errors.add("imageUrl", "Must be a valid http(s) URL.")
    when = check_iso_date(errors, payload, "date")

    errors.raise_if_any()
    return {
        "type": kind,
        "title": title,
        "description": description,
        "image_url": image_url,
        "date": when,
    }


def submit_accomplishment(
    s: "Session",
    principal: Principal | None,
    payload: dict,
    settings: "SettingsProvider",
) -> SubmissionResult:
    actor = authorize(principal, "accomplishments.submit")
    current = settings.get()
    is_admin = actor.role == ROLE_ADMIN

    if current.maintenanceMode and not is_admin:
        raise MaintenanceMode(MSG_MAINTENANCE)

    data = validate_accomplishment_payload(payload or {})
    profile = resolve_poster_profile(s, actor, message=MSG_PROFILE_REQUIRED)

    is_approved, approved_by_id = initial_approval(
        actor,
        require_approval=current.requireApprovalForAccomplishments,
        admin_auto_approve=current.adminAutoApproveOwnContent,
    )
    item = Accomplishment(
        alumni_id=profile.id,
        is_approved=is_approved,
        approved_by_id=approved_by_id,
        **data,
    )
    s.add(item)
    s.flush()

    record_event(
        s,
        actor=actor,
        action="accomplishment.submit",
        entity_type="Accomplishment",
        entity_id=str(item.id),
        metadata={"title": item.title, "type": item.type, "is_approved": is_approved},
    )
    s.flush()
    logger.info("Accomplishment submitted id=%s alumni_id=%s approved=%s", item.id, profile.id, is_approved)

    if is_approved and is_admin:
        message = MSG_APPROVED_BY_ADMIN
    elif is_approved:
        message = MSG_LIVE
    else:
        message = MSG_PENDING
    return SubmissionResult(
        id=item.id,
        title=item.title,
        is_approved=is_approved,
        approved_by_id=approved_by_id,
        message=message,
    )


def accomplishment_to_dict(item: Accomplishment) -> dict[str, Any]:
    alumni = item.alumni
    return {
        "id": item.id,
        "type": item.type,
        "title": item.title,
        "description": item.description,
        "imageUrl": item.image_url,
        "date": isoformat(item.date),
        "status": accomplishment_state(item),
        "isApproved": item.is_approved,
        "approvedById": item.approved_by_id,
        "createdAt": isoformat(item.created_at),
        "alumni": {
            "id": alumni.id,
            "name": alumni.user.name if alumni.user else None,
            "department": alumni.department,
        }
        if alumni
        else None,
    }
