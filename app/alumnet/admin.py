from __future__ import annotations

from datetime import date, datetime, time, timedelta

from flask import Blueprint, jsonify, request

from app.alumnet.db import db_session
from app.alumnet.errors import ValidationError
from app.alumnet.models import AuditEvent
from app.alumnet.modules.alumni.service import (
    create_profile_for_user,
    list_members,
    profile_to_dict,
    update_member,
    user_to_dict,
)
from app.alumnet.rbac import current_principal, require_permission
from app.alumnet.utils import isoformat, json_body, page_to_dict, parse_iso_date, parse_page

bp = Blueprint("admin", __name__)


def _parse_date(raw: str | None, field_name: str) -> date | None:
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError({field_name: ["Must be YYYY-MM-DD."]}) from None


def _audit_to_dict(ev: AuditEvent) -> dict:
    return {
        "id": ev.id,
        "createdAt": isoformat(ev.created_at),
        "requestId": ev.request_id,
        "actorUserId": ev.actor_user_id,
        "actorEmail": ev.actor_user_email,
        "action": ev.action,
        "entityType": ev.entity_type,
        "entityId": ev.entity_id,
        "reason": ev.reason,
        "metadata": ev.metadata_json,
        "clientIp": ev.client_ip,
    }


@bp.get("/audit")
@require_permission("audit.view")
def audit_list():
    """
    Last 200 audit events, newest first, with simple filters:
    - action (contains)
    - actor_email (contains)
    - date range (YYYY-MM-DD, inclusive)
    """
    s = db_session()
    action = (request.args.get("action") or "").strip()
    actor_email = (request.args.get("actor_email") or "").strip()
    date_from = _parse_date(request.args.get("date_from"), "date_from")
    date_to = _parse_date(request.args.get("date_to"), "date_to")

    q = s.query(AuditEvent)
    if action:
        q = q.filter(AuditEvent.action.like(f"%{action}%"))
    if actor_email:
        q = q.filter(AuditEvent.actor_user_email.like(f"%{actor_email.lower()}%"))
    if date_from:
        q = q.filter(AuditEvent.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        q = q.filter(AuditEvent.created_at < datetime.combine(date_to + timedelta(days=1), time.min))

    events = q.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc()).limit(200).all()
    return jsonify({"events": [_audit_to_dict(ev) for ev in events]})


@bp.get("/members")
def members_list():
    page = list_members(
        db_session(),
        current_principal(),
        q=request.args.get("q"),
        role=request.args.get("role"),
        page=parse_page(request.args.get("page")),
    )
    return jsonify(page_to_dict(page, user_to_dict))


@bp.post("/members/<int:user_id>")
def members_update(user_id: int):
    payload = json_body()
    s = db_session()
    user = update_member(
        s,
        current_principal(),
        user_id,
        role=payload.get("role"),
        verified=payload.get("verified"),
        status=payload.get("status"),
    )
    s.commit()
    return jsonify({"success": True, "user": user_to_dict(user)})


@bp.post("/members/<int:user_id>/profile")
def members_create_profile(user_id: int):
    s = db_session()
    profile = create_profile_for_user(s, current_principal(), user_id)
    s.commit()
    return jsonify({"success": True, "alumni": profile_to_dict(profile)})
