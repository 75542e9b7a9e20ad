from flask import Blueprint, jsonify, request

from app.alumnet.db import db_session
from app.alumnet.modules.alumni.service import get_profile_for_user, require_profile
from app.alumnet.modules.events.service import (
    EventView,
    cancel_rsvp,
    create_event,
    event_to_dict,
    list_upcoming,
    rsvp,
    set_event_status,
)
from app.alumnet.rbac import authorize, current_principal, require_permission
from app.alumnet.utils import json_body

bp = Blueprint("events", __name__)


@bp.get("/events")
@require_permission("events.view")
def events_list():
    s = db_session()
    profile = get_profile_for_user(s, current_principal().id)
    result = list_upcoming(
        s,
        profile.id if profile else None,
        q=request.args.get("q"),
        city=request.args.get("city"),
    )
    return jsonify(
        {
            "events": [event_to_dict(v) for v in result.events],
            "cities": result.cities,
            "stats": result.stats,
        }
    )


@bp.post("/events")
def events_create():
    s = db_session()
    event = create_event(s, current_principal(), json_body())
    s.commit()
    return jsonify({"success": True, "event": event_to_dict(EventView(event, 0, False))}), 201


@bp.post("/events/<int:event_id>/rsvp")
def events_rsvp(event_id: int):
    principal = authorize(current_principal(), "events.rsvp")
    s = db_session()
    profile = require_profile(s, principal)
    rsvp(s, profile.id, event_id, actor=principal)
    s.commit()
    return jsonify({"success": True, "eventId": event_id, "isGoing": True})


@bp.post("/events/<int:event_id>/cancel")
def events_cancel(event_id: int):
    principal = authorize(current_principal(), "events.rsvp")
    s = db_session()
    profile = require_profile(s, principal)
    cancel_rsvp(s, profile.id, event_id, actor=principal)
    s.commit()
    return jsonify({"success": True, "eventId": event_id, "isGoing": False})


@bp.post("/events/<int:event_id>/status")
def events_status(event_id: int):
    s = db_session()
    event = set_event_status(s, current_principal(), event_id, json_body().get("status"))
    s.commit()
    count = len(event.rsvps)
    return jsonify({"success": True, "event": event_to_dict(EventView(event, count, False))})
