"""
Event RSVP engine.

An alumnus may RSVP to an open event that has not ended its grace window
(start_at no older than one day). RSVPs are idempotent per (event, alumnus):
the unique constraint on event_rsvps is the backstop for concurrent duplicates.

The capacity check counts then inserts without a lock, so two concurrent
RSVPs for the last seat can both succeed. Capacity is a soft limit.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from app.alumnet.audit import record_event
from app.alumnet.constants import (
    EVENT_CANCELLED,
    EVENT_CLOSED,
    EVENT_GRACE_DAYS,
    EVENT_OPEN,
    EVENT_STATUSES,
    RSVP_GOING,
    UPCOMING_EVENTS_LIMIT,
)
from app.alumnet.errors import CapacityReached, Closed, NotFound, ValidationError
from app.alumnet.rbac import authorize
from app.alumnet.session import Principal
from app.alumnet.utils import FieldErrors, check_length, clean_str, isoformat, parse_iso_datetime

from .models import Event, EventRsvp

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@dataclass
class EventView:
    event: Event
    rsvp_count: int
    is_going: bool


@dataclass
class UpcomingEvents:
    events: list[EventView]
    cities: list[str]
    stats: dict[str, int] = field(default_factory=dict)


def _cutoff(now: datetime) -> datetime:
    return now - timedelta(days=EVENT_GRACE_DAYS)


def _rsvp_counts(s: "Session", event_ids: list[int]) -> dict[int, int]:
    if not event_ids:
        return {}
    rows = (
        s.query(EventRsvp.event_id, func.count(EventRsvp.id))
        .filter(EventRsvp.event_id.in_(event_ids))
        .group_by(EventRsvp.event_id)
        .all()
    )
    return {event_id: count for event_id, count in rows}


def _matches(event: Event, needle: str | None, city: str | None) -> bool:
    if city and (event.city or "").lower() != city.lower():
        return False
    if needle:
        haystack = " ".join(x for x in (event.title, event.description, event.location, event.city) if x)
        if needle.lower() not in haystack.lower():
            return False
    return True


def list_upcoming(
    s: "Session",
    alumni_id: int | None,
    q: str | None = None,
    city: str | None = None,
    now: datetime | None = None,
) -> UpcomingEvents:
    """
    Upcoming, non-cancelled events ordered by start time, each with its live
    RSVP count and whether this alumnus is going. Cities and stats are taken
    from the unfiltered list so the filter UI stays stable.
    """
    now = now or datetime.utcnow()
    events = (
        s.query(Event)
        .filter(Event.start_at >= _cutoff(now), Event.status != EVENT_CANCELLED)
        .order_by(Event.start_at.asc(), Event.id.asc())
        .limit(UPCOMING_EVENTS_LIMIT)
        .all()
    )
    ids = [e.id for e in events]
    counts = _rsvp_counts(s, ids)
    going: set[int] = set()
    if alumni_id is not None and ids:
        going = {
            row[0]
            for row in s.query(EventRsvp.event_id)
            .filter(EventRsvp.alumni_id == alumni_id, EventRsvp.event_id.in_(ids))
            .all()
        }

    views = [EventView(event=e, rsvp_count=counts.get(e.id, 0), is_going=e.id in going) for e in events]
    cities = sorted({e.city.strip() for e in events if e.city and e.city.strip()})
    stats = {
        "upcoming_events": len(views),
        "my_rsvps": sum(1 for v in views if v.is_going),
        "this_month_events": sum(
            1 for e in events if e.start_at.year == now.year and e.start_at.month == now.month
        ),
    }

    needle = clean_str(q)
    city = clean_str(city)
    if needle or city:
        views = [v for v in views if _matches(v.event, needle, city)]
    return UpcomingEvents(events=views, cities=cities, stats=stats)


def _existing_rsvp(s: "Session", alumni_id: int, event_id: int) -> EventRsvp | None:
    return (
        s.query(EventRsvp)
        .filter(EventRsvp.event_id == event_id, EventRsvp.alumni_id == alumni_id)
        .one_or_none()
    )


def rsvp(
    s: "Session",
    alumni_id: int,
    event_id: int,
    now: datetime | None = None,
    *,
    actor: Principal | None = None,
) -> EventRsvp:
    now = now or datetime.utcnow()
    event = s.get(Event, event_id)
    if event is None or event.start_at < _cutoff(now):
        raise NotFound("Event not found.")
    if event.status in (EVENT_CANCELLED, EVENT_CLOSED):
        raise Closed()

    existing = _existing_rsvp(s, alumni_id, event_id)
    if existing is not None:
        return existing

    if event.capacity is not None:
        count = s.query(func.count(EventRsvp.id)).filter(EventRsvp.event_id == event_id).scalar() or 0
        if count >= event.capacity:
            raise CapacityReached()

    try:
        with s.begin_nested():  # SAVEPOINT for idempotency
            row = EventRsvp(event_id=event_id, alumni_id=alumni_id, status=RSVP_GOING)
            s.add(row)
            s.flush()
    except IntegrityError:
        # A concurrent request inserted the same (event, alumnus) pair first.
        logger.info("Duplicate RSVP ignored event_id=%s alumni_id=%s", event_id, alumni_id)
        existing = _existing_rsvp(s, alumni_id, event_id)
        if existing is None:
            raise
        return existing

    record_event(
        s,
        actor=actor,
        action="event.rsvp",
        entity_type="Event",
        entity_id=str(event_id),
        metadata={"alumni_id": alumni_id},
    )
    return row


def cancel_rsvp(
    s: "Session",
    alumni_id: int,
    event_id: int,
    *,
    actor: Principal | None = None,
) -> bool:
    """Remove the RSVP if present. Returns whether a row was deleted."""
    existing = _existing_rsvp(s, alumni_id, event_id)
    if existing is None:
        return False
    s.delete(existing)
    s.flush()
    record_event(
        s,
        actor=actor,
        action="event.cancel_rsvp",
        entity_type="Event",
        entity_id=str(event_id),
        metadata={"alumni_id": alumni_id},
    )
    return True


# ---------- Admin ----------

def validate_event_payload(payload: dict) -> dict[str, Any]:
    errors = FieldErrors()
    title = check_length(errors, payload, "title", min_len=3, max_len=180, required=True)
    description = check_length(errors, payload, "description", max_len=5000)
    location = check_length(errors, payload, "location", max_len=180)
    city = check_length(errors, payload, "city", max_len=120)

    start_at = end_at = None
    for key in ("startAt", "endAt"):
        raw = payload.get(key)
        if raw is not None and not isinstance(raw, str):
            errors.add(key, "Must be an ISO date-time string.")
            continue
        try:
            value = parse_iso_datetime(raw)
        except ValueError:
            errors.add(key, "Must be a valid ISO date-time.")
            continue
        if key == "startAt":
            start_at = value
        else:
            end_at = value
    if start_at is None and "startAt" not in errors.as_dict():
        errors.add("startAt", "This field is required.")
    if start_at and end_at and end_at < start_at:
        errors.add("endAt", "Must not be before the start time.")

    capacity = payload.get("capacity")
    if capacity in (None, ""):
        capacity = None
    else:
        try:
            capacity = int(capacity)
        except (TypeError, ValueError):
            errors.add("capacity", "Must be a whole number.")
            capacity = None
        else:
            if capacity < 1:
                errors.add("capacity", "Must be at least 1.")

    errors.raise_if_any()
    return {
        "title": title,
        "description": description,
        "location": location,
        "city": city,
        "start_at": start_at,
        "end_at": end_at,
        "capacity": capacity,
    }


def create_event(s: "Session", principal: Principal | None, payload: dict) -> Event:
    actor = authorize(principal, "events.manage")
    data = validate_event_payload(payload or {})
    event = Event(status=EVENT_OPEN, created_by_id=actor.id, **data)
    s.add(event)
    s.flush()
    record_event(
        s,
        actor=actor,
        action="event.create",
        entity_type="Event",
        entity_id=str(event.id),
        metadata={"title": event.title, "start_at": event.start_at, "capacity": event.capacity},
    )
    logger.info("Event created id=%s start_at=%s", event.id, event.start_at)
    return event


def set_event_status(s: "Session", principal: Principal | None, event_id: int, status: str | None) -> Event:
    actor = authorize(principal, "events.manage")
    status = status.strip().upper() if isinstance(status, str) else ""
    if status not in EVENT_STATUSES:
        raise ValidationError({"status": [f"Must be one of: {', '.join(EVENT_STATUSES)}."]})
    event = s.get(Event, event_id)
    if event is None:
        raise NotFound("Event not found.")
    old = event.status
    if old == status:
        return event
    event.status = status
    event.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=actor,
        action="event.status",
        entity_type="Event",
        entity_id=str(event.id),
        metadata={"from": old, "to": status},
    )
    s.flush()
    return event


def event_to_dict(view: EventView) -> dict[str, Any]:
    e = view.event
    return {
        "id": e.id,
        "title": e.title,
        "description": e.description,
        "location": e.location,
        "city": e.city,
        "startAt": isoformat(e.start_at),
        "endAt": isoformat(e.end_at),
        "capacity": e.capacity,
        "status": e.status,
        "rsvpCount": view.rsvp_count,
        "isGoing": view.is_going,
        "isFull": e.capacity is not None and view.rsvp_count >= e.capacity,
    }
