"""End-to-end HTTP tests for the JSON API."""
from datetime import datetime, timedelta

import pytest
from werkzeug.security import generate_password_hash

from app.alumnet import auth, create_app
from app.alumnet.db import session_scope
from app.alumnet.models import AlumniProfile, Base, Event, EventRsvp, Job, User


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    auth._login_attempts.clear()

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])

    with session_scope(app) as s:
        for email, role, with_profile in (
            ("admin@example.com", "ADMIN", False),
            ("mod@example.com", "MODERATOR", True),
            ("member@example.com", "MEMBER", True),
            ("orphan@example.com", "MEMBER", False),
        ):
            u = User(email=email, name=role.title(), password_hash=generate_password_hash("password1"), role=role)
            s.add(u)
            if with_profile:
                s.add(AlumniProfile(user=u, matric_no=f"MAT-{email[:3].upper()}", department="History", graduation_year=2014))
        s.add(Event(title="Reunion", city="Lagos", start_at=datetime.utcnow() + timedelta(days=7), capacity=1))

    return app


def _client(app, email=None):
    c = app.test_client()
    if email:
        r = c.post("/auth/login", json={"email": email, "password": "password1"})
        assert r.status_code == 200
    return c


JOB = {
    "company": "Acme",
    "title": "Product Designer",
    "description": "Design the next generation of our mobile banking app.",
}


def test_submit_job_and_moderate(app):
    member = _client(app, "member@example.com")
    r = member.post("/api/jobs", json=JOB)
    assert r.status_code == 201
    assert r.json["success"] is True
    assert r.json["message"] == "Job submitted successfully. It is now pending admin approval."
    job_id = r.json["job"]["id"]
    assert r.json["job"]["title"] == "Product Designer"

    assert member.get("/api/moderation/jobs").status_code == 403
    assert member.get("/api/jobs").json["jobs"] == []

    moderator = _client(app, "mod@example.com")
    queue = moderator.get("/api/moderation/jobs?page=0").json
    assert queue["page"] == 1
    assert queue["total"] == 1
    assert queue["items"][0]["status"] == "PENDING"

    r = moderator.post(f"/api/moderation/jobs/{job_id}/approve")
    assert r.status_code == 200
    assert r.json["job"]["status"] == "APPROVED"
    assert moderator.post(f"/api/moderation/jobs/{job_id}/reject").status_code == 409
    assert moderator.post("/api/moderation/jobs/999/approve").status_code == 404

    board = member.get("/api/jobs").json["jobs"]
    assert [j["id"] for j in board] == [job_id]


def test_submit_errors(app):
    anonymous = _client(app)
    assert anonymous.post("/api/jobs", json=JOB).status_code == 401

    orphan = _client(app, "orphan@example.com")
    r = orphan.post("/api/accomplishments", json={"type": "BIRTH", "title": "Baby girl arrived"})
    assert r.status_code == 403
    assert r.json["error"] == "profile_required"

    member = _client(app, "member@example.com")
    r = member.post("/api/jobs", json={"title": "X"})
    assert r.status_code == 400
    assert r.json["error"] == "validation_error"
    assert "title" in r.json["fields"]
    assert "description" in r.json["fields"]

    r = member.post("/api/jobs", json=["not", "an", "object"])
    assert r.status_code == 400


def test_maintenance_mode_via_settings(app):
    admin = _client(app, "admin@example.com")
    member = _client(app, "member@example.com")

    assert member.get("/api/admin/settings").status_code == 403
    r = admin.post("/api/admin/settings", json={"maintenanceMode": True})
    assert r.status_code == 200
    assert r.json["settings"]["maintenanceMode"] is True

    r = member.post("/api/accomplishments", json={"type": "PROMOTION", "title": "Made partner"})
    assert r.status_code == 503
    assert r.json["error"] == "maintenance_mode"

    # Admins still post, and without a profile they get one
    r = admin.post("/api/accomplishments", json={"type": "OTHER", "title": "Launched the portal"})
    assert r.status_code == 201
    assert r.json["message"] == "Achievement posted and approved instantly."

    r = admin.post("/api/admin/settings/reset")
    assert r.json["settings"]["maintenanceMode"] is False


def test_accomplishment_rejection_deletes(app):
    member = _client(app, "member@example.com")
    item_id = member.post("/api/accomplishments", json={"type": "WEDDING", "title": "Tied the knot"}).json[
        "accomplishment"
    ]["id"]

    moderator = _client(app, "mod@example.com")
    assert moderator.get("/api/moderation/accomplishments").json["total"] == 1
    assert moderator.post(f"/api/moderation/accomplishments/{item_id}/reject").status_code == 200
    assert moderator.post(f"/api/moderation/accomplishments/{item_id}/reject").status_code == 200
    assert moderator.get("/api/moderation/accomplishments").json["total"] == 0


def test_event_rsvp_flow(app):
    with session_scope(app) as s:
        event_id = s.query(Event).one().id

    member = _client(app, "member@example.com")
    listing = member.get("/api/events").json
    assert listing["cities"] == ["Lagos"]
    assert listing["events"][0]["isGoing"] is False

    assert member.post(f"/api/events/{event_id}/rsvp").status_code == 200
    assert member.post(f"/api/events/{event_id}/rsvp").status_code == 200
    listing = member.get("/api/events").json
    assert listing["events"][0]["rsvpCount"] == 1
    assert listing["events"][0]["isFull"] is True
    assert listing["stats"]["my_rsvps"] == 1

    moderator = _client(app, "mod@example.com")
    r = moderator.post(f"/api/events/{event_id}/rsvp")
    assert r.status_code == 409
    assert r.json["error"] == "capacity_reached"

    orphan = _client(app, "orphan@example.com")
    assert orphan.post(f"/api/events/{event_id}/rsvp").status_code == 403
    assert member.post("/api/events/999/rsvp").status_code == 404

    assert member.post(f"/api/events/{event_id}/cancel").status_code == 200
    assert member.post(f"/api/events/{event_id}/cancel").status_code == 200
    with session_scope(app) as s:
        assert s.query(EventRsvp).count() == 0


def test_event_admin(app):
    admin = _client(app, "admin@example.com")
    member = _client(app, "member@example.com")
    start = (datetime.utcnow() + timedelta(days=3)).replace(microsecond=0).isoformat()

    assert member.post("/api/events", json={"title": "Meetup", "startAt": start}).status_code == 403
    r = admin.post("/api/events", json={"title": "Meetup", "startAt": start, "city": "Abuja"})
    assert r.status_code == 201
    event_id = r.json["event"]["id"]

    r = admin.post(f"/api/events/{event_id}/status", json={"status": "CANCELLED"})
    assert r.json["event"]["status"] == "CANCELLED"
    assert member.post(f"/api/events/{event_id}/rsvp").json["error"] == "closed"
    assert "Abuja" not in member.get("/api/events").json["cities"]


def test_admin_members_audit_and_dashboards(app):
    admin = _client(app, "admin@example.com")
    member = _client(app, "member@example.com")

    with session_scope(app) as s:
        admin_id = s.query(User).filter(User.email == "admin@example.com").one().id
        orphan_id = s.query(User).filter(User.email == "orphan@example.com").one().id

    assert admin.get("/api/admin/members").json["total"] == 4
    assert member.get("/api/admin/members").status_code == 403
    assert admin.post(f"/api/admin/members/{admin_id}", json={"role": "MEMBER", "verified": True}).status_code == 409

    r = admin.post(f"/api/admin/members/{orphan_id}/profile")
    assert r.json["alumni"]["matricNo"].startswith("USR-")

    events = admin.get("/api/admin/audit?action=auth.login").json["events"]
    assert events and all(e["action"] == "auth.login" for e in events)
    assert member.get("/api/admin/audit").status_code == 403
    assert admin.get("/api/admin/audit?date_from=yesterday").status_code == 400

    assert admin.get("/api/dashboard/admin").json["users"] == 4
    assert member.get("/api/dashboard/admin").status_code == 403
    assert member.get("/api/dashboard/member").json["profile"]["matricNo"] == "MAT-MEM"


def test_directory_and_profile(app):
    member = _client(app, "member@example.com")
    r = member.get("/api/alumni/search?dept=hist")
    assert r.json["total"] == 2

    r = member.post("/api/profile", json={"currentCity": "Accra", "employer": "Flutterwave"})
    assert r.json["user"]["alumni"]["currentCity"] == "Accra"
    assert member.get("/api/alumni/search?employer=flutter").json["total"] == 1

    r = member.post(
        "/api/profile/password",
        json={"currentPassword": "password1", "newPassword": "password2", "confirmPassword": "password2"},
    )
    assert r.status_code == 200
    assert app.test_client().post(
        "/auth/login", json={"email": "member@example.com", "password": "password2"}
    ).status_code == 200
