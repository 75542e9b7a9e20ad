"""Tests for registration, directory search, member management and dashboards."""
import pytest
from werkzeug.security import check_password_hash, generate_password_hash

from app.alumnet import create_app
from app.alumnet.db import session_scope
from app.alumnet.errors import Conflict, Forbidden, MaintenanceMode, ValidationError
from app.alumnet.models import AlumniProfile, Base, Job, User
from app.alumnet.modules.alumni.service import (
    authenticate,
    change_password,
    create_profile_for_user,
    list_members,
    register_member,
    search_alumni,
    update_member,
    update_own_profile,
)
from app.alumnet.modules.dashboard.service import admin_overview, member_overview, moderation_overview
from app.alumnet.modules.settings.service import InMemorySettingsStore, SystemSettings
from app.alumnet.session import Principal


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    return app


def _principal(u):
    return Principal(id=u.id, email=u.email, name=u.name, role=u.role)


def _user(s, email, role="MEMBER", profile=None):
    u = User(email=email, name=email.split("@")[0], password_hash=generate_password_hash("password1"), role=role)
    s.add(u)
    s.flush()
    if profile is not None:
        s.add(AlumniProfile(user=u, matric_no=f"MAT-{u.id:04d}", **profile))
        s.flush()
    return u


def _registration(**overrides):
    payload = {
        "name": "Ada Obi",
        "email": "Ada@Example.com",
        "phone": "+2348000000000",
        "matricNo": "csc/2015/001",
        "department": "Computer Science",
        "graduationYear": "2019",
        "password": "correct-horse",
    }
    payload.update(overrides)
    return payload


def test_register_member(app):
    with session_scope(app) as s:
        user = register_member(s, _registration(), InMemorySettingsStore())
        assert user.role == "MEMBER"
        assert user.email == "ada@example.com"
        assert user.is_verified is False
        assert user.alumni.matric_no == "CSC/2015/001"
        assert user.alumni.graduation_year == 2019

    with session_scope(app) as s:
        assert authenticate(s, "ADA@example.com", "correct-horse").email == "ada@example.com"
        assert authenticate(s, "ada@example.com", "wrong-password") is None
        assert authenticate(s, "nobody@example.com", "correct-horse") is None


def test_register_respects_settings(app):
    with session_scope(app) as s:
        with pytest.raises(MaintenanceMode):
            register_member(s, _registration(), InMemorySettingsStore(SystemSettings(maintenanceMode=True)))
        with pytest.raises(Forbidden):
            register_member(s, _registration(), InMemorySettingsStore(SystemSettings(allowPublicRegistration=False)))
        user = register_member(s, _registration(), InMemorySettingsStore(SystemSettings(defaultNewUserVerified=True)))
        assert user.is_verified is True


def test_register_rejects_duplicates_and_bad_input(app):
    with session_scope(app) as s:
        register_member(s, _registration(), InMemorySettingsStore())
        with pytest.raises(Conflict):
            register_member(s, _registration(matricNo="OTHER-001"), InMemorySettingsStore())
        with pytest.raises(Conflict):
            register_member(s, _registration(email="someone@example.com"), InMemorySettingsStore())
        with pytest.raises(ValidationError) as exc:
            register_member(
                s,
                _registration(email="not-an-email", graduationYear=1900, password="short"),
                InMemorySettingsStore(),
            )
        assert set(exc.value.fields) == {"email", "graduationYear", "password"}


def test_search_alumni(app):
    with session_scope(app) as s:
        viewer = _principal(_user(s, "viewer@example.com"))
        _user(s, "a@example.com", profile={"department": "Computer Science", "graduation_year": 2015, "current_city": "Lagos", "employer": "Paystack", "skills": "python, sql"})
        _user(s, "b@example.com", profile={"department": "Civil Engineering", "graduation_year": 2015, "current_city": "Abuja"})
        _user(s, "c@example.com", profile={"department": "Computer Engineering", "graduation_year": 2020, "current_city": "lagos"})

        assert search_alumni(s, viewer).total == 3
        assert {p.department for p in search_alumni(s, viewer, dept="computer").items} == {
            "Computer Science",
            "Computer Engineering",
        }
        assert search_alumni(s, viewer, year="2015").total == 2
        assert search_alumni(s, viewer, city="LAGOS").total == 2
        assert search_alumni(s, viewer, employer="pay", skills="PYTHON").total == 1
        assert search_alumni(s, viewer, year="not-a-year").total == 3

        by_year = search_alumni(s, viewer, sort="graduationYear", order="asc")
        assert [p.graduation_year for p in by_year.items] == [2015, 2015, 2020]
        assert by_year.page_size == 12


def test_update_member_and_self_demotion(app):
    with session_scope(app) as s:
        admin = _principal(_user(s, "admin@example.com", role="ADMIN"))
        member = _user(s, "m@example.com", profile={"department": "Law", "graduation_year": 2010})

        with pytest.raises(Conflict):
            update_member(s, admin, admin.id, role="MEMBER", verified=True)

        updated = update_member(s, admin, member.id, role="MODERATOR", verified=True, status="SUSPENDED")
        assert updated.role == "MODERATOR"
        assert updated.is_verified is True
        assert updated.alumni.status == "SUSPENDED"

        with pytest.raises(ValidationError):
            update_member(s, admin, member.id, role="OWNER", verified=True)
        with pytest.raises(Forbidden):
            update_member(s, _principal(member), member.id, role="ADMIN", verified=True)


def test_update_member_keeps_verification_when_omitted(app):
    with session_scope(app) as s:
        admin = _principal(_user(s, "admin@example.com", role="ADMIN"))
        member = _user(s, "m@example.com")
        member.is_verified = True
        s.flush()

        updated = update_member(s, admin, member.id, role="MODERATOR")
        assert updated.is_verified is True

        with pytest.raises(ValidationError) as exc:
            update_member(s, admin, member.id, role="MEMBER", verified="false")
        assert "verified" in exc.value.fields
        assert member.is_verified is True


def test_partial_profile_update_keeps_other_fields(app):
    with session_scope(app) as s:
        user = _user(
            s,
            "me@example.com",
            profile={"department": "Law", "graduation_year": 2010, "employer": "Acme", "skills": "Python"},
        )
        user.phone = "+2348000000000"
        s.flush()
        me = _principal(user)

        updated = update_own_profile(s, me, {"currentCity": "Lagos"})
        assert updated.phone == "+2348000000000"
        assert updated.alumni.current_city == "Lagos"
        assert updated.alumni.employer == "Acme"
        assert updated.alumni.skills == "Python"

        cleared = update_own_profile(s, me, {"employer": ""})
        assert cleared.alumni.employer is None
        assert cleared.alumni.current_city == "Lagos"


def test_list_members(app):
    with session_scope(app) as s:
        admin = _principal(_user(s, "admin@example.com", role="ADMIN"))
        _user(s, "mod@example.com", role="MODERATOR")
        _user(s, "jane@example.com")
        assert list_members(s, admin).total == 3
        assert [u.email for u in list_members(s, admin, role="MODERATOR").items] == ["mod@example.com"]
        assert [u.email for u in list_members(s, admin, q="JANE").items] == ["jane@example.com"]
        with pytest.raises(Forbidden):
            list_members(s, Principal(id=99, email=None, name=None, role="MODERATOR"))


def test_create_profile_for_user(app):
    with session_scope(app) as s:
        admin = _principal(_user(s, "admin@example.com", role="ADMIN"))
        target = _user(s, "new@example.com")
        profile = create_profile_for_user(s, admin, target.id)
        assert profile.matric_no.startswith("USR-")
        assert len(profile.matric_no) == len("USR-") + 8
        assert profile.department == "General Studies"
        assert create_profile_for_user(s, admin, target.id).id == profile.id


def test_own_profile_and_password(app):
    with session_scope(app) as s:
        user = _user(s, "me@example.com")
        me = _principal(user)
        updated = update_own_profile(s, me, {"name": "New Name", "currentCity": "Ibadan", "jobTitle": "Engineer"})
        assert updated.name == "New Name"
        assert updated.alumni.current_city == "Ibadan"
        assert updated.alumni.matric_no.startswith("USR-")

        with pytest.raises(ValidationError) as exc:
            change_password(s, me, "wrong", "new-password", "new-password")
        assert "currentPassword" in exc.value.fields
        with pytest.raises(ValidationError) as exc:
            change_password(s, me, "password1", "new-password", "different")
        assert "confirmPassword" in exc.value.fields

        change_password(s, me, "password1", "new-password", "new-password")
        assert check_password_hash(user.password_hash, "new-password")


def test_dashboards(app):
    with session_scope(app) as s:
        admin = _principal(_user(s, "admin@example.com", role="ADMIN"))
        moderator = _principal(_user(s, "mod@example.com", role="MODERATOR"))
        member_user = _user(s, "m@example.com", profile={"department": "Law", "graduation_year": 2010})
        member = _principal(member_user)
        s.add(Job(poster_id=member_user.alumni.id, title="Pending role", description="A pending role description."))
        s.add(
            Job(
                poster_id=member_user.alumni.id,
                title="Live role",
                description="An approved role description.",
                is_approved=True,
            )
        )
        s.flush()

        overview = admin_overview(s, admin)
        assert overview["users"] == 3
        assert overview["alumni"] == 1
        assert overview["activeJobs"] == 1
        assert overview["pendingJobs"] == 1
        assert overview["pendingAccomplishments"] == 0
        assert overview["staff"] == 2

        assert moderation_overview(s, moderator) == {"pendingJobs": 1, "pendingAccomplishments": 0}
        with pytest.raises(Forbidden):
            admin_overview(s, moderator)
        with pytest.raises(Forbidden):
            moderation_overview(s, member)

        mine = member_overview(s, member)
        assert mine["networkSize"] == 1
        assert {j["title"] for j in mine["recentJobs"]} == {"Pending role", "Live role"}
        assert member_overview(s, moderator)["profile"] is None
