"""Tests for system settings (in-memory and database-backed)."""
import pytest
from sqlalchemy import inspect
from werkzeug.security import generate_password_hash

from app.alumnet import create_app
from app.alumnet.db import session_scope
from app.alumnet.errors import Forbidden
from app.alumnet.models import AppSetting, AuditEvent, Base, User
from app.alumnet.modules.settings.service import (
    DEFAULT_SETTINGS,
    DbSettingsStore,
    InMemorySettingsStore,
    SettingsProvider,
    SystemSettings,
    get_system_settings,
    reset_system_settings,
    update_system_settings,
)
from app.alumnet.session import Principal


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    return app


def _user(s, email, role):
    u = User(email=email, name=email.split("@")[0], password_hash=generate_password_hash("password1"), role=role)
    s.add(u)
    s.flush()
    return Principal(id=u.id, email=u.email, name=u.name, role=u.role)


def test_defaults():
    assert DEFAULT_SETTINGS.allowPublicRegistration is True
    assert DEFAULT_SETTINGS.defaultNewUserVerified is False
    assert DEFAULT_SETTINGS.maintenanceMode is False
    assert DEFAULT_SETTINGS.requireApprovalForJobs is True
    assert DEFAULT_SETTINGS.requireApprovalForAccomplishments is True
    assert DEFAULT_SETTINGS.adminAutoApproveOwnContent is True


def test_from_mapping_ignores_non_booleans_and_unknown_keys():
    settings = SystemSettings.from_mapping({"maintenanceMode": "yes", "requireApprovalForJobs": False, "extra": True})
    assert settings.maintenanceMode is False
    assert settings.requireApprovalForJobs is False
    assert SystemSettings.from_mapping(None) == DEFAULT_SETTINGS
    assert SystemSettings.from_mapping(["not", "a", "mapping"]) == DEFAULT_SETTINGS


def test_in_memory_store_merges_patches():
    store = InMemorySettingsStore()
    assert isinstance(store, SettingsProvider)
    assert store.get() == DEFAULT_SETTINGS
    store.set({"maintenanceMode": True})
    store.set({"requireApprovalForJobs": False, "maintenanceMode": 1})
    assert store.get().maintenanceMode is False  # 1 is not a boolean: falls back to the default
    assert store.get().requireApprovalForJobs is False
    assert store.reset() == DEFAULT_SETTINGS


def test_db_store_returns_defaults_without_writing(app):
    with session_scope(app) as s:
        assert DbSettingsStore(s).get() == DEFAULT_SETTINGS
    with session_scope(app) as s:
        assert s.query(AppSetting).count() == 0


def test_db_store_persists_and_resets(app):
    with session_scope(app) as s:
        saved = DbSettingsStore(s).set({"maintenanceMode": True, "defaultNewUserVerified": True})
        assert saved.maintenanceMode is True

    with session_scope(app) as s:
        store = DbSettingsStore(s)
        current = store.get()
        assert current.maintenanceMode is True
        assert current.defaultNewUserVerified is True
        assert current.allowPublicRegistration is True
        assert s.query(AppSetting).count() == 1
        store.reset()

    with session_scope(app) as s:
        assert DbSettingsStore(s).get() == DEFAULT_SETTINGS


def test_db_store_falls_back_on_corrupt_row(app):
    with session_scope(app) as s:
        s.add(AppSetting(key="admin_system_settings", value={"maintenanceMode": "on", "allowPublicRegistration": False}))

    with session_scope(app) as s:
        current = DbSettingsStore(s).get()
        assert current.maintenanceMode is False
        assert current.allowPublicRegistration is False


def test_admin_operations_are_admin_only_and_audited(app):
    with session_scope(app) as s:
        admin = _user(s, "admin@example.com", "ADMIN")
        moderator = _user(s, "mod@example.com", "MODERATOR")
        store = DbSettingsStore(s)

        with pytest.raises(Forbidden):
            get_system_settings(moderator, store)
        with pytest.raises(Forbidden):
            update_system_settings(s, moderator, store, {"maintenanceMode": True})

        updated = update_system_settings(s, admin, store, {"maintenanceMode": True})
        assert updated.maintenanceMode is True
        assert get_system_settings(admin, store).maintenanceMode is True
        assert reset_system_settings(s, admin, store) == DEFAULT_SETTINGS

    with session_scope(app) as s:
        actions = [e.action for e in s.query(AuditEvent).order_by(AuditEvent.id).all()]
        assert actions == ["settings.update", "settings.reset"]


def test_settings_table_is_created_on_first_use(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'fresh.db'}")
    monkeypatch.setenv("ENV", "test")
    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    tables = [t for t in Base.metadata.sorted_tables if t.name != AppSetting.__tablename__]
    Base.metadata.create_all(bind=engine, tables=tables)
    assert not inspect(engine).has_table(AppSetting.__tablename__)

    with session_scope(app) as s:
        assert DbSettingsStore(s).get() == DEFAULT_SETTINGS
    assert inspect(engine).has_table(AppSetting.__tablename__)

    with session_scope(app) as s:
        DbSettingsStore(s).set({"maintenanceMode": True})

    with session_scope(app) as s:
        assert DbSettingsStore(s).get().maintenanceMode is True
        assert s.get(AppSetting, "admin_system_settings") is not None


def test_settings_table_recreated_for_new_engine_on_same_url(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'reused.db'}")
    monkeypatch.setenv("ENV", "test")
    tables = [t for t in Base.metadata.sorted_tables if t.name != AppSetting.__tablename__]

    first = create_app()
    Base.metadata.create_all(bind=first.extensions["sqlalchemy_engine"], tables=tables)
    with session_scope(first) as s:
        DbSettingsStore(s).set({"maintenanceMode": True})
    first.extensions["sqlalchemy_engine"].dispose()
    (tmp_path / "reused.db").unlink()

    second = create_app()
    Base.metadata.create_all(bind=second.extensions["sqlalchemy_engine"], tables=tables)
    with session_scope(second) as s:
        assert DbSettingsStore(s).get() == DEFAULT_SETTINGS
