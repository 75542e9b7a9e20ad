"""
System settings: policy flags consulted by registration and content submission.

Services never read settings from a global; they receive a SettingsProvider.
DbSettingsStore is the production provider (one JSON row, read on every call,
defaults when the row is absent). InMemorySettingsStore keeps the same
contract without a database.
"""
from __future__ import annotations

import logging
import weakref
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping, Protocol, runtime_checkable

from app.alumnet.audit import record_event
from app.alumnet.rbac import authorize

from .models import AppSetting

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session
    from app.alumnet.session import Principal

logger = logging.getLogger(__name__)

SETTINGS_KEY = "admin_system_settings"


@dataclass(frozen=True)
class SystemSettings:
    allowPublicRegistration: bool = True
    defaultNewUserVerified: bool = False
    maintenanceMode: bool = False
    requireApprovalForJobs: bool = True
    requireApprovalForAccomplishments: bool = True
    adminAutoApproveOwnContent: bool = True

    @classmethod
    def from_mapping(cls, source: Any) -> "SystemSettings":
        """
        Build settings from an untrusted mapping. Missing or non-boolean values
        fall back to the defaults; unknown keys are ignored.
        """
        data = source if isinstance(source, Mapping) else {}
        values = {}
        for f in fields(cls):
            v = data.get(f.name)
            values[f.name] = v if isinstance(v, bool) else f.default
        return cls(**values)

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)


DEFAULT_SETTINGS = SystemSettings()


@runtime_checkable
class SettingsProvider(Protocol):
    def get(self) -> SystemSettings:
        ...


def merge_settings(current: SystemSettings, patch: Mapping[str, Any] | None) -> SystemSettings:
    merged = current.to_dict()
    merged.update(dict(patch or {}))
    return SystemSettings.from_mapping(merged)


class InMemorySettingsStore:
    def __init__(self, initial: SystemSettings | None = None) -> None:
        self._value = initial

    def get(self) -> SystemSettings:
        return self._value if self._value is not None else DEFAULT_SETTINGS

    def set(self, patch: Mapping[str, Any] | None) -> SystemSettings:
        self._value = merge_settings(self.get(), patch)
        return self._value

    def reset(self) -> SystemSettings:
        self._value = DEFAULT_SETTINGS
        return self._value


_ensured_engines: "weakref.WeakSet[Engine]" = weakref.WeakSet()


def ensure_settings_table(s: "Session") -> None:
    """Create app_settings on first use (first-run databases may not have it yet)."""
    engine = s.get_bind()
    if engine in _ensured_engines:
        return
    AppSetting.__table__.create(bind=engine, checkfirst=True)
    _ensured_engines.add(engine)


class DbSettingsStore:
    """
    Settings persisted as a single JSON row keyed by SETTINGS_KEY.
    Writes are upserts; concurrent admins are last-write-wins.
    """

    def __init__(self, s: "Session") -> None:
        self.s = s

    def _row(self) -> AppSetting | None:
        ensure_settings_table(self.s)
        return self.s.get(AppSetting, SETTINGS_KEY, populate_existing=True)

    def get(self) -> SystemSettings:
        row = self._row()
        if row is None:
            return DEFAULT_SETTINGS
        return SystemSettings.from_mapping(row.value)

    def save(self, settings: SystemSettings) -> SystemSettings:
        row = self._row()
        if row is None:
            row = AppSetting(key=SETTINGS_KEY, value=settings.to_dict())
            self.s.add(row)
        else:
            row.value = settings.to_dict()
        row.updated_at = datetime.utcnow()
        self.s.flush()
        return settings

    def set(self, patch: Mapping[str, Any] | None) -> SystemSettings:
        return self.save(merge_settings(self.get(), patch))

    def reset(self) -> SystemSettings:
        return self.save(DEFAULT_SETTINGS)


def get_system_settings(principal: "Principal | None", store: SettingsProvider) -> SystemSettings:
    authorize(principal, "settings.view")
    return store.get()


def update_system_settings(
    s: "Session",
    principal: "Principal | None",
    store: DbSettingsStore | InMemorySettingsStore,
    patch: Mapping[str, Any] | None,
) -> SystemSettings:
    actor = authorize(principal, "settings.edit")
    before = store.get()
    after = store.set(patch)
    changes = {
        k: {"old": v, "new": getattr(after, k)}
        for k, v in before.to_dict().items()
        if getattr(after, k) != v
    }
    if after.maintenanceMode != before.maintenanceMode:
        logger.warning("Maintenance mode %s by user_id=%s", "enabled" if after.maintenanceMode else "disabled", actor.id)
    record_event(
        s,
        actor=actor,
        action="settings.update",
        entity_type="SystemSettings",
        entity_id=SETTINGS_KEY,
        metadata={"changes": changes},
    )
    return after


def reset_system_settings(
    s: "Session",
    principal: "Principal | None",
    store: DbSettingsStore | InMemorySettingsStore,
) -> SystemSettings:
    actor = authorize(principal, "settings.edit")
    settings = store.reset()
    record_event(s, actor=actor, action="settings.reset", entity_type="SystemSettings", entity_id=SETTINGS_KEY)
    return settings

