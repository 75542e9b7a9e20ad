from flask import Blueprint, current_app, g, jsonify

from app.alumnet.db import db_session
from app.alumnet.modules.settings.service import (
    DbSettingsStore,
    get_system_settings,
    reset_system_settings,
    update_system_settings,
)
from app.alumnet.rbac import current_principal
from app.alumnet.utils import json_body

bp = Blueprint("settings", __name__)


@bp.get("/admin/settings")
def settings_get():
    settings = get_system_settings(current_principal(), DbSettingsStore(db_session()))
    return jsonify({"settings": settings.to_dict()})


@bp.post("/admin/settings")
def settings_update():
    s = db_session()
    settings = update_system_settings(s, current_principal(), DbSettingsStore(s), json_body())
    s.commit()
    current_app.logger.info("System settings updated (request_id=%s)", getattr(g, "request_id", None))
    return jsonify({"success": True, "settings": settings.to_dict()})


@bp.post("/admin/settings/reset")
def settings_reset():
    s = db_session()
    settings = reset_system_settings(s, current_principal(), DbSettingsStore(s))
    s.commit()
    return jsonify({"success": True, "settings": settings.to_dict()})
