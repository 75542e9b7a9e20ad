from flask import Blueprint, jsonify

from app.alumnet.db import db_session
from app.alumnet.modules.dashboard.service import admin_overview, member_overview, moderation_overview
from app.alumnet.rbac import current_principal

bp = Blueprint("dashboard", __name__)


@bp.get("/dashboard/admin")
def dashboard_admin():
    return jsonify(admin_overview(db_session(), current_principal()))


@bp.get("/dashboard/moderation")
def dashboard_moderation():
    return jsonify(moderation_overview(db_session(), current_principal()))


@bp.get("/dashboard/member")
def dashboard_member():
    return jsonify(member_overview(db_session(), current_principal()))
