from flask import Blueprint, jsonify

from app.alumnet.db import db_session
from app.alumnet.modules.accomplishments.service import submit_accomplishment
from app.alumnet.modules.settings.service import DbSettingsStore
from app.alumnet.rbac import current_principal
from app.alumnet.utils import json_body

bp = Blueprint("accomplishments", __name__)


@bp.post("/accomplishments")
def accomplishments_submit():
    s = db_session()
    result = submit_accomplishment(s, current_principal(), json_body(), DbSettingsStore(s))
    s.commit()
    body = {
        "success": True,
        "message": result.message,
        "accomplishment": {"id": result.id, "title": result.title},
    }
    return jsonify(body), 201
