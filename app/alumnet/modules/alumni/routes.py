from flask import Blueprint, jsonify, request

from app.alumnet.db import db_session
from app.alumnet.modules.alumni.service import (
    change_password,
    profile_to_dict,
    search_alumni,
    update_own_profile,
    user_to_dict,
)
from app.alumnet.errors import NotFound
from app.alumnet.models import User
from app.alumnet.rbac import current_principal, require_permission
from app.alumnet.utils import json_body, page_to_dict, parse_page

bp = Blueprint("alumni", __name__)


@bp.get("/alumni/search")
def alumni_search():
    args = request.args
    page = search_alumni(
        db_session(),
        current_principal(),
        dept=args.get("dept"),
        year=args.get("year"),
        city=args.get("city"),
        employer=args.get("employer"),
        skills=args.get("skills"),
        page=parse_page(args.get("page")),
        sort=args.get("sort"),
        order=args.get("order"),
    )
    return jsonify(page_to_dict(page, profile_to_dict))


@bp.get("/profile")
@require_permission("profile.edit")
def profile_get():
    user = db_session().get(User, current_principal().id)
    if user is None:
        raise NotFound("User not found.")
    return jsonify({"user": user_to_dict(user)})


@bp.post("/profile")
def profile_update():
    s = db_session()
    user = update_own_profile(s, current_principal(), json_body())
    s.commit()
    return jsonify({"success": True, "user": user_to_dict(user)})


@bp.post("/profile/password")
def profile_password():
    payload = json_body()
    s = db_session()
    change_password(
        s,
        current_principal(),
        payload.get("currentPassword"),
        payload.get("newPassword"),
        payload.get("confirmPassword"),
    )
    s.commit()
    return jsonify({"success": True, "message": "Password updated."})
