from flask import Blueprint, jsonify, request

from app.alumnet.db import db_session
from app.alumnet.modules.accomplishments.service import accomplishment_to_dict
from app.alumnet.modules.jobs.service import job_to_dict
from app.alumnet.modules.moderation.service import (
    approve_accomplishment,
    approve_job,
    list_pending_accomplishments,
    list_pending_jobs,
    reject_accomplishment,
    reject_job,
)
from app.alumnet.rbac import current_principal
from app.alumnet.utils import page_to_dict, parse_page

bp = Blueprint("moderation", __name__)


@bp.get("/moderation/jobs")
def pending_jobs():
    page = list_pending_jobs(db_session(), current_principal(), parse_page(request.args.get("page")))
    return jsonify(page_to_dict(page, job_to_dict))


@bp.get("/moderation/accomplishments")
def pending_accomplishments():
    page = list_pending_accomplishments(db_session(), current_principal(), parse_page(request.args.get("page")))
    return jsonify(page_to_dict(page, accomplishment_to_dict))


@bp.post("/moderation/jobs/<int:job_id>/approve")
def job_approve(job_id: int):
    s = db_session()
    job = approve_job(s, job_id, current_principal())
    s.commit()
    return jsonify({"success": True, "job": job_to_dict(job)})


@bp.post("/moderation/jobs/<int:job_id>/reject")
def job_reject(job_id: int):
    s = db_session()
    job = reject_job(s, job_id, current_principal())
    s.commit()
    return jsonify({"success": True, "job": job_to_dict(job) if job else None})


@bp.post("/moderation/accomplishments/<int:accomplishment_id>/approve")
def accomplishment_approve(accomplishment_id: int):
    s = db_session()
    item = approve_accomplishment(s, accomplishment_id, current_principal())
    s.commit()
    return jsonify({"success": True, "accomplishment": accomplishment_to_dict(item)})


@bp.post("/moderation/accomplishments/<int:accomplishment_id>/reject")
def accomplishment_reject(accomplishment_id: int):
    s = db_session()
    reject_accomplishment(s, accomplishment_id, current_principal())
    s.commit()
    return jsonify({"success": True})
