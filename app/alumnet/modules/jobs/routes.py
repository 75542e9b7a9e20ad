from flask import Blueprint, jsonify

from app.alumnet.db import db_session
from app.alumnet.modules.jobs.service import job_to_dict, list_my_jobs, list_visible_jobs, submit_job
from app.alumnet.modules.settings.service import DbSettingsStore
from app.alumnet.rbac import current_principal
from app.alumnet.utils import json_body

bp = Blueprint("jobs", __name__)


@bp.post("/jobs")
def jobs_submit():
    s = db_session()
    result = submit_job(s, current_principal(), json_body(), DbSettingsStore(s))
    s.commit()
    body = {"success": True, "message": result.message, "job": {"id": result.id, "title": result.title}}
    return jsonify(body), 201


@bp.get("/jobs")
def jobs_board():
    jobs = list_visible_jobs(db_session(), current_principal())
    return jsonify({"jobs": [job_to_dict(j) for j in jobs]})


@bp.get("/jobs/mine")
def jobs_mine():
    jobs = list_my_jobs(db_session(), current_principal())
    return jsonify({"jobs": [job_to_dict(j) for j in jobs]})
