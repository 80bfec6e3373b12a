# Overview: Flask API routes for recruitment; public job board and application intake plus admin review.

"""
Recruitment routes.

PUBLIC (no auth):
- GET  /jobs, GET /jobs/<slug>: published jobs only
- POST /apply: multipart form with `cv` (required) and `cover` (optional);
  files go to Google Drive, the row to the database, a summary to Sheets

ADMIN (main role): job CRUD and application review.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_main
from ..services import recruitment_service
from ..services.recruitment_service import UploadedFile
from ..validation import json_body, parse_filter_id

recruitment_bp = Blueprint("recruitment", __name__, url_prefix="/api/recruitment")


def _uploaded(field: str) -> UploadedFile | None:
    storage = request.files.get(field)
    if storage is None or not storage.filename:
        return None
    return UploadedFile(
        filename=storage.filename,
        content=storage.read(),
        mimetype=storage.mimetype,
    )


@recruitment_bp.get("/jobs")
def public_jobs_route():
    jobs = recruitment_service.list_public_jobs()
    return jsonify({"ok": True, "jobs": [j.to_dict(include_description=False) for j in jobs]}), 200


@recruitment_bp.get("/jobs/<slug>")
def public_job_route(slug: str):
    job = recruitment_service.get_public_job(slug)
    return jsonify({"ok": True, "job": job.to_dict()}), 200


@recruitment_bp.post("/apply")
def apply_route():
    """
    Multipart fields: job_id, first_name, last_name, email, education_level,
    country, city; files: cv, cover.
    """
    application = recruitment_service.submit_application(
        request.form,
        cv=_uploaded("cv"),
        cover=_uploaded("cover"),
    )
    current_app.logger.info("Application %s received for job %s", application.id, application.job_id)
    return jsonify({"ok": True, "application_id": application.id}), 201


@recruitment_bp.get("/admin/jobs")
@require_auth
@require_main
def admin_jobs_route():
    jobs = recruitment_service.list_admin_jobs()
    return jsonify({"ok": True, "jobs": [j.to_dict() for j in jobs]}), 200


@recruitment_bp.post("/jobs")
@require_auth
@require_main
def create_job_route():
    job = recruitment_service.create_job(json_body(), user_id=g.current_user.id)
    return jsonify({"ok": True, "job": job.to_dict()}), 201


@recruitment_bp.put("/jobs/<int:job_id>")
@require_auth
@require_main
def update_job_route(job_id: int):
    job = recruitment_service.update_job(job_id, json_body())
    return jsonify({"ok": True, "job": job.to_dict()}), 200


@recruitment_bp.delete("/jobs/<int:job_id>")
@require_auth
@require_main
def unpublish_job_route(job_id: int):
    """Jobs are never hard-deleted; applications keep pointing at them."""
    job = recruitment_service.unpublish_job(job_id)
    return jsonify({"ok": True, "job": job.to_dict()}), 200


@recruitment_bp.get("/applications")
@require_auth
@require_main
def list_applications_route():
    job_id = parse_filter_id(request.args.get("job_id"), "job_id")
    applications = recruitment_service.list_applications(job_id)
    return jsonify({"ok": True, "applications": [a.to_dict() for a in applications]}), 200


@recruitment_bp.patch("/applications/<int:application_id>")
@require_auth
@require_main
def update_application_route(application_id: int):
    data = json_body()
    application = recruitment_service.update_application_status(application_id, data.get("status"))
    return jsonify({"ok": True, "application": application.to_dict()}), 200
