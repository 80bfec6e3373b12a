# Overview: Service-layer operations for recruitment; job postings and applications with Drive/Sheets sinks.

"""
Recruitment Service

Jobs are never deleted, only unpublished. Applications are accepted for
published jobs only.

Apply flow:
1. Validate fields and the required CV file (nothing written on failure).
2. Upload CV (and optional cover letter) to Drive. Failure here is a
   DependencyError and no application row is created.
3. Insert and commit the application row.
4. Append a row to the tracking sheet when GOOGLE_SHEET_ID is set. This is
   best-effort: failure is logged and the committed application stands.
"""

import logging
import re
from dataclasses import dataclass

from flask import current_app

from ..errors import DependencyError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Job, JobApplication
from ..models.recruitment import APPLICATION_STATUSES
from ..time_utils import to_utc_z, utcnow
from ..validation import ModelValidationPolicy, require_id, validate_payload
from .google_service import GoogleWorkspaceClient

logger = logging.getLogger(__name__)

JOB_POLICY = ModelValidationPolicy(
    writable_fields={
        "title",
        "department",
        "location_country",
        "location_city",
        "employment_type",
        "job_description_html",
        "is_published",
    },
    required_on_create={"title", "job_description_html"},
)

APPLICATION_FIELDS = ("first_name", "last_name", "email", "education_level", "country", "city")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content: bytes
    mimetype: str | None = None


def get_google_client() -> GoogleWorkspaceClient:
    return GoogleWorkspaceClient.from_config(current_app.config)


def slugify(title: str) -> str:
    slug = str(title or "").strip().lower()
    slug = re.sub(r"[^\w\s-]", "", slug).strip()
    slug = re.sub(r"\s+", "-", slug)
    return re.sub(r"-+", "-", slug)


def _unique_slug(base: str) -> str:
    taken = {
        s for (s,) in db.session.query(Job.slug).filter(
            db.or_(Job.slug == base, Job.slug.like(f"{base}-%"))
        ).all()
    }
    if base not in taken:
        return base
    n = 1
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


# -- Jobs --

def list_public_jobs() -> list[Job]:
    return (
        db.session.query(Job)
        .filter(Job.is_published.is_(True))
        .order_by(Job.published_at.desc(), Job.id.desc())
        .all()
    )


def get_public_job(slug: str) -> Job:
    job = db.session.query(Job).filter(Job.slug == slug, Job.is_published.is_(True)).first()
    if job is None:
        raise NotFoundError("Job not found")
    return job


def list_admin_jobs() -> list[Job]:
    return db.session.query(Job).order_by(Job.created_at.desc(), Job.id.desc()).all()


def get_job(job_id: int) -> Job:
    job = db.session.get(Job, job_id)
    if job is None:
        raise NotFoundError("Job not found")
    return job


def create_job(payload: dict, *, user_id: int | None = None) -> Job:
    patch = validate_payload(model=Job, payload=payload, policy=JOB_POLICY, partial=False)
    base = slugify(patch["title"])
    if not base:
        raise ValidationError("title cannot produce slug")

    job = Job(**patch, slug=_unique_slug(base), created_by_user_id=user_id)
    if job.is_published:
        job.published_at = utcnow()
    db.session.add(job)
    db.session.commit()
    return job


def update_job(job_id: int, payload: dict) -> Job:
    """Partial update. published_at is stamped the first time a job goes live."""
    job = get_job(job_id)
    patch = validate_payload(model=Job, payload=payload, policy=JOB_POLICY, partial=True)
    for key, value in patch.items():
        setattr(job, key, value)
    if job.is_published and job.published_at is None:
        job.published_at = utcnow()
    db.session.commit()
    return job


def unpublish_job(job_id: int) -> Job:
    job = get_job(job_id)
    job.is_published = False
    db.session.commit()
    return job


# -- Applications --

def _clean_application_fields(fields) -> dict:
    cleaned = {name: str(fields.get(name) or "").strip() for name in APPLICATION_FIELDS}
    missing = [name for name in APPLICATION_FIELDS if not cleaned[name]]
    if fields.get("job_id") in (None, ""):
        missing.insert(0, "job_id")
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    for name, value in cleaned.items():
        if len(value) > 255:
            raise ValidationError(f"{name} exceeds max length 255")
    if not _EMAIL_RE.match(cleaned["email"]):
        raise ValidationError("email is invalid")
    cleaned["email"] = cleaned["email"].lower()
    cleaned["job_id"] = require_id(fields.get("job_id"), "job_id")
    return cleaned


def _drive_name(prefix: str, safe_name: str, stamp: str, original: str | None) -> str:
    return f"{prefix}_{safe_name}_{stamp}_{original or 'file'}"


def submit_application(fields, cv: UploadedFile | None, cover: UploadedFile | None = None) -> JobApplication:
    data = _clean_application_fields(fields)
    if cv is None or not cv.content:
        raise ValidationError("cv file is required")

    job = db.session.query(Job).filter(Job.id == data["job_id"], Job.is_published.is_(True)).first()
    if job is None:
        raise NotFoundError("Job not found or unpublished")

    folder_id = current_app.config.get("GOOGLE_DRIVE_FOLDER_ID")
    if not folder_id:
        raise DependencyError("Missing GOOGLE_DRIVE_FOLDER_ID")

    google = get_google_client()
    stamp = utcnow().isoformat(timespec="milliseconds").replace(":", "-").replace(".", "-") + "Z"
    safe_name = re.sub(r"[^\w-]+", "_", f"{data['first_name']}_{data['last_name']}")

    cv_file = google.upload_file(
        folder_id=folder_id,
        filename=_drive_name("CV", safe_name, stamp, cv.filename),
        content=cv.content,
        mime_type=cv.mimetype,
    )
    cover_file = None
    if cover is not None and cover.content:
        cover_file = google.upload_file(
            folder_id=folder_id,
            filename=_drive_name("Cover", safe_name, stamp, cover.filename),
            content=cover.content,
            mime_type=cover.mimetype,
        )

    application = JobApplication(
        **data,
        cv_drive_file_id=cv_file.file_id,
        cv_drive_link=cv_file.web_view_link,
        cover_drive_file_id=cover_file.file_id if cover_file else None,
        cover_drive_link=cover_file.web_view_link if cover_file else None,
        status="new",
        created_at=utcnow(),
    )
    db.session.add(application)
    db.session.commit()

    _log_to_sheet(google, application)
    return application


def _log_to_sheet(google: GoogleWorkspaceClient, application: JobApplication) -> None:
    sheet_id = current_app.config.get("GOOGLE_SHEET_ID")
    if not sheet_id:
        return
    row = [
        application.id,
        application.job_id,
        application.first_name,
        application.last_name,
        application.education_level,
        application.country,
        application.city,
        application.cv_drive_link or "",
        application.cover_drive_link or "",
        application.status,
        to_utc_z(application.created_at),
    ]
    try:
        google.append_row(spreadsheet_id=sheet_id, values=row)
    except DependencyError as exc:
        logger.warning("Sheet append skipped for application %s: %s", application.id, exc.message)


def list_applications(job_id: int | None = None, limit: int = 200) -> list[JobApplication]:
    query = db.session.query(JobApplication)
    if job_id:
        query = query.filter(JobApplication.job_id == job_id)
    return query.order_by(JobApplication.created_at.desc(), JobApplication.id.desc()).limit(limit).all()


def update_application_status(application_id: int, status) -> JobApplication:
    status = str(status or "").strip().lower()
    if status not in APPLICATION_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(APPLICATION_STATUSES)}")
    application = db.session.get(JobApplication, application_id)
    if application is None:
        raise NotFoundError("Application not found")
    application.status = status
    db.session.commit()
    return application
