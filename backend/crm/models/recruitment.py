from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

APPLICATION_STATUSES = ("new", "reviewed", "shortlisted", "rejected", "hired")


class Job(db.Model):
    """Job posting. Deleting a job only unpublishes it."""
    __tablename__ = "jobs"
    __table_args__ = (
        db.UniqueConstraint("slug", name="uq_jobs_slug"),
        db.Index("ix_jobs_published", "is_published", "published_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False)
    department = db.Column(db.String(120), nullable=True)
    location_country = db.Column(db.String(120), nullable=True)
    location_city = db.Column(db.String(120), nullable=True)
    employment_type = db.Column(db.String(64), nullable=True)
    job_description_html = db.Column(db.Text, nullable=False)

    is_published = db.Column(db.Boolean, nullable=False, default=False)
    published_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self, *, include_description: bool = True) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "department": self.department,
            "location_country": self.location_country,
            "location_city": self.location_city,
            "employment_type": self.employment_type,
            "is_published": self.is_published,
            "published_at": to_utc_z(self.published_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_description:
            data["job_description_html"] = self.job_description_html
        return data


class JobApplication(db.Model):
    __tablename__ = "job_applications"
    __table_args__ = (
        db.Index("ix_job_applications_job_created", "job_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.Integer, db.ForeignKey("jobs.id"), nullable=False, index=True)
    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    education_level = db.Column(db.String(120), nullable=False)
    country = db.Column(db.String(120), nullable=False)
    city = db.Column(db.String(120), nullable=False)

    cv_drive_file_id = db.Column(db.String(255), nullable=False)
    cv_drive_link = db.Column(db.String(512), nullable=True)
    cover_drive_file_id = db.Column(db.String(255), nullable=True)
    cover_drive_link = db.Column(db.String(512), nullable=True)

    status = db.Column(db.String(32), nullable=False, default="new")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    job = db.relationship("Job", backref=db.backref("applications", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "job_id": self.job_id,
            "job_title": self.job.title if self.job else None,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "education_level": self.education_level,
            "country": self.country,
            "city": self.city,
            "cv_drive_link": self.cv_drive_link,
            "cover_drive_link": self.cover_drive_link,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
