# Overview: Pytest coverage for the job board, application intake and the Drive/Sheets sinks.

import io

import pytest

from crm.errors import DependencyError
from crm.models import Job, JobApplication
from crm.services import recruitment_service
from crm.services.google_service import DriveFile


class FakeGoogle:
    """Stands in for GoogleWorkspaceClient; records uploads and sheet rows."""

    def __init__(self, *, fail_upload=False, fail_sheet=False):
        self.fail_upload = fail_upload
        self.fail_sheet = fail_sheet
        self.uploads = []
        self.rows = []

    def upload_file(self, *, folder_id, filename, content, mime_type=None):
        if self.fail_upload:
            raise DependencyError("Drive upload failed (403)")
        self.uploads.append({"folder_id": folder_id, "filename": filename, "content": content})
        file_id = f"file-{len(self.uploads)}"
        return DriveFile(file_id=file_id, web_view_link=f"https://drive.example/{file_id}")

    def append_row(self, *, spreadsheet_id, values, range_="Sheet1!A:K"):
        if self.fail_sheet:
            raise DependencyError("Sheets append failed (500)")
        self.rows.append((spreadsheet_id, values))


@pytest.fixture
def fake_google(monkeypatch):
    fake = FakeGoogle()
    monkeypatch.setattr(recruitment_service, "get_google_client", lambda: fake)
    return fake


@pytest.fixture
def published_job(db_session):
    return recruitment_service.create_job(
        {"title": "Field Sales Rep", "job_description_html": "<p>Drive around</p>", "is_published": True}
    )


def _form(job, **overrides):
    data = {
        "job_id": str(job.id),
        "first_name": "Maria",
        "last_name": "Lopez",
        "email": "Maria@Example.com",
        "education_level": "Bachelor",
        "country": "ES",
        "city": "Madrid",
        "cv": (io.BytesIO(b"%PDF-1.4 cv"), "cv.pdf", "application/pdf"),
    }
    data.update(overrides)
    return data


class TestJobsAdmin:
    def test_slug_is_unique(self, client, main_headers):
        first = client.post(
            "/api/recruitment/jobs",
            json={"title": "Pharmacist (Senior)!", "job_description_html": "<p>x</p>"},
            headers=main_headers,
        ).json["job"]
        second = client.post(
            "/api/recruitment/jobs",
            json={"title": "Pharmacist Senior", "job_description_html": "<p>y</p>"},
            headers=main_headers,
        ).json["job"]
        assert first["slug"] == "pharmacist-senior"
        assert second["slug"] == "pharmacist-senior-1"

    def test_publish_and_unpublish(self, client, main_headers):
        job = client.post(
            "/api/recruitment/jobs",
            json={"title": "Driver", "job_description_html": "<p>x</p>"},
            headers=main_headers,
        ).json["job"]
        assert job["is_published"] is False
        assert client.get("/api/recruitment/jobs").json["jobs"] == []

        updated = client.put(
            f"/api/recruitment/jobs/{job['id']}", json={"is_published": True}, headers=main_headers
        ).json["job"]
        assert updated["published_at"] is not None

        public = client.get("/api/recruitment/jobs").json["jobs"]
        assert [j["slug"] for j in public] == ["driver"]
        assert "job_description_html" not in public[0]
        detail = client.get("/api/recruitment/jobs/driver").json["job"]
        assert detail["job_description_html"] == "<p>x</p>"

        client.delete(f"/api/recruitment/jobs/{job['id']}", headers=main_headers)
        assert client.get("/api/recruitment/jobs/driver").status_code == 404
        admin = client.get("/api/recruitment/admin/jobs", headers=main_headers).json["jobs"]
        assert admin[0]["is_published"] is False

    def test_description_required(self, client, main_headers):
        resp = client.post("/api/recruitment/jobs", json={"title": "X"}, headers=main_headers)
        assert resp.status_code == 400


class TestApply:
    def test_application_uploaded_and_logged(self, client, db_session, fake_google, published_job):
        resp = client.post(
            "/api/recruitment/apply",
            data=_form(published_job, cover=(io.BytesIO(b"hello"), "cover.txt", "text/plain")),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 201

        application = db_session.get(JobApplication, resp.json["application_id"])
        assert application.email == "maria@example.com"
        assert application.status == "new"
        assert application.cv_drive_link == "https://drive.example/file-1"
        assert application.cover_drive_file_id == "file-2"

        cv_upload, cover_upload = fake_google.uploads
        assert cv_upload["folder_id"] == "folder-1"
        assert cv_upload["filename"].startswith("CV_Maria_Lopez_")
        assert cv_upload["filename"].endswith("_cv.pdf")
        assert cover_upload["filename"].startswith("Cover_Maria_Lopez_")

        sheet_id, row = fake_google.rows[0]
        assert sheet_id == "sheet-1"
        assert len(row) == 11
        assert row[0] == application.id

    def test_cv_required(self, client, db_session, fake_google, published_job):
        form = _form(published_job)
        form.pop("cv")
        resp = client.post("/api/recruitment/apply", data=form, content_type="multipart/form-data")
        assert resp.status_code == 400
        assert fake_google.uploads == []

    def test_missing_fields_listed(self, client, db_session, fake_google, published_job):
        resp = client.post(
            "/api/recruitment/apply",
            data=_form(published_job, city="", email=""),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert resp.json["error"] == "Missing required fields: email, city"

    def test_unpublished_job_404(self, client, db_session, fake_google, published_job):
        recruitment_service.unpublish_job(published_job.id)
        resp = client.post("/api/recruitment/apply", data=_form(published_job), content_type="multipart/form-data")
        assert resp.status_code == 404

    def test_drive_failure_is_500_without_row(self, client, db_session, monkeypatch, published_job):
        monkeypatch.setattr(recruitment_service, "get_google_client", lambda: FakeGoogle(fail_upload=True))
        resp = client.post("/api/recruitment/apply", data=_form(published_job), content_type="multipart/form-data")
        assert resp.status_code == 500
        assert resp.json == {"ok": False, "error": "External service error"}
        assert db_session.query(JobApplication).count() == 0

    def test_missing_drive_folder_is_500(self, app, client, db_session, fake_google, published_job, monkeypatch):
        monkeypatch.setitem(app.config, "GOOGLE_DRIVE_FOLDER_ID", None)
        resp = client.post("/api/recruitment/apply", data=_form(published_job), content_type="multipart/form-data")
        assert resp.status_code == 500
        assert db_session.query(JobApplication).count() == 0

    def test_sheet_failure_keeps_application(self, client, db_session, monkeypatch, published_job):
        fake = FakeGoogle(fail_sheet=True)
        monkeypatch.setattr(recruitment_service, "get_google_client", lambda: fake)
        resp = client.post("/api/recruitment/apply", data=_form(published_job), content_type="multipart/form-data")
        assert resp.status_code == 201
        assert db_session.query(JobApplication).count() == 1

    def test_upload_too_large_413(self, app, client, db_session, published_job, monkeypatch):
        monkeypatch.setitem(app.config, "MAX_CONTENT_LENGTH", 1024)
        form = _form(published_job, cv=(io.BytesIO(b"x" * 4096), "cv.pdf", "application/pdf"))
        resp = client.post("/api/recruitment/apply", data=form, content_type="multipart/form-data")
        assert resp.status_code == 413
        assert resp.json == {"ok": False, "error": "Upload too large"}


class TestApplicationsAdmin:
    @pytest.fixture
    def application(self, db_session, fake_google, published_job):
        return recruitment_service.submit_application(
            {
                "job_id": published_job.id,
                "first_name": "Tom",
                "last_name": "Berg",
                "email": "tom@example.com",
                "education_level": "Master",
                "country": "NL",
                "city": "Delft",
            },
            cv=recruitment_service.UploadedFile("cv.pdf", b"cv", "application/pdf"),
        )

    def test_list_and_filter(self, client, main_headers, application, published_job):
        items = client.get(
            f"/api/recruitment/applications?job_id={published_job.id}", headers=main_headers
        ).json["applications"]
        assert [a["id"] for a in items] == [application.id]
        assert items[0]["job_title"] == "Field Sales Rep"

    def test_status_update(self, client, main_headers, application):
        resp = client.patch(
            f"/api/recruitment/applications/{application.id}",
            json={"status": "Shortlisted"},
            headers=main_headers,
        )
        assert resp.status_code == 200
        assert resp.json["application"]["status"] == "shortlisted"

        bad = client.patch(
            f"/api/recruitment/applications/{application.id}",
            json={"status": "maybe"},
            headers=main_headers,
        )
        assert bad.status_code == 400

    def test_unknown_application_404(self, client, main_headers):
        resp = client.patch("/api/recruitment/applications/999", json={"status": "new"}, headers=main_headers)
        assert resp.status_code == 404
