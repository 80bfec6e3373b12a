# Overview: Pytest coverage for the Drive/Sheets HTTP client and the mail sender.

import json

import httpx
import pytest

from crm.errors import DependencyError
from crm.services import mail_service
from crm.services.google_service import GoogleWorkspaceClient


def _client(handler) -> GoogleWorkspaceClient:
    return GoogleWorkspaceClient(
        "client-id", "client-secret", "refresh-token",
        timeout=5,
        session=httpx.Client(transport=httpx.MockTransport(handler)),
    )


class GoogleStub:
    """Routes MockTransport requests by host/path and records them."""

    def __init__(self, *, token_status=200, upload_status=200, permission_status=200, sheet_status=200):
        self.token_status = token_status
        self.upload_status = upload_status
        self.permission_status = permission_status
        self.sheet_status = sheet_status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "oauth2.googleapis.com":
            return httpx.Response(self.token_status, json={"access_token": "at-1"})
        if request.url.path.endswith("/permissions"):
            return httpx.Response(self.permission_status, json={})
        if request.url.path.startswith("/upload/drive"):
            return httpx.Response(self.upload_status, json={"id": "f-1", "webViewLink": "https://drive/f-1"})
        if request.url.host == "sheets.googleapis.com":
            return httpx.Response(self.sheet_status, json={})
        return httpx.Response(404)


class TestGoogleWorkspaceClient:
    def test_upload_sends_multipart_and_shares(self):
        stub = GoogleStub()
        result = _client(stub).upload_file(
            folder_id="folder-1", filename="CV_x.pdf", content=b"PDFDATA", mime_type="application/pdf"
        )

        assert result.file_id == "f-1"
        assert result.web_view_link == "https://drive/f-1"

        token_req, upload_req, perm_req = stub.requests
        assert token_req.url.host == "oauth2.googleapis.com"
        assert upload_req.headers["Authorization"] == "Bearer at-1"
        assert upload_req.headers["Content-Type"].startswith("multipart/related; boundary=")
        body = upload_req.content
        assert b'"parents": ["folder-1"]' in body
        assert b"PDFDATA" in body
        assert json.loads(perm_req.content) == {"role": "reader", "type": "anyone"}

    def test_token_is_cached(self):
        stub = GoogleStub()
        client = _client(stub)
        client.get_access_token()
        client.get_access_token()
        assert len(stub.requests) == 1

    def test_permission_failure_is_not_fatal(self):
        stub = GoogleStub(permission_status=403)
        result = _client(stub).upload_file(folder_id="f", filename="a.txt", content=b"x")
        assert result.file_id == "f-1"

    def test_token_failure_raises(self):
        with pytest.raises(DependencyError):
            _client(GoogleStub(token_status=400)).get_access_token()

    def test_upload_failure_raises(self):
        with pytest.raises(DependencyError):
            _client(GoogleStub(upload_status=500)).upload_file(folder_id="f", filename="a", content=b"x")

    def test_append_row(self):
        stub = GoogleStub()
        _client(stub).append_row(spreadsheet_id="sheet-9", values=[1, "a", None])
        sheet_req = stub.requests[-1]
        assert sheet_req.url.host == "sheets.googleapis.com"
        assert "/spreadsheets/sheet-9/values/" in str(sheet_req.url)
        assert json.loads(sheet_req.content) == {"values": [[1, "a", None]]}

    def test_append_row_failure_raises(self):
        with pytest.raises(DependencyError):
            _client(GoogleStub(sheet_status=500)).append_row(spreadsheet_id="s", values=[])

    def test_transport_error_raises(self):
        def _boom(request):
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(DependencyError):
            _client(_boom).get_access_token()

    def test_from_config_requires_credentials(self):
        with pytest.raises(DependencyError):
            GoogleWorkspaceClient.from_config({"GOOGLE_OAUTH_CLIENT_ID": "x"})


class TestMailService:
    def test_not_configured(self, app):
        with pytest.raises(DependencyError):
            mail_service.send_temporary_password(to="a@b.c", full_name="A", temp_password="Tmp1!x")

    def test_sends_via_resend(self, app, monkeypatch):
        calls = []

        def _post(url, **kwargs):
            calls.append((url, kwargs))
            return httpx.Response(200, json={"id": "m-1"}, request=httpx.Request("POST", url))

        monkeypatch.setitem(app.config, "RESEND_API_KEY", "re_test")
        monkeypatch.setitem(app.config, "CRM_FROM_EMAIL", "crm@example.com")
        monkeypatch.setattr(mail_service.httpx, "post", _post)

        mail_service.send_temporary_password(to="a@b.c", full_name="Ann", temp_password="Tmp1!xyz")

        url, kwargs = calls[0]
        assert url == mail_service.RESEND_URL
        assert kwargs["headers"]["Authorization"] == "Bearer re_test"
        assert kwargs["json"]["to"] == "a@b.c"
        assert "Tmp1!xyz" in kwargs["json"]["html"]

    def test_rejected_by_api(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "RESEND_API_KEY", "re_test")
        monkeypatch.setitem(app.config, "CRM_FROM_EMAIL", "crm@example.com")
        monkeypatch.setattr(
            mail_service.httpx, "post",
            lambda url, **kw: httpx.Response(422, text="bad sender", request=httpx.Request("POST", url)),
        )
        with pytest.raises(DependencyError):
            mail_service.send_temporary_password(to="a@b.c", full_name=None, temp_password="Tmp1!xyz")
