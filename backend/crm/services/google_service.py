# Overview: Google Drive / Sheets access over plain HTTPS using an OAuth refresh token.

"""
Google Workspace client for the recruitment sinks.

- Drive: multipart upload into a folder, then "anyone with the link can
  read" (best-effort; org policy may forbid it).
- Sheets: append one row to a range.

Access tokens come from the refresh-token grant; the token is cached on
the client instance, which lives for one request.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from ..errors import DependencyError

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
DRIVE_UPLOAD_URL = (
    "https://www.googleapis.com/upload/drive/v3/files"
    "?uploadType=multipart&fields=id,webViewLink&supportsAllDrives=true"
)
DRIVE_PERMISSIONS_URL = "https://www.googleapis.com/drive/v3/files/{file_id}/permissions?supportsAllDrives=true"
SHEETS_APPEND_URL = (
    "https://sheets.googleapis.com/v4/spreadsheets/{spreadsheet_id}/values/{range}:append"
    "?valueInputOption=USER_ENTERED"
)


@dataclass(frozen=True)
class DriveFile:
    file_id: str
    web_view_link: str


def _body_excerpt(resp) -> str:
    try:
        return json.dumps(resp.json())[:500]
    except ValueError:
        return (resp.text or "")[:500]


class GoogleWorkspaceClient:
    """Thin Drive/Sheets client. All failures surface as DependencyError."""

    def __init__(self, client_id: str, client_secret: str, refresh_token: str, *, timeout: int = 30, session=None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.timeout = timeout
        self.http = session or httpx.Client()
        self._access_token = None

    @classmethod
    def from_config(cls, config) -> "GoogleWorkspaceClient":
        client_id = config.get("GOOGLE_OAUTH_CLIENT_ID")
        client_secret = config.get("GOOGLE_OAUTH_CLIENT_SECRET")
        refresh_token = config.get("GOOGLE_OAUTH_REFRESH_TOKEN")
        if not all([client_id, client_secret, refresh_token]):
            raise DependencyError(
                "Missing Google OAuth configuration. Set GOOGLE_OAUTH_CLIENT_ID, "
                "GOOGLE_OAUTH_CLIENT_SECRET and GOOGLE_OAUTH_REFRESH_TOKEN"
            )
        return cls(client_id, client_secret, refresh_token, timeout=config.get("HTTP_TIMEOUT_SECONDS", 30))

    def _request(self, method: str, url: str, what: str, **kwargs):
        try:
            return self.http.request(method, url, timeout=self.timeout, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("%s request failed: %s", what, exc)
            raise DependencyError(f"{what} failed") from exc

    def get_access_token(self) -> str:
        if self._access_token:
            return self._access_token

        resp = self._request(
            "POST",
            GOOGLE_TOKEN_URL,
            "Google token exchange",
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": self.refresh_token,
                "grant_type": "refresh_token",
            },
        )
        token = None
        if resp.is_success:
            try:
                token = resp.json().get("access_token")
            except ValueError:
                token = None
        if not token:
            logger.error("Google token exchange failed (%s): %s", resp.status_code, _body_excerpt(resp))
            raise DependencyError(f"Google token exchange failed ({resp.status_code})")

        self._access_token = token
        return token

    def _auth_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.get_access_token()}"}

    def upload_file(self, *, folder_id: str, filename: str, content: bytes, mime_type: str | None = None) -> DriveFile:
        """Upload bytes into `folder_id` and try to make the file link-readable."""
        boundary = f"crm_{uuid.uuid4().hex}"
        metadata = json.dumps({"name": filename, "parents": [folder_id]})
        body = b"".join([
            f"--{boundary}\r\nContent-Type: application/json; charset=UTF-8\r\n\r\n{metadata}\r\n".encode("utf-8"),
            f"--{boundary}\r\nContent-Type: {mime_type or 'application/octet-stream'}\r\n\r\n".encode("utf-8"),
            content,
            f"\r\n--{boundary}--".encode("utf-8"),
        ])
        headers = self._auth_headers()
        headers["Content-Type"] = f"multipart/related; boundary={boundary}"

        resp = self._request("POST", DRIVE_UPLOAD_URL, "Drive upload", content=body, headers=headers)
        data = {}
        if resp.is_success:
            try:
                data = resp.json()
            except ValueError:
                data = {}
        file_id = data.get("id")
        if not file_id:
            logger.error("Drive upload failed (%s): %s", resp.status_code, _body_excerpt(resp))
            raise DependencyError(f"Drive upload failed ({resp.status_code})")

        self.share_with_anyone(file_id)
        return DriveFile(
            file_id=file_id,
            web_view_link=data.get("webViewLink") or f"https://drive.google.com/file/d/{file_id}/view",
        )

    def share_with_anyone(self, file_id: str) -> bool:
        """Best-effort reader permission. Returns False (and logs) when refused."""
        try:
            resp = self.http.request(
                "POST",
                DRIVE_PERMISSIONS_URL.format(file_id=file_id),
                json={"role": "reader", "type": "anyone"},
                headers=self._auth_headers(),
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning("Drive permission request failed for %s: %s", file_id, exc)
            return False
        if not resp.is_success:
            logger.warning("Drive permission set failed for %s (%s): %s", file_id, resp.status_code, _body_excerpt(resp))
            return False
        return True

    def append_row(self, *, spreadsheet_id: str, values: list, range_: str = "Sheet1!A:K") -> None:
        url = SHEETS_APPEND_URL.format(spreadsheet_id=spreadsheet_id, range=quote(range_, safe=""))
        resp = self._request(
            "POST", url, "Sheets append", json={"values": [values]}, headers=self._auth_headers()
        )
        if not resp.is_success:
            logger.error("Sheets append failed (%s): %s", resp.status_code, _body_excerpt(resp))
            raise DependencyError(f"Sheets append failed ({resp.status_code})")
