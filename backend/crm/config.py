# backend/crm/config.py
from __future__ import annotations
import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the instance by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///crm.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session lifetimes (hours)
    SESSION_ABSOLUTE_TIMEOUT_HOURS = _int_env("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24)
    SESSION_IDLE_TIMEOUT_HOURS = _int_env("SESSION_IDLE_TIMEOUT_HOURS", 8)

    # Batch merge: which purchase date survives when a lot is received twice
    BATCH_MERGE_DATE_POLICY = os.environ.get("BATCH_MERGE_DATE_POLICY", "earliest")
    EXPIRING_SOON_DAYS = _int_env("EXPIRING_SOON_DAYS", 90)

    # Roles allowed to see purchase prices in read responses
    PURCHASE_PRICE_ROLES = frozenset({"main", "doctor"})

    # One-shot bootstrap endpoint; disabled when unset
    SETUP_TOKEN = os.environ.get("SETUP_TOKEN")

    # Recruitment sinks (Drive upload, Sheets log)
    GOOGLE_OAUTH_CLIENT_ID = os.environ.get("GOOGLE_OAUTH_CLIENT_ID")
    GOOGLE_OAUTH_CLIENT_SECRET = os.environ.get("GOOGLE_OAUTH_CLIENT_SECRET")
    GOOGLE_OAUTH_REFRESH_TOKEN = os.environ.get("GOOGLE_OAUTH_REFRESH_TOKEN")
    GOOGLE_DRIVE_FOLDER_ID = os.environ.get("GOOGLE_DRIVE_FOLDER_ID")
    GOOGLE_SHEET_ID = os.environ.get("GOOGLE_SHEET_ID")

    # Password reset mail
    RESEND_API_KEY = os.environ.get("RESEND_API_KEY")
    CRM_FROM_EMAIL = os.environ.get("CRM_FROM_EMAIL")

    # Timeout for outbound HTTP calls (Google, mail)
    HTTP_TIMEOUT_SECONDS = _int_env("HTTP_TIMEOUT_SECONDS", 30)

    MAX_CONTENT_LENGTH = _int_env("MAX_UPLOAD_MB", 10) * 1024 * 1024

    CORS_ALLOWED_ORIGINS = frozenset(
        o.strip()
        for o in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if o.strip()
    )


MERGE_DATE_POLICIES = {"earliest", "latest"}


def check_config(config) -> None:
    """Fail fast on settings the services cannot interpret."""
    policy = config.get("BATCH_MERGE_DATE_POLICY")
    if policy not in MERGE_DATE_POLICIES:
        raise ValueError(
            f"BATCH_MERGE_DATE_POLICY must be one of {sorted(MERGE_DATE_POLICIES)}, got {policy!r}"
        )
