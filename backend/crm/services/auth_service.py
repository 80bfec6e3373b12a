# Overview: Service-layer operations for auth; password hashing, credential checks, roles and bootstrap.

"""
Authentication Service

WHY: Every mutation must be attributable. Uses bcrypt for password
hashing and validates password strength for user-chosen passwords.

ROLES:
- main: full access, the only role allowed to mutate data
- doctor: read access including purchase prices
- general: read access, purchase prices redacted

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, upper, lower, digit and special char required
- Session tokens managed separately (see session_service.py)
"""

import re
import secrets

import bcrypt
from flask import current_app

from ..errors import AuthError, DependencyError, ValidationError
from ..extensions import db
from ..models import Role, User, UserRole
from ..time_utils import utcnow
from . import mail_service, session_service

ROLE_MAIN = "main"
ROLE_DOCTOR = "doctor"
ROLE_GENERAL = "general"
DEFAULT_ROLES = {
    ROLE_MAIN: "Owner/administrator: full access",
    ROLE_DOCTOR: "Read access including purchase prices",
    ROLE_GENERAL: "Read-only access",
}

FORGOT_PASSWORD_MESSAGE = "If the account exists, a temporary password has been emailed."

# Fixed hash used to keep login timing flat for unknown emails
_DUMMY_HASH = bcrypt.hashpw(b"unused-password", bcrypt.gensalt(rounds=4)).decode("utf-8")


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises ValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise ValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise ValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise ValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise ValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise ValidationError("Password must contain at least one special character")


def _bcrypt_hash(password: str) -> str:
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt cost factor 12."""
    validate_password_strength(password)
    return _bcrypt_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    Malformed stored hashes verify as False.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email) -> str:
    return str(email or "").strip().lower()


def authenticate(email: str, password: str) -> User:
    """
    Check credentials and stamp last_login_at.

    Raises AuthError for unknown email, wrong password or inactive account;
    the message is identical in all three cases.
    """
    email = normalize_email(email)
    if not email or not password:
        raise ValidationError("email and password are required")

    user = db.session.query(User).filter(User.email == email).first()
    if user is None:
        verify_password(password, _DUMMY_HASH)
        raise AuthError("Invalid credentials")

    if not verify_password(password, user.password_hash) or not user.is_active:
        raise AuthError("Invalid credentials")

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def create_default_roles() -> dict[str, Role]:
    """Idempotently create main/doctor/general. Flushes, caller commits."""
    roles = {}
    for name, description in DEFAULT_ROLES.items():
        role = db.session.query(Role).filter_by(name=name).first()
        if role is None:
            role = Role(name=name, description=description)
            db.session.add(role)
        roles[name] = role
    db.session.flush()
    return roles


def get_role(name: str) -> Role:
    role = db.session.query(Role).filter_by(name=str(name or "").strip().lower()).first()
    if role is None:
        raise ValidationError("Invalid role")
    return role


def set_single_role(user: User, role: Role) -> None:
    """Replace the user's role set with exactly one role."""
    user.user_roles.clear()
    db.session.flush()
    user.user_roles.append(UserRole(role=role))


def can_see_purchase_price(roles) -> bool:
    """Purchase prices are visible to the roles in PURCHASE_PRICE_ROLES only."""
    allowed = current_app.config.get("PURCHASE_PRICE_ROLES", {ROLE_MAIN, ROLE_DOCTOR})
    return bool(set(roles or ()) & set(allowed))


def setup_initial_users(payload: dict) -> list[dict]:
    """
    Bootstrap roles plus one user per role.

    payload: {"main": {full_name, email, password}, "doctor": {...}, "general": {...}}
    Existing users (by email) get their name/password reset and are reactivated.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    roles = create_default_roles()
    results = []
    for role_name in (ROLE_MAIN, ROLE_DOCTOR, ROLE_GENERAL):
        entry = payload.get(role_name) or {}
        full_name = str(entry.get("full_name") or "").strip()
        email = normalize_email(entry.get("email"))
        password = entry.get("password") or ""
        if not full_name or not email or not password:
            raise ValidationError(f"Missing fields for {role_name} user")

        password_hash = hash_password(password)
        user = db.session.query(User).filter_by(email=email).first()
        if user is None:
            user = User(full_name=full_name, email=email, password_hash=password_hash, is_active=True)
            db.session.add(user)
        else:
            user.full_name = full_name
            user.password_hash = password_hash
            user.is_active = True
        db.session.flush()

        if role_name not in user.role_names:
            user.user_roles.append(UserRole(role=roles[role_name]))
        results.append({"id": user.id, "full_name": user.full_name, "email": user.email, "role": role_name})

    db.session.commit()
    return results


def _temporary_password() -> str:
    # URL-safe body plus one char of each class so it passes strength checks
    return secrets.token_urlsafe(9) + "Aa1!"


def reset_forgotten_password(email: str) -> None:
    """
    Issue and email a temporary password.

    Silent for unknown or inactive accounts so callers cannot probe which
    emails exist. If the mail cannot be sent the password change is rolled
    back and DependencyError propagates.
    """
    email = normalize_email(email)
    if not email:
        raise ValidationError("Email is required")

    user = db.session.query(User).filter(User.email == email).first()
    if user is None or not user.is_active:
        return

    temp_password = _temporary_password()
    user.password_hash = _bcrypt_hash(temp_password)
    db.session.flush()

    try:
        mail_service.send_temporary_password(
            to=user.email, full_name=user.full_name, temp_password=temp_password
        )
    except DependencyError:
        db.session.rollback()
        raise

    session_service.revoke_all_user_sessions(user.id, reason="Password reset", commit=False)
    db.session.commit()
