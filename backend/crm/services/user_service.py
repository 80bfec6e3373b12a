# Overview: Service-layer operations for user administration (role main only).

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import User
from . import session_service
from .auth_service import get_role, hash_password, normalize_email, set_single_role


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.id.asc()).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _ensure_email_free(email: str, exclude_user_id: int | None = None) -> None:
    query = db.session.query(User.id).filter(User.email == email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first() is not None:
        raise ConflictError("Email already exists")


def create_user(*, full_name, email, password, role) -> User:
    full_name = str(full_name or "").strip()
    email = normalize_email(email)
    if not full_name or not email or not password or not role:
        raise ValidationError("full_name, email, password and role are required")

    role_row = get_role(role)
    _ensure_email_free(email)

    user = User(full_name=full_name, email=email, password_hash=hash_password(password), is_active=True)
    db.session.add(user)
    db.session.flush()
    set_single_role(user, role_row)
    db.session.commit()
    return user


def update_user(user_id: int, payload: dict, *, acting_user: User) -> User:
    """
    Partial update. Deactivating or re-passwording a user revokes their sessions.
    A user cannot deactivate themselves.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    allowed = {"full_name", "email", "password", "role", "is_active"}
    unknown = set(payload) - allowed
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")

    user = get_user(user_id)
    revoke_reason = None

    if "full_name" in payload:
        full_name = str(payload["full_name"] or "").strip()
        if not full_name:
            raise ValidationError("full_name cannot be blank")
        user.full_name = full_name

    if "email" in payload:
        email = normalize_email(payload["email"])
        if not email:
            raise ValidationError("email cannot be blank")
        _ensure_email_free(email, exclude_user_id=user.id)
        user.email = email

    if "is_active" in payload:
        is_active = payload["is_active"]
        if not isinstance(is_active, bool):
            raise ValidationError("is_active must be a boolean")
        if not is_active and user.id == acting_user.id:
            raise ValidationError("You cannot deactivate your own account")
        if user.is_active and not is_active:
            revoke_reason = "User deactivated"
        user.is_active = is_active

    if payload.get("password"):
        user.password_hash = hash_password(payload["password"])
        revoke_reason = revoke_reason or "Password changed"

    if payload.get("role"):
        set_single_role(user, get_role(payload["role"]))

    if revoke_reason:
        session_service.revoke_all_user_sessions(user.id, reason=revoke_reason, commit=False)

    db.session.commit()
    return user


def delete_user(user_id: int, *, acting_user: User) -> None:
    if user_id == acting_user.id:
        raise ValidationError("You cannot delete your own account")
    user = get_user(user_id)
    db.session.delete(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("User is referenced by existing records; deactivate instead")
