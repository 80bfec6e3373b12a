# Overview: Service-layer operations for salespersons, including the single default.

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Sale, Salesperson
from ..validation import ModelValidationPolicy, validate_payload

SALESPERSON_POLICY = ModelValidationPolicy(
    writable_fields={
        "salesperson_type",
        "employee_id",
        "first_name",
        "last_name",
        "display_name",
        "phone",
        "email",
        "is_default",
    },
)


def _derive_display_name(first_name, last_name) -> str | None:
    name = " ".join(part for part in (first_name, last_name) if part)
    return name or None


def _clear_other_defaults(keep_id: int) -> None:
    db.session.query(Salesperson).filter(
        Salesperson.id != keep_id,
        Salesperson.is_default.is_(True),
    ).update({Salesperson.is_default: False}, synchronize_session=False)


def list_salespersons() -> list[Salesperson]:
    return (
        db.session.query(Salesperson)
        .order_by(Salesperson.is_default.desc(), Salesperson.display_name.asc())
        .all()
    )


def get_salesperson(salesperson_id: int) -> Salesperson:
    salesperson = db.session.get(Salesperson, salesperson_id)
    if salesperson is None:
        raise NotFoundError("Salesperson not found")
    return salesperson


def create_salesperson(payload: dict) -> Salesperson:
    patch = validate_payload(model=Salesperson, payload=payload, policy=SALESPERSON_POLICY, partial=True)
    patch["display_name"] = patch.get("display_name") or _derive_display_name(
        patch.get("first_name"), patch.get("last_name")
    )
    if not patch["display_name"]:
        raise ValidationError("display_name is required")
    patch["salesperson_type"] = patch.get("salesperson_type") or "external"

    salesperson = Salesperson(**patch)
    db.session.add(salesperson)
    db.session.flush()
    if salesperson.is_default:
        _clear_other_defaults(salesperson.id)
    db.session.commit()
    return salesperson


def update_salesperson(salesperson_id: int, payload: dict) -> Salesperson:
    salesperson = get_salesperson(salesperson_id)
    patch = validate_payload(model=Salesperson, payload=payload, policy=SALESPERSON_POLICY, partial=True)
    for key, value in patch.items():
        setattr(salesperson, key, value)
    if not salesperson.display_name:
        salesperson.display_name = _derive_display_name(salesperson.first_name, salesperson.last_name)
    if not salesperson.display_name:
        raise ValidationError("display_name is required")
    if not salesperson.salesperson_type:
        salesperson.salesperson_type = "external"
    db.session.flush()
    if salesperson.is_default:
        _clear_other_defaults(salesperson.id)
    db.session.commit()
    return salesperson


def set_default(salesperson_id: int) -> Salesperson:
    salesperson = get_salesperson(salesperson_id)
    salesperson.is_default = True
    db.session.flush()
    _clear_other_defaults(salesperson.id)
    db.session.commit()
    return salesperson


def delete_salesperson(salesperson_id: int) -> None:
    salesperson = get_salesperson(salesperson_id)
    if salesperson.is_default:
        raise ConflictError("Cannot delete the default salesperson")
    used = db.session.query(Sale.id).filter(Sale.salesperson_id == salesperson.id).count()
    if used:
        raise ConflictError(
            "Salesperson is used in sales and cannot be deleted",
            details={"sales": used},
        )
    db.session.delete(salesperson)
    db.session.commit()
