# Overview: Service-layer operations for suppliers and the categories they supply.

"""
Supplier Service

Suppliers are referenced by batches (supplier_id). A supplier with active
(non-voided) batches cannot be deleted; voided batches keep the copied
supplier_name for history.
"""

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Batch, Supplier, SupplierCategory
from ..validation import ModelValidationPolicy, validate_payload

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={
        "business_name",
        "contact_name",
        "phone",
        "email",
        "website",
        "supplier_country",
        "supplier_city",
    },
)


def _parse_categories(raw) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    if not isinstance(raw, list):
        raise ValidationError("categories must be a list of names")
    names = []
    for item in raw:
        name = str(item or "").strip()
        if name and name.lower() not in {n.lower() for n in names}:
            if len(name) > 120:
                raise ValidationError("category name exceeds max length 120")
            names.append(name)
    return names


def _set_categories(supplier: Supplier, names: list[str]) -> None:
    supplier.categories.clear()
    db.session.flush()
    for name in names:
        supplier.categories.append(SupplierCategory(name=name))


def _split(payload: dict) -> tuple[dict, object, bool]:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    fields = {k: v for k, v in payload.items() if k != "categories"}
    return fields, payload.get("categories"), "categories" in payload


def list_suppliers() -> list[Supplier]:
    return db.session.query(Supplier).order_by(Supplier.business_name.asc(), Supplier.id.asc()).all()


def get_supplier(supplier_id: int) -> Supplier:
    supplier = db.session.get(Supplier, supplier_id)
    if supplier is None:
        raise NotFoundError("Supplier not found")
    return supplier


def create_supplier(payload: dict) -> Supplier:
    """business_name falls back to contact_name; one of them is required."""
    fields, raw_categories, _ = _split(payload)
    if fields.get("business_name") in (None, ""):
        fields.pop("business_name", None)
    patch = validate_payload(model=Supplier, payload=fields, policy=SUPPLIER_POLICY, partial=True)
    patch["business_name"] = patch.get("business_name") or patch.get("contact_name")
    if not patch["business_name"]:
        raise ValidationError("business_name or contact_name is required")

    supplier = Supplier(**patch)
    db.session.add(supplier)
    db.session.flush()
    _set_categories(supplier, _parse_categories(raw_categories))
    db.session.commit()
    return supplier


def update_supplier(supplier_id: int, payload: dict) -> Supplier:
    supplier = get_supplier(supplier_id)
    fields, raw_categories, has_categories = _split(payload)
    patch = validate_payload(model=Supplier, payload=fields, policy=SUPPLIER_POLICY, partial=True)
    for key, value in patch.items():
        setattr(supplier, key, value)
    if not supplier.business_name:
        supplier.business_name = supplier.contact_name
    if not supplier.business_name:
        raise ValidationError("business_name or contact_name is required")
    if has_categories:
        _set_categories(supplier, _parse_categories(raw_categories))
    db.session.commit()
    return supplier


def delete_supplier(supplier_id: int) -> None:
    supplier = get_supplier(supplier_id)
    active = db.session.query(Batch.id).filter(
        Batch.supplier_id == supplier.id,
        Batch.voided_at.is_(None),
    ).count()
    if active:
        raise ConflictError(
            "Supplier has active batches and cannot be deleted",
            details={"active_batches": active},
        )
    # Voided batches keep supplier_name; drop the dangling reference
    db.session.query(Batch).filter(Batch.supplier_id == supplier.id).update(
        {Batch.supplier_id: None}, synchronize_session=False
    )
    db.session.delete(supplier)
    db.session.commit()
